import hmac
from functools import wraps

from flask import current_app, jsonify, request


def require_pipeline_token(f):
    """Require the configured bearer token, if one is configured"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected = current_app.config.get("PIPELINE_API_TOKEN")
        if expected:
            header = request.headers.get("Authorization", "")
            scheme, _, token = header.partition(" ")
            if scheme.lower() != "bearer" or not hmac.compare_digest(
                token.strip(), expected
            ):
                return jsonify({"error": "Unauthorized"}), 401
        return f(*args, **kwargs)

    return decorated_function


def no_store(f):
    """Stop clients and proxies caching API responses"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        response = current_app.make_response(f(*args, **kwargs))
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        return response

    return decorated_function
