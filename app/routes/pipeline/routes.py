from flask import current_app, jsonify, request

from app import limiter
from app.routes.decorators import no_store, require_pipeline_token
from app.routes.pipeline import bp
from app.services import pipeline_admin
from app.services.pipeline_admin import DEFAULT_LOG_LIMIT
from app.services.scheduler_service import scheduler_service
from app.socketio_handlers import get_connection_stats


def _trigger_rate_limit():
    return current_app.config.get("TRIGGER_RATE_LIMIT", "30 per minute")


@bp.route("/check-scores", methods=["GET", "POST"])
@limiter.limit(_trigger_rate_limit)
@require_pipeline_token
@no_store
def check_scores():
    """Run the score pipeline. GET is the scheduled form, POST the manual one."""
    manual_quarter = None
    force = False

    if request.method == "POST":
        # An empty or non-JSON body is a plain trigger
        body = request.get_json(silent=True)
        if isinstance(body, dict):
            manual_quarter = body.get("quarter") or None
            force = body.get("force") is True

    run = pipeline_admin.trigger_score_check(quarter=manual_quarter, force=force)
    return jsonify(run.payload), run.status_code


@bp.route("/status")
@require_pipeline_token
@no_store
def status():
    config = pipeline_admin.get_config()
    return jsonify(
        {
            "scheduler": scheduler_service.get_status(),
            "connections": get_connection_stats(),
            "config": config.to_dict() if config else None,
        }
    )


@bp.route("/config")
@require_pipeline_token
@no_store
def get_config():
    config = pipeline_admin.get_config()
    if config is None:
        return jsonify({"error": "No config found"}), 404
    return jsonify(config.to_dict())


@bp.route("/config/enabled", methods=["POST"])
@require_pipeline_token
def set_enabled():
    data = request.get_json(silent=True) or {}
    enabled = data.get("enabled")

    if not isinstance(enabled, bool):
        return jsonify({"error": "enabled must be true or false"}), 400

    config = pipeline_admin.set_enabled(enabled)
    return jsonify({"enabled": config.enabled})


@bp.route("/logs")
@require_pipeline_token
@no_store
def logs():
    limit = request.args.get("limit", DEFAULT_LOG_LIMIT, type=int)
    entries = pipeline_admin.get_processing_logs(limit)
    return jsonify([entry.to_dict() for entry in entries])


@bp.route("/results")
@require_pipeline_token
@no_store
def results():
    return jsonify(
        [r.to_dict(include_contest=True) for r in pipeline_admin.get_quarter_results()]
    )


@bp.route("/results/<int:result_id>/resend", methods=["POST"])
@require_pipeline_token
def resend(result_id):
    run = pipeline_admin.resend_quarter_emails(result_id)
    if run is None:
        return jsonify({"error": "Quarter result not found"}), 404

    if run.status_code >= 400:
        return jsonify(run.payload), run.status_code

    return jsonify({"status": "resent", "run": run.payload})


@bp.route("/contests")
@require_pipeline_token
@no_store
def contests():
    return jsonify([c.to_dict() for c in pipeline_admin.get_automated_contests()])
