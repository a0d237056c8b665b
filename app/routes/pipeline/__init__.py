from flask import Blueprint

bp = Blueprint("pipeline", __name__)

from app.routes.pipeline import routes  # noqa: F401, E402
