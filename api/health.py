from flask import Blueprint

from .responses import envelope

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
    """
    return envelope(200, "ok", {"status": "ok", "version": "1.0.0"})
