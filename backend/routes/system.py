"""System routes — /health, /config."""

import logging

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from version import __version__

bp = Blueprint("system", __name__, url_prefix="/api/v1")
logger = logging.getLogger(__name__)


@bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint (no auth required).

    Returns 200 with service states when the database answers, 503 otherwise.
    """
    from config import get_settings
    from extensions import db

    services = {}
    healthy = True
    try:
        db.session.execute(text("SELECT 1"))
        services["database"] = "ok"
    except Exception as e:
        logger.error("Health check: database unavailable: %s", e)
        services["database"] = "error"
        healthy = False

    settings = get_settings()
    services["llm"] = "configured" if settings.llm_api_key else "not configured"
    services["search"] = (
        "configured" if settings.google_search_api_key and settings.google_search_engine_id
        else "not configured"
    )
    services["job_queue"] = current_app.job_queue.get_backend_info()

    return jsonify({
        "status": "healthy" if healthy else "unhealthy",
        "version": __version__,
        "services": services,
    }), 200 if healthy else 503


@bp.route("/config", methods=["GET"])
def get_config():
    """Get current configuration (without secrets)."""
    from config import get_settings
    return jsonify(get_settings().get_safe_config())
