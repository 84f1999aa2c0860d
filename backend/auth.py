"""Optional API key authentication and CORS handling for Flask.

If SEOPILOT_API_KEY is set, all /api/ requests must include the key
either as X-Api-Key header or as ?apikey= query parameter.
Health endpoint and CORS preflight requests are exempt.
"""

import hmac
import logging

from flask import request, jsonify

from config import get_settings

logger = logging.getLogger(__name__)

CORS_ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type, x-api-key"
CORS_ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"


def init_cors(app):
    """Answer OPTIONS preflights and add CORS headers to every response."""

    @app.before_request
    def handle_preflight():
        if request.method == "OPTIONS" and request.path.startswith("/api/"):
            return app.response_class(status=204)
        return None

    @app.after_request
    def add_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = get_settings().cors_allowed_origins
        response.headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
        response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
        return response


def init_auth(app):
    """Initialize authentication for the Flask app.

    Adds a before_request hook that checks the API key for all /api/ routes
    except /api/v1/health. The key is read on each request so settings
    reloads take effect without a restart.
    """
    logger.info("API key authentication hook registered (active when SEOPILOT_API_KEY is set)")

    @app.before_request
    def check_api_key():
        """Check API key for /api/ routes (except health)."""
        current_settings = get_settings()
        if not current_settings.api_key:
            return None

        path = request.path
        if not path.startswith("/api/"):
            return None
        if path == "/api/v1/health" or request.method == "OPTIONS":
            return None

        provided_key = (
            request.headers.get("X-Api-Key")
            or request.args.get("apikey")
        )

        if not provided_key:
            logger.warning("API request without key from %s", request.remote_addr)
            return jsonify({"success": False, "error": "API key required"}), 401

        if not hmac.compare_digest(provided_key, current_settings.api_key):
            logger.warning("Invalid API key from %s", request.remote_addr)
            return jsonify({"success": False, "error": "Invalid API key"}), 401

        return None
