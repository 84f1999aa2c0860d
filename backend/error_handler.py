"""Application errors and their JSON rendering.

Domain modules raise SeoPilotError subclasses; routes never catch them.
register_error_handlers() turns them into
{"success": false, "error", "code", "timestamp", "request_id", ...}
with the exception's HTTP status. Anything else becomes a logged 500.
"""

import uuid
import logging
from datetime import datetime, timezone
from typing import Optional

from flask import jsonify, g

logger = logging.getLogger(__name__)


class SeoPilotError(Exception):
    """Base class for SEOPilot errors.

    Attributes:
        code: Stable machine-readable code, e.g. "LLM_429".
        http_status: Status returned when the error reaches a route.
        context: Extra fields echoed in the response (ids, upstream status).
        troubleshooting: Hint shown to the dashboard user, in French.
    """

    code: str = "SEOPILOT_000"
    http_status: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        http_status: Optional[int] = None,
        context: Optional[dict] = None,
        troubleshooting: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status
        self.context = context or {}
        self.troubleshooting = troubleshooting

    def to_dict(self) -> dict:
        body = {
            "success": False,
            "error": str(self),
            "code": self.code,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if self.context:
            body["context"] = self.context
        if self.troubleshooting:
            body["troubleshooting"] = self.troubleshooting
        return body


# Request input

class ValidationError(SeoPilotError):
    code = "VAL_001"
    http_status = 400


class NotFoundError(SeoPilotError):
    """Shop, product, diagnostic or job id that does not exist."""

    code = "NF_001"
    http_status = 404


class ConflictError(SeoPilotError):
    """A resolution run for the same issue is still pending or processing."""

    code = "CONF_001"
    http_status = 409


class ConfigurationError(SeoPilotError):
    """Missing credentials (LLM key, WooCommerce keys, search API)."""

    code = "CFG_001"
    http_status = 400


# LLM gateway

class LLMGatewayError(SeoPilotError):
    code = "LLM_001"
    http_status = 502


class LLMRateLimitError(LLMGatewayError):
    """HTTP 429 from the gateway. The message always contains "429"."""

    code = "LLM_429"
    http_status = 429

    def __init__(self, message: str = "Rate limit exceeded (429)", **kwargs) -> None:
        kwargs.setdefault("troubleshooting",
                          "Limite de requêtes atteinte, veuillez réessayer dans quelques instants.")
        super().__init__(message, **kwargs)


class LLMCreditsError(LLMGatewayError):
    """HTTP 402 from the gateway."""

    code = "LLM_402"
    http_status = 402

    def __init__(self, message: str = "Insufficient AI credits (402)", **kwargs) -> None:
        kwargs.setdefault("troubleshooting", "Crédits insuffisants, veuillez recharger votre compte.")
        super().__init__(message, **kwargs)


class LLMResponseError(LLMGatewayError):
    """Empty completion or JSON that does not parse."""

    code = "LLM_002"


# Other collaborators

class WooCommerceError(SeoPilotError):
    code = "WOO_001"
    http_status = 502


class SearchAPIError(SeoPilotError):
    code = "SERP_001"
    http_status = 502


def register_error_handlers(app) -> None:
    """Install the request-id hook and the JSON error handlers on app."""

    @app.before_request
    def _assign_request_id() -> None:
        g.request_id = uuid.uuid4().hex[:8]

    @app.errorhandler(SeoPilotError)
    def _handle_seopilot_error(error: SeoPilotError):
        request_id = getattr(g, "request_id", None)
        logger.warning("[%s] %s: %s (request_id=%s)",
                       error.code, type(error).__name__, error, request_id)
        body = error.to_dict()
        if request_id:
            body["request_id"] = request_id
        return jsonify(body), error.http_status

    @app.errorhandler(Exception)
    def _handle_unexpected_error(error: Exception):
        from werkzeug.exceptions import HTTPException

        # 404/405 and friends keep Flask's own rendering
        if isinstance(error, HTTPException):
            return error

        request_id = getattr(g, "request_id", "?")
        logger.exception("Unhandled exception (request_id=%s): %s", request_id, error)
        return jsonify({
            "success": False,
            "error": "Internal server error",
            "code": "INTERNAL_ERROR",
            "request_id": request_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }), 500
