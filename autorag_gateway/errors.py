"""Error taxonomy shared by handlers and backend adapters.

Adapters translate backend-specific failures (SQLAlchemy, httpx, MinIO,
filesystem) into these classes; handlers raise them for caller errors.
`envelope.failure` turns any of them into the JSON error body.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class GatewayError(Exception):
    status_code = 500
    default_message = "Internal Server Error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message or details or self.default_message)
        # None means "let the handler name the failure"
        self.message = message
        self.details = details
        self.extra: Dict[str, Any] = dict(extra or {})


class InvalidInput(GatewayError):
    status_code = 400
    default_message = "Invalid input"


class NotFound(GatewayError):
    status_code = 404
    default_message = "Not found"


class ConstraintViolation(GatewayError):
    status_code = 409
    default_message = "Database constraint error."


class UpstreamFailure(GatewayError):
    status_code = 500
