"""Framework-agnostic response model and error mapping.

Handlers return ``ApiResponse`` values that any HTTP adapter can
render. Server-side failures never echo internal detail to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from core.errors import INTERNAL_ERROR_MESSAGE, PitchStoreError, ValidationError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class ApiResponse:
    """HTTP-shaped handler result."""

    status: int
    body: dict[str, Any]
    headers: Mapping[str, str] = field(default_factory=dict)


def json_response(
    status: int,
    body: dict[str, Any],
    headers: Mapping[str, str] | None = None,
) -> ApiResponse:
    """Build a response with optional headers."""
    return ApiResponse(status=status, body=body, headers=dict(headers or {}))


def unauthorized() -> ApiResponse:
    """Return the response for requests without an identity."""
    return json_response(401, {"error": "Unauthorized"})


def error_response(error: Exception, operation: str) -> ApiResponse:
    """Map an exception onto a safe client response.

    Client errors expose their own message; validation failures also
    carry the violation list. Everything else is logged and answered
    with a generic server error.

    Args:
        error: Raised exception.
        operation: Handler name for log context.

    Returns:
        Response for the caller.
    """
    if isinstance(error, PitchStoreError) and error.status_code < 500:
        body: dict[str, Any] = {"error": error.public_message}
        if isinstance(error, ValidationError):
            body["details"] = error.details or None
        _LOGGER.info(
            "request_rejected",
            operation=operation,
            status=error.status_code,
            error=str(error),
        )
        return json_response(error.status_code, body)
    _LOGGER.error(
        "request_failed",
        operation=operation,
        error_type=type(error).__name__,
        error=str(error),
    )
    return json_response(500, {"error": INTERNAL_ERROR_MESSAGE})
