"""Response envelope.

Every response body is ``{"success", "message", "data"}`` on success or
``{"success": false, "message", "error"}`` on failure, served as
``application/json; charset=utf-8``.
"""

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

from catalog_service.domain.exceptions import DomainError, ValidationError

JSON_MEDIA_TYPE = "application/json; charset=utf-8"


class EnvelopeResponse(JSONResponse):
    """JSON response with an explicit charset."""

    media_type = JSON_MEDIA_TYPE


def success(
    data: Any = None,
    message: str = "OK",
    status_code: int = status.HTTP_200_OK,
) -> EnvelopeResponse:
    """Build a success envelope; ``data`` is omitted when None."""
    content: dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        content["data"] = data
    return EnvelopeResponse(status_code=status_code, content=content)


def created(data: Any, message: str = "Created") -> EnvelopeResponse:
    return success(data, message, status.HTTP_201_CREATED)


def error(
    status_code: int,
    code: str,
    message: str,
    request_id: str | None = None,
    field: str | None = None,
    reason: str | None = None,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> EnvelopeResponse:
    """Build an error envelope."""
    body: dict[str, Any] = {"code": code}
    if field is not None:
        body["field"] = field
    if reason is not None:
        body["reason"] = reason
    body["details"] = details or {}
    body["requestId"] = request_id
    return EnvelopeResponse(
        status_code=status_code,
        content={"success": False, "message": message, "error": body},
        headers=headers,
    )


def request_id_of(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def domain_error(request: Request, exc: DomainError) -> EnvelopeResponse:
    """Render a domain error with its status and code."""
    field = reason = None
    if isinstance(exc, ValidationError):
        field, reason = exc.field, exc.reason
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return error(
        exc.status_code,
        exc.error_code,
        exc.message,
        request_id=request_id_of(request),
        field=field,
        reason=reason,
        details=exc.details,
        headers=headers,
    )
