from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from caprep.domain.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    EmailSendFailed,
    InternalError,
    NotFoundError,
    RateLimitedError,
    UpstreamError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (RateLimitedError, 429),
    (UpstreamError, 502),
    (InternalError, 500),
)

_EMAIL_FAILURE_MESSAGES = {
    "INVALID_EMAIL": "The email address you provided appears to be invalid",
    "ERECIPIENT": "The email address does not exist or cannot receive emails",
    "EAUTH": "Server email configuration error. Please try again later or contact support.",
    "NO_CREDENTIALS": "Server email configuration error. Please try again later or contact support.",
}


_TOO_MANY_REQUESTS = "Too many requests from this IP, please try again after 15 minutes"


def error_body(
    message: str,
    *,
    code: str | None = None,
    field: str | None = None,
    redirect: str | None = None,
    details: Any = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": message}
    if code:
        body["code"] = code
    if field:
        body["field"] = field
    if redirect:
        body["redirect"] = redirect
    if details is not None:
        body["details"] = details
    return body


def status_for(exc: DomainError) -> int:
    if isinstance(exc, EmailSendFailed):
        return 400 if exc.is_client_fault else 500
    for cls, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return status_code
    return 500


def _development(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(settings is not None and settings.is_development)


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as the ``{"success": false, "error": ...}`` envelope."""

    @app.exception_handler(DomainError)
    async def handle_domain_error(request: Request, exc: DomainError):
        status_code = status_for(exc)
        message = exc.message
        details = None
        if isinstance(exc, EmailSendFailed):
            message = _EMAIL_FAILURE_MESSAGES.get(exc.kind, EmailSendFailed.__doc__)
            if _development(request):
                details = exc.message

        if status_code >= 500:
            logger.error(
                "request failed",
                extra={
                    "path": request.url.path,
                    "status": status_code,
                    "error_type": type(exc).__name__,
                    "code": exc.code,
                    "error": exc.message,
                },
            )
        elif status_code in (401, 403, 429):
            logger.info(
                "request refused",
                extra={"path": request.url.path, "status": status_code, "code": exc.code},
            )

        headers = None
        if isinstance(exc, RateLimitedError) and exc.retry_after_seconds > 0:
            headers = {"Retry-After": str(exc.retry_after_seconds)}
        return JSONResponse(
            status_code=status_code,
            content=error_body(
                message,
                code=exc.code,
                field=exc.field,
                redirect=exc.redirect,
                details=details,
            ),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = [p for p in first.get("loc", ()) if isinstance(p, str) and p != "body"]
        field = loc[-1] if loc else None
        message = "Invalid request body"
        if field:
            message = f"Invalid value for {field}"
        details = None
        if _development(request):
            details = [
                {"loc": [str(p) for p in e.get("loc", ())], "msg": e.get("msg")} for e in errors
            ]
        return JSONResponse(
            status_code=400,
            content=error_body(message, field=field, details=details),
        )

    @app.exception_handler(RateLimitExceeded)
    # sync so the slowapi middleware can call it directly as well
    def handle_rate_limit_exceeded(request: Request, exc: RateLimitExceeded):
        message = exc.limit.error_message
        if not isinstance(message, str):
            message = _TOO_MANY_REQUESTS
        logger.info(
            "request refused",
            extra={"path": request.url.path, "status": 429, "limit": str(exc.limit.limit)},
        )
        return JSONResponse(
            status_code=429,
            content=error_body(message, code="RATE_LIMITED"),
            headers={"Retry-After": str(exc.limit.limit.get_expiry())},
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code >= 500:
            logger.error(
                "http error", extra={"path": request.url.path, "status": exc.status_code}
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_uncaught(request: Request, exc: Exception):
        logger.exception(
            "unhandled exception",
            extra={"path": request.url.path, "error_type": type(exc).__name__},
        )
        details = str(exc) if _development(request) else None
        return JSONResponse(
            status_code=500,
            content=error_body(InternalError.__doc__, details=details),
        )
