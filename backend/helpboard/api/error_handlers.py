"""Error Handlers — turn HelpBoard failures into one JSON error envelope.

Invariants:
    - Every error body is {"error": {code, message, category, severity, ...}}
    - Field problems, whether caught by pydantic (request shape) or by the
      lifecycle engine (field rules), list {"field", "message"} under "details"
      with HTTP 400 VALIDATION_ERROR
    - 401 carries WWW-Authenticate; 409 CONCURRENCY_CONFLICT carries Retry-After
    - Unhandled exceptions answer 500 INTERNAL_ERROR and never leak details

Design Decisions:
    - Response headers chosen per error class in one table, not per route
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from helpboard.core.errors import (
    AuthenticationError, ConcurrencyError, ErrorSeverity, HelpBoardError,
    InternalError, PostValidationError,
)

logger = logging.getLogger(__name__)

# Seconds a client should wait before retrying a post that lost a write race
RETRY_AFTER_SECONDS = 1

_ERROR_HEADERS: tuple[tuple[type[HelpBoardError], dict[str, str]], ...] = (
    (AuthenticationError, {"WWW-Authenticate": "Bearer"}),
    (ConcurrencyError, {"Retry-After": str(RETRY_AFTER_SECONDS)}),
)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HelpBoardError, helpboard_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


async def helpboard_error_handler(request: Request, exc: HelpBoardError):
    log = logger.error if isinstance(exc, InternalError) else logger.info
    log(
        f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "post_id": exc.context.post_id,
            "offer_id": exc.context.offer_id,
        },
    )
    body = exc.to_response()
    if isinstance(exc, PostValidationError):
        body["error"]["details"] = [{"field": exc.field, "message": exc.message}]
    headers = next(
        (h for kind, h in _ERROR_HEADERS if isinstance(exc, kind)), None,
    )
    return JSONResponse(status_code=exc.http_status, content=body, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request shape: missing field, wrong JSON type, bad path UUID."""
    details = [
        {
            # ("body", "title") -> "title"; ("path", "post_id") -> "post_id"
            "field": ".".join(map(str, e["loc"][1:])) or ".".join(map(str, e["loc"])),
            "message": e["msg"],
        }
        for e in exc.errors()
    ]
    logger.info(
        f"Rejected request shape on {request.url.path}: {details}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "category": "validation",
                "severity": ErrorSeverity.WARNING.value,
                "details": details,
            },
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {exc}",
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=InternalError().to_response(),
    )
