"""Structured Logging — JSON formatter, lifecycle observer and request logging.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (post_id, offer_id, caller_id, operation, error_code, ...) surfaced when present
    - JSON format in production, human-readable in development
    - Domain failures log at WARNING, internal failures at ERROR

Design Decisions:
    - JSONFormatter over third-party libs: zero dependencies, full control
    - setup_logging called once on startup via lifespan
    - LoggingLifecycleObserver is the default observability collaborator injected
      into the lifecycle engine; request logging is an HTTP middleware
"""

import logging
import json
import time
from datetime import datetime, timezone

from fastapi import Request

from helpboard.core.domain_types import Operation, PostId, UserId
from helpboard.core.errors import HelpBoardError, InternalError

logger = logging.getLogger("helpboard.lifecycle")
request_logger = logging.getLogger("helpboard.requests")

_EXTRA_FIELDS = (
    "post_id", "offer_id", "caller_id", "operation", "error_code", "attempt",
    "status", "path", "method", "status_code", "duration_ms",
)


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Configure logging for the application."""
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))


class LoggingLifecycleObserver:
    """LifecycleObserver that writes structured log records."""

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def operation_succeeded(
        self, operation: Operation, caller_id: UserId | None,
        post_id: PostId | None, **fields: object,
    ) -> None:
        self.log.info(
            f"{operation.value} succeeded",
            extra={
                "operation": operation.value,
                "caller_id": caller_id,
                "post_id": str(post_id) if post_id else None,
                **fields,
            },
        )

    def operation_failed(
        self, operation: Operation, caller_id: UserId | None,
        post_id: PostId | None, error: HelpBoardError,
    ) -> None:
        level = logging.ERROR if isinstance(error, InternalError) else logging.WARNING
        self.log.log(
            level,
            f"{operation.value} failed: {error.message}",
            extra={
                "operation": operation.value,
                "caller_id": caller_id,
                "post_id": str(post_id) if post_id else None,
                "offer_id": error.context.offer_id,
                "error_code": error.code,
            },
        )

    def conflict_retried(
        self, operation: Operation, post_id: PostId, attempt: int,
    ) -> None:
        self.log.warning(
            f"{operation.value} hit a concurrent update, retrying",
            extra={
                "operation": operation.value,
                "post_id": str(post_id),
                "attempt": attempt,
            },
        )


async def log_requests(request: Request, call_next):
    """HTTP middleware: one log line per request with status and latency."""
    started = time.perf_counter()
    response = await call_next(request)
    request_logger.info(
        f"{request.method} {request.url.path} -> {response.status_code}",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        },
    )
    return response
