"""Error Hierarchy — typed, categorized exceptions for all HelpBoard failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable by the caller; infrastructure errors are opaque
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages (InternalError message is fixed)

Design Decisions:
    - Single hierarchy with HelpBoardError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    post_id: str | None = None
    offer_id: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class HelpBoardError(Exception):
    """Base exception for all HelpBoard errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "post_id": self.context.post_id,
                    "offer_id": self.context.offer_id,
                    "operation": self.context.operation,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class PostValidationError(HelpBoardError):
    """Malformed or missing field, or bad enum value."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class ResourceNotFoundError(HelpBoardError):
    """Requested post or offer does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class AuthenticationError(HelpBoardError):
    """Credential missing, malformed, expired, or without an identity."""
    def __init__(self, message: str = "Not authenticated", context: ErrorContext | None = None):
        super().__init__(
            message, "AUTHENTICATION_FAILED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class ForbiddenError(HelpBoardError):
    """Authenticated caller is not allowed to perform the operation."""
    def __init__(self, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Only the post author may {operation.replace('_', ' ')}",
            "FORBIDDEN", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )
        self.operation = operation


class SelfHelpForbiddenError(HelpBoardError):
    """Author tried to offer help on their own post."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "You cannot offer help on your own post",
            "SELF_HELP_FORBIDDEN", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 400,
        )


class DuplicateOfferError(HelpBoardError):
    """Helper already has an offer on this post."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "You have already offered help for this post",
            "DUPLICATE_OFFER", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 409,
        )


class AlreadyAcceptedError(HelpBoardError):
    """Another offer on this post is already accepted."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "An offer has already been accepted for this post",
            "ALREADY_ACCEPTED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 409,
        )


class OfferNotPendingError(HelpBoardError):
    """Offer was already decided; decisions are never reversed."""
    def __init__(self, offer_status: str, context: ErrorContext | None = None):
        super().__init__(
            f"Offer is already {offer_status}",
            "OFFER_NOT_PENDING", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 409,
        )
        self.offer_status = offer_status


class MissingAcceptedHelperError(HelpBoardError):
    """Status change requires an accepted offer."""
    def __init__(self, target_status: str, context: ErrorContext | None = None):
        super().__init__(
            f"Cannot set status to '{target_status}' without an accepted helper",
            "MISSING_ACCEPTED_HELPER", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 400,
        )
        self.target_status = target_status


class ConcurrencyError(HelpBoardError):
    """Concurrent modification detected (lost-update race)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class InternalError(HelpBoardError):
    """Opaque failure — the user-facing message never carries details."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "An unexpected error occurred",
            "INTERNAL_ERROR", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )


class DatabaseError(InternalError):
    """Database operation failed. Detail kept for logs only."""
    def __init__(self, detail: str, operation: str, context: ErrorContext | None = None):
        super().__init__(context)
        self.category = ErrorCategory.DATABASE
        self.detail = detail
        self.operation = operation


class InvariantViolationError(InternalError):
    """An aggregate invariant would be broken by a commit. Indicates a bug."""
    def __init__(self, rule: str, context: ErrorContext | None = None):
        super().__init__(context)
        self.code = "INVARIANT_VIOLATION"
        self.rule = rule
