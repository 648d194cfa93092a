"""Field Validation — turns raw caller input into validated domain values.

Invariants:
    - All functions are PURE: no IO, no async, no DB
    - title, description, location: non-empty after trimming and no longer than
      TEXT_LIMITS (the column widths of help_posts)
    - category / status must be one of the fixed enum values (exact match)
    - needed_by: ISO-8601 string or datetime, never an epoch number; naive values
      are taken as UTC, aware values are normalised to UTC
    - Raise PostValidationError (with the offending field) on violation

Design Decisions:
    - Same validation for create and edit: both routes hand raw values to the
      engine, which runs validate_post_fields; the API schemas only check shape
    - Future-ness of needed_by is NOT checked here (caller-side policy)
"""

from datetime import datetime, timezone
from typing import Any

from helpboard.core.domain_types import Category, PostStatus
from helpboard.core.errors import PostValidationError
from helpboard.core.help_post import PostFields

TEXT_LIMITS = {
    "title": 200,
    "description": 5_000,
    "location": 200,
}

_BAD_NEEDED_BY = "Valid needed by date is required"


def require_text(value: Any, field: str) -> str:
    """Trimmed, non-empty string within TEXT_LIMITS[field], or PostValidationError."""
    if not isinstance(value, str):
        raise PostValidationError(f"{field} is required", field)
    trimmed = value.strip()
    if not trimmed:
        raise PostValidationError(f"{field} cannot be empty or whitespace", field)
    limit = TEXT_LIMITS.get(field)
    if limit is not None and len(trimmed) > limit:
        raise PostValidationError(
            f"{field} must be at most {limit} characters", field,
        )
    return trimmed


def parse_category(value: Any) -> Category:
    if isinstance(value, Category):
        return value
    try:
        return Category(value)
    except ValueError:
        allowed = ", ".join(c.value for c in Category)
        raise PostValidationError(
            f"Invalid category '{value}'. Expected one of: {allowed}", "category",
        ) from None


def parse_status(value: Any) -> PostStatus:
    if isinstance(value, PostStatus):
        return value
    try:
        return PostStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in PostStatus)
        raise PostValidationError(
            f"Invalid status '{value}'. Expected one of: {allowed}", "status",
        ) from None


def parse_needed_by(value: Any) -> datetime:
    """Parse a point in time. Naive datetimes are assumed to be UTC."""
    if isinstance(value, str):
        try:
            # "Z" suffix accepted for JS-style ISO strings
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise PostValidationError(_BAD_NEEDED_BY, "needed_by") from e
    if not isinstance(value, datetime):
        raise PostValidationError(_BAD_NEEDED_BY, "needed_by")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    try:
        return value.astimezone(timezone.utc)
    except OverflowError as e:
        # e.g. 9999-12-31T23:00-05:00 lands past datetime.max in UTC
        raise PostValidationError(_BAD_NEEDED_BY, "needed_by") from e


def validate_post_fields(
    title: Any,
    description: Any,
    category: Any,
    location: Any,
    needed_by: Any,
) -> PostFields:
    """Validate all author-owned fields. First error wins."""
    return PostFields(
        title=require_text(title, "title"),
        description=require_text(description, "description"),
        category=parse_category(category),
        location=require_text(location, "location"),
        needed_by=parse_needed_by(needed_by),
    )


def validate_pagination(page: int, page_size: int, max_page_size: int) -> None:
    """Pages are 1-indexed; page_size bounded by configuration."""
    if page < 1:
        raise PostValidationError("page must be >= 1", "page")
    if page_size < 1 or page_size > max_page_size:
        raise PostValidationError(
            f"page_size must be between 1 and {max_page_size}", "page_size",
        )
