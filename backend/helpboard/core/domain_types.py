"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - PostId, OfferId wrap UUIDs; UserId wraps the opaque identity string from the token
    - All valid states encoded as Enums — no raw string matching
    - Enum values are the exact wire values (category labels, kebab-case statuses)

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

PostId = NewType("PostId", UUID)
OfferId = NewType("OfferId", UUID)
UserId = NewType("UserId", str)


# ─── Enums ───────────────────────────────────────────────────────

class Category(str, Enum):
    """Fixed help-post categories. Values are shown to users verbatim."""
    SHOPPING = "Shopping"
    TRANSPORT = "Transport"
    STUDY_HELP = "Study Help"
    FOOD_DELIVERY = "Food Delivery"
    RIDE_SHARE = "Ride Share"
    BOOK_EXCHANGE = "Book Exchange"
    PROJECT_HELP = "Project Help"
    OTHER = "Other"


class PostStatus(str, Enum):
    """HelpPost lifecycle states — maps to DB `status` column."""
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class OfferStatus(str, Enum):
    """Offer states. Only PENDING may transition."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Operation(str, Enum):
    """Lifecycle operations — used by the authorization policy and logs."""
    CREATE_POST = "create_post"
    LIST_POSTS = "list_posts"
    LIST_POSTS_BY_AUTHOR = "list_posts_by_author"
    GET_POST = "get_post"
    SUBMIT_OFFER = "submit_offer"
    ACCEPT_OFFER = "accept_offer"
    REJECT_OFFER = "reject_offer"
    UPDATE_STATUS = "update_status"
    EDIT_POST = "edit_post"
    DELETE_POST = "delete_post"


# Statuses that require an accepted helper
STATUSES_REQUIRING_HELPER = frozenset({PostStatus.IN_PROGRESS, PostStatus.COMPLETED})

# Width of author_id / helper_id storage; identities longer than this are refused
MAX_USER_ID_LENGTH = 64
