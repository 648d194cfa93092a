"""HelpPost ORM — persists the help-post aggregate as a single document row.

Invariants:
    - id is UUID primary key
    - offers is a JSON array embedded in the row: the whole aggregate lives in one
      row, so a single conditional UPDATE is atomic for post + offers
    - version increments on every write (optimistic concurrency token)

Design Decisions:
    - JSON column for offers over a child table: offers have no identity outside
      their post and every invariant is scoped to one post
    - status/category as short strings: enum values validated in core/
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Index, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from helpboard.core.domain_types import MAX_USER_ID_LENGTH
from helpboard.core.validate_fields import TEXT_LIMITS
from helpboard.db.base import Base


class HelpPostRow(Base):
    """help_posts row — one per HelpPost aggregate."""
    __tablename__ = "help_posts"
    __table_args__ = (
        Index("ix_help_posts_author_created", "author_id", "created_at"),
        Index("ix_help_posts_category_status", "category", "status"),
        CheckConstraint(
            "status IN ('open', 'in-progress', 'completed')",
            name="ck_help_posts_status",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    author_id: Mapped[str] = mapped_column(String(MAX_USER_ID_LENGTH), nullable=False)
    title: Mapped[str] = mapped_column(
        String(TEXT_LIMITS["title"]), nullable=False,
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    location: Mapped[str] = mapped_column(
        String(TEXT_LIMITS["location"]), nullable=False,
    )
    needed_by: Mapped[datetime]
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="open",
    )
    offers: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    version: Mapped[int] = mapped_column(default=0)
    created_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(timezone.utc),
    )
