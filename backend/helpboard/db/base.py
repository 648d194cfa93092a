"""SQLAlchemy Declarative Base — shared base class and column typing for HelpBoard tables.

Invariants:
    - Every datetime column is timezone-aware; every UUID column uses the
      dialect's native uuid type (Postgres) or CHAR(32) (SQLite)
    - Base.metadata is the single source of truth for alembic autogenerate

Design Decisions:
    - type_annotation_map instead of per-column types: Mapped[datetime] can never
      silently become a naive TIMESTAMP, which would break needed_by ordering
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for HelpBoard ORM models."""
    type_annotation_map = {
        datetime: DateTime(timezone=True),
        uuid.UUID: Uuid(as_uuid=True),
    }
