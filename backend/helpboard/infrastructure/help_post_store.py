"""SQL HelpPost Store — HelpPostStore implementation over one async SQLAlchemy session.

Invariants:
    - Every write is a conditional UPDATE on (id, version); 0 rows -> ConcurrencyError
    - A failed write rolls back, so the next load sees the freshest committed row
    - Reads use populate_existing: the identity map never serves a stale document
    - Timestamps returned to core are always timezone-aware (UTC)

Design Decisions:
    - Optimistic concurrency over SELECT ... FOR UPDATE: works on SQLite in tests
      and Postgres in production, and keeps the read-modify-write in one place
    - Offers serialized to plain dicts (ISO timestamps) inside the JSON column
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from helpboard.core.domain_types import (
    Category, OfferId, OfferStatus, PostId, PostStatus, UserId,
)
from helpboard.core.errors import (
    ConcurrencyError, ErrorContext, ResourceNotFoundError,
)
from helpboard.core.help_post import HelpPost, Offer
from helpboard.core.repository_protocols import Mutation, PostFilter
from helpboard.models.help_post import HelpPostRow

logger = logging.getLogger(__name__)


def _aware(value: datetime) -> datetime:
    """SQLite drops tzinfo; treat naive values as UTC."""
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def offer_to_json(offer: Offer) -> dict:
    return {
        "id": str(offer.id),
        "helper_id": offer.helper_id,
        "message": offer.message,
        "offered_at": offer.offered_at.isoformat(),
        "offer_status": offer.offer_status.value,
    }


def offer_from_json(data: dict) -> Offer:
    return Offer(
        id=OfferId(UUID(data["id"])),
        helper_id=UserId(data["helper_id"]),
        message=data.get("message", ""),
        offered_at=_aware(datetime.fromisoformat(data["offered_at"])),
        offer_status=OfferStatus(data.get("offer_status", "pending")),
    )


def row_to_post(row: HelpPostRow) -> HelpPost:
    return HelpPost(
        id=PostId(row.id),
        author_id=UserId(row.author_id),
        title=row.title,
        description=row.description,
        category=Category(row.category),
        location=row.location,
        needed_by=_aware(row.needed_by),
        created_at=_aware(row.created_at),
        status=PostStatus(row.status),
        offers=[offer_from_json(o) for o in row.offers or []],
        version=row.version,
    )


def _document_values(post: HelpPost) -> dict:
    """Mutable columns of the document, as written on every update."""
    return {
        "title": post.title,
        "description": post.description,
        "category": post.category.value,
        "location": post.location,
        "needed_by": post.needed_by,
        "status": post.status.value,
        "offers": [offer_to_json(o) for o in post.offers],
    }


class SqlHelpPostStore:
    """Help-post persistence bound to one request-scoped AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def load(self, post_id: PostId) -> HelpPost | None:
        result = await self.db.execute(
            select(HelpPostRow)
            .where(HelpPostRow.id == post_id)
            .execution_options(populate_existing=True),
        )
        row = result.scalar_one_or_none()
        return row_to_post(row) if row else None

    async def insert(self, post: HelpPost) -> HelpPost:
        row = HelpPostRow(
            id=post.id,
            author_id=post.author_id,
            created_at=post.created_at,
            version=0,
            **_document_values(post),
        )
        self.db.add(row)
        await self.db.commit()
        post.version = 0
        return post

    async def compare_and_swap(self, post: HelpPost) -> HelpPost:
        """Write post if its version is still current; bump the version."""
        result = await self.db.execute(
            update(HelpPostRow)
            .where(
                HelpPostRow.id == post.id,
                HelpPostRow.version == post.version,
            )
            .values(version=post.version + 1, **_document_values(post))
            .execution_options(synchronize_session=False),
        )
        if result.rowcount != 1:
            await self.db.rollback()
            logger.warning(
                f"Stale write rejected for post {post.id} at version {post.version}",
                extra={"post_id": str(post.id)},
            )
            raise ConcurrencyError(
                "Help post was modified concurrently, please retry",
                ErrorContext(post_id=str(post.id)),
            )
        await self.db.commit()
        post.version += 1
        return post

    async def atomic_update(self, post_id: PostId, mutation: Mutation) -> HelpPost:
        """Load freshest state, apply mutation, conditionally write."""
        post = await self.load(post_id)
        if post is None:
            # close the read transaction before surfacing
            await self.db.rollback()
            raise ResourceNotFoundError(
                "HelpPost", str(post_id), ErrorContext(post_id=str(post_id)),
            )
        try:
            mutation(post)
        except Exception:
            await self.db.rollback()
            raise
        return await self.compare_and_swap(post)

    async def delete(self, post_id: PostId) -> bool:
        result = await self.db.execute(
            delete(HelpPostRow)
            .where(HelpPostRow.id == post_id)
            .execution_options(synchronize_session=False),
        )
        await self.db.commit()
        return result.rowcount > 0

    async def query(
        self, post_filter: PostFilter, page: int, page_size: int,
    ) -> tuple[list[HelpPost], int]:
        conditions = []
        if post_filter.category is not None:
            conditions.append(HelpPostRow.category == post_filter.category.value)
        if post_filter.status is not None:
            conditions.append(HelpPostRow.status == post_filter.status.value)

        total = await self.db.scalar(
            select(func.count()).select_from(HelpPostRow).where(*conditions),
        )
        result = await self.db.execute(
            select(HelpPostRow)
            .where(*conditions)
            .order_by(HelpPostRow.created_at.desc(), HelpPostRow.id.desc())
            .limit(page_size)
            .offset((page - 1) * page_size)
            .execution_options(populate_existing=True),
        )
        return [row_to_post(r) for r in result.scalars().all()], total or 0

    async def list_by_author(self, author_id: UserId) -> list[HelpPost]:
        result = await self.db.execute(
            select(HelpPostRow)
            .where(HelpPostRow.author_id == author_id)
            .order_by(HelpPostRow.created_at.desc(), HelpPostRow.id.desc())
            .execution_options(populate_existing=True),
        )
        return [row_to_post(r) for r in result.scalars().all()]
