"""Help Post Schemas — Pydantic models for the help-post API boundary.

Invariants:
    - HelpPostCreate only checks JSON shape (all five fields present, all strings);
      trimming, length limits, category and needed_by parsing happen in
      core/validate_fields.py, the same rules edit_post runs
    - HelpPostUpdate / StatusUpdate are deliberately loose: the lifecycle engine
      validates them AFTER authorization, so a non-author always gets 403
    - Responses are built from core aggregates (from_domain), never from ORM rows

Design Decisions:
    - needed_by typed as str, not datetime: pydantic would also accept epoch
      numbers, which edit_post refuses
"""

from datetime import datetime
from math import ceil
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from helpboard.core.domain_types import Category, OfferStatus, PostStatus
from helpboard.core.help_post import HelpPost, Offer


class HelpPostCreate(BaseModel):
    """Post creation payload. Field rules are applied by the lifecycle engine."""
    title: str
    description: str
    category: str
    location: str
    needed_by: str


class HelpPostUpdate(BaseModel):
    """Full rewrite of author-owned fields. Validated by the engine."""
    title: Any = None
    description: Any = None
    category: Any = None
    location: Any = None
    needed_by: Any = None


class OfferCreate(BaseModel):
    message: str | None = Field(None, max_length=1_000)


class StatusUpdate(BaseModel):
    status: str


class OfferResponse(BaseModel):
    id: UUID
    helper_id: str
    message: str
    offered_at: datetime
    offer_status: OfferStatus

    @classmethod
    def from_domain(cls, offer: Offer) -> "OfferResponse":
        return cls(
            id=offer.id,
            helper_id=offer.helper_id,
            message=offer.message,
            offered_at=offer.offered_at,
            offer_status=offer.offer_status,
        )


class HelpPostResponse(BaseModel):
    """Help post as seen by any authenticated member."""
    id: UUID
    author_id: str
    title: str
    description: str
    category: Category
    location: str
    needed_by: datetime
    status: PostStatus
    offers: list[OfferResponse]
    created_at: datetime

    @classmethod
    def from_domain(cls, post: HelpPost) -> "HelpPostResponse":
        return cls(
            id=post.id,
            author_id=post.author_id,
            title=post.title,
            description=post.description,
            category=post.category,
            location=post.location,
            needed_by=post.needed_by,
            status=post.status,
            offers=[OfferResponse.from_domain(o) for o in post.offers],
            created_at=post.created_at,
        )


class HelpPostPage(BaseModel):
    items: list[HelpPostResponse]
    total: int
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def build(
        cls, posts: list[HelpPost], total: int, page: int, page_size: int,
    ) -> "HelpPostPage":
        return cls(
            items=[HelpPostResponse.from_domain(p) for p in posts],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=ceil(total / page_size) if page_size else 0,
        )
