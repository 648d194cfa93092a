"""Help Post Routes — HTTP surface of the help-post lifecycle engine.

Invariants:
    - Every route requires an authenticated caller (get_current_user)
    - Routes contain no business rules: authorization and transitions live in
      HelpPostLifecycle / core
    - Domain errors propagate to the global HelpBoardError handler

Design Decisions:
    - /mine registered before /{post_id} so it is not parsed as a UUID
    - Mutations return the full updated post so clients re-render from one payload
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from helpboard.api.dependencies import get_current_user, get_lifecycle
from helpboard.config import get_settings
from helpboard.core.domain_types import (
    Category, OfferId, PostId, PostStatus, UserId,
)
from helpboard.schemas.help_post import (
    HelpPostCreate, HelpPostPage, HelpPostResponse, HelpPostUpdate,
    OfferCreate, StatusUpdate,
)
from helpboard.services.help_post_lifecycle import HelpPostLifecycle

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/help-posts", tags=["help-posts"])


@router.post(
    "", response_model=HelpPostResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_help_post(
    body: HelpPostCreate,
    caller: UserId = Depends(get_current_user),
    lifecycle: HelpPostLifecycle = Depends(get_lifecycle),
):
    """Create a help post owned by the caller."""
    post = await lifecycle.create_post(
        caller, body.title, body.description, body.category,
        body.location, body.needed_by,
    )
    return HelpPostResponse.from_domain(post)


@router.get("", response_model=HelpPostPage)
async def list_help_posts(
    category: Category | None = Query(None),
    status_filter: PostStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1),
    caller: UserId = Depends(get_current_user),
    lifecycle: HelpPostLifecycle = Depends(get_lifecycle),
):
    """List help posts, newest first, optionally filtered by category and status."""
    size = page_size or get_settings().default_page_size
    posts, total = await lifecycle.list_posts(category, status_filter, page, size)
    return HelpPostPage.build(posts, total, page, size)


@router.get("/mine", response_model=list[HelpPostResponse])
async def list_my_help_posts(
    caller: UserId = Depends(get_current_user),
    lifecycle: HelpPostLifecycle = Depends(get_lifecycle),
):
    """All posts authored by the caller, newest first."""
    posts = await lifecycle.list_posts_by_author(caller)
    return [HelpPostResponse.from_domain(p) for p in posts]


@router.get("/{post_id}", response_model=HelpPostResponse)
async def get_help_post(
    post_id: UUID,
    caller: UserId = Depends(get_current_user),
    lifecycle: HelpPostLifecycle = Depends(get_lifecycle),
):
    post = await lifecycle.get_post(PostId(post_id))
    return HelpPostResponse.from_domain(post)


@router.put("/{post_id}", response_model=HelpPostResponse)
async def edit_help_post(
    post_id: UUID,
    body: HelpPostUpdate,
    caller: UserId = Depends(get_current_user),
    lifecycle: HelpPostLifecycle = Depends(get_lifecycle),
):
    """Rewrite the author-owned fields. Status and offers are untouched."""
    post = await lifecycle.edit_post(PostId(post_id), caller, body.model_dump())
    return HelpPostResponse.from_domain(post)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_help_post(
    post_id: UUID,
    caller: UserId = Depends(get_current_user),
    lifecycle: HelpPostLifecycle = Depends(get_lifecycle),
):
    """Delete the post and all of its offers."""
    await lifecycle.delete_post(PostId(post_id), caller)


@router.post("/{post_id}/offers", response_model=HelpPostResponse)
async def offer_help(
    post_id: UUID,
    body: OfferCreate,
    caller: UserId = Depends(get_current_user),
    lifecycle: HelpPostLifecycle = Depends(get_lifecycle),
):
    """Offer help on someone else's post."""
    post = await lifecycle.submit_offer(PostId(post_id), caller, body.message)
    return HelpPostResponse.from_domain(post)


@router.put(
    "/{post_id}/offers/{offer_id}/accept", response_model=HelpPostResponse,
)
async def accept_offer(
    post_id: UUID,
    offer_id: UUID,
    caller: UserId = Depends(get_current_user),
    lifecycle: HelpPostLifecycle = Depends(get_lifecycle),
):
    post = await lifecycle.accept_offer(PostId(post_id), OfferId(offer_id), caller)
    return HelpPostResponse.from_domain(post)


@router.put(
    "/{post_id}/offers/{offer_id}/reject", response_model=HelpPostResponse,
)
async def reject_offer(
    post_id: UUID,
    offer_id: UUID,
    caller: UserId = Depends(get_current_user),
    lifecycle: HelpPostLifecycle = Depends(get_lifecycle),
):
    post = await lifecycle.reject_offer(PostId(post_id), OfferId(offer_id), caller)
    return HelpPostResponse.from_domain(post)


@router.put("/{post_id}/status", response_model=HelpPostResponse)
async def update_help_post_status(
    post_id: UUID,
    body: StatusUpdate,
    caller: UserId = Depends(get_current_user),
    lifecycle: HelpPostLifecycle = Depends(get_lifecycle),
):
    """Author sets status. Setting 'open' reopens the post from any state."""
    post = await lifecycle.update_status(PostId(post_id), caller, body.status)
    return HelpPostResponse.from_domain(post)
