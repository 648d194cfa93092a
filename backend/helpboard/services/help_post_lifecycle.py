"""Help Post Lifecycle — the eight operations that create, query and transition posts.

Invariants:
    - Every mutation is one atomic_update on one post; nothing partial is persisted
    - authorize() runs inside the mutation, against the freshly loaded post
    - Preconditions (duplicate offer, exclusive acceptance) are re-evaluated on every
      attempt, so they always hold for the state that is actually committed
    - ConcurrencyError is retried up to max_attempts, then surfaced
    - check_invariants / check_offer_transitions guard every commit
    - Unexpected (non-HelpBoardError) failures surface as opaque InternalError

Design Decisions:
    - Thin async shell around the pure aggregate (impureim sandwich): load -> pure
      mutation -> conditional write, orchestrated by the store
    - Clock injected: tests drive created_at ordering deterministically
    - Observer injected: logging stays out of the core contract
"""

import copy
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

from helpboard.core.authorization import authorize
from helpboard.core.domain_types import (
    OfferId, Operation, PostId, UserId,
)
from helpboard.core.errors import (
    ConcurrencyError, ErrorContext, HelpBoardError, InternalError,
    ResourceNotFoundError,
)
from helpboard.core.help_post import (
    HelpPost, check_invariants, check_offer_transitions,
)
from helpboard.core.repository_protocols import (
    HelpPostStore, LifecycleObserver, Mutation, PostFilter,
)
from helpboard.core.validate_fields import (
    parse_category, parse_status, validate_pagination, validate_post_fields,
)

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HelpPostLifecycle:
    """Lifecycle engine for help posts and their embedded offers."""

    def __init__(
        self,
        store: HelpPostStore,
        observer: LifecycleObserver,
        clock: Callable[[], datetime] = utc_now,
        max_attempts: int = 3,
        max_page_size: int = 100,
    ):
        self.store = store
        self.observer = observer
        self.clock = clock
        self.max_attempts = max(1, max_attempts)
        self.max_page_size = max_page_size

    # ─── Creation & queries ──────────────────────────────────────

    async def create_post(
        self,
        author_id: UserId,
        title: Any,
        description: Any,
        category: Any,
        location: Any,
        needed_by: Any,
    ) -> HelpPost:
        """Create an open post with no offers."""
        with self._observed(Operation.CREATE_POST, author_id):
            fields = validate_post_fields(
                title, description, category, location, needed_by,
            )
            post = await self.store.insert(
                HelpPost.create(author_id, fields, self.clock()),
            )
        self.observer.operation_succeeded(
            Operation.CREATE_POST, author_id, post.id,
        )
        return post

    async def list_posts(
        self,
        category: Any = None,
        status: Any = None,
        page: int = 1,
        page_size: int = 10,
    ) -> tuple[list[HelpPost], int]:
        """Filtered, paginated listing, newest first. Empty match is not an error."""
        with self._observed(Operation.LIST_POSTS, None):
            validate_pagination(page, page_size, self.max_page_size)
            post_filter = PostFilter(
                category=parse_category(category) if category else None,
                status=parse_status(status) if status else None,
            )
            return await self.store.query(post_filter, page, page_size)

    async def list_posts_by_author(self, author_id: UserId) -> list[HelpPost]:
        with self._observed(Operation.LIST_POSTS_BY_AUTHOR, author_id):
            return await self.store.list_by_author(author_id)

    async def get_post(self, post_id: PostId) -> HelpPost:
        with self._observed(Operation.GET_POST, None, post_id):
            post = await self.store.load(post_id)
            if post is None:
                raise ResourceNotFoundError(
                    "HelpPost", str(post_id), ErrorContext(post_id=str(post_id)),
                )
            return post

    # ─── Offer arbitration ───────────────────────────────────────

    async def submit_offer(
        self, post_id: PostId, helper_id: UserId, message: str | None = None,
    ) -> HelpPost:
        """Append a pending offer from helper_id. Allowed in any post status."""
        now = self.clock()
        text = (message or "").strip()
        post = await self._mutate(
            Operation.SUBMIT_OFFER, post_id, helper_id,
            lambda p: p.add_offer(helper_id, text, now),
        )
        offer = post.offer_from(helper_id)
        self.observer.operation_succeeded(
            Operation.SUBMIT_OFFER, helper_id, post_id,
            offer_id=str(offer.id) if offer else None,
        )
        return post

    async def accept_offer(
        self, post_id: PostId, offer_id: OfferId, caller_id: UserId,
    ) -> HelpPost:
        """Accept one offer (exclusive) and move the post to in-progress."""
        post = await self._mutate(
            Operation.ACCEPT_OFFER, post_id, caller_id,
            lambda p: p.accept_offer(offer_id),
        )
        self.observer.operation_succeeded(
            Operation.ACCEPT_OFFER, caller_id, post_id, offer_id=str(offer_id),
        )
        return post

    async def reject_offer(
        self, post_id: PostId, offer_id: OfferId, caller_id: UserId,
    ) -> HelpPost:
        post = await self._mutate(
            Operation.REJECT_OFFER, post_id, caller_id,
            lambda p: p.reject_offer(offer_id),
        )
        self.observer.operation_succeeded(
            Operation.REJECT_OFFER, caller_id, post_id, offer_id=str(offer_id),
        )
        return post

    # ─── Author-owned changes ────────────────────────────────────

    async def update_status(
        self, post_id: PostId, caller_id: UserId, new_status: Any,
    ) -> HelpPost:
        """Author sets status; in-progress/completed need an accepted offer, open is an override."""
        post = await self._mutate(
            Operation.UPDATE_STATUS, post_id, caller_id,
            lambda p: p.change_status(parse_status(new_status)),
        )
        self.observer.operation_succeeded(
            Operation.UPDATE_STATUS, caller_id, post_id, status=post.status.value,
        )
        return post

    async def edit_post(
        self, post_id: PostId, caller_id: UserId, fields: dict[str, Any],
    ) -> HelpPost:
        """Rewrite title/description/category/location/needed_by with creation's rules."""

        def apply(post: HelpPost) -> None:
            post.apply_edit(validate_post_fields(
                fields.get("title"),
                fields.get("description"),
                fields.get("category"),
                fields.get("location"),
                fields.get("needed_by"),
            ))

        post = await self._mutate(Operation.EDIT_POST, post_id, caller_id, apply)
        self.observer.operation_succeeded(Operation.EDIT_POST, caller_id, post_id)
        return post

    async def delete_post(self, post_id: PostId, caller_id: UserId) -> None:
        """Remove the post and all its offers. Author-only."""
        with self._observed(Operation.DELETE_POST, caller_id, post_id):
            post = await self.store.load(post_id)
            if post is None:
                raise ResourceNotFoundError(
                    "HelpPost", str(post_id), ErrorContext(post_id=str(post_id)),
                )
            # author_id is immutable, so the check cannot go stale before delete
            authorize(Operation.DELETE_POST, caller_id, post)
            if not await self.store.delete(post_id):
                raise ResourceNotFoundError(
                    "HelpPost", str(post_id), ErrorContext(post_id=str(post_id)),
                )
        self.observer.operation_succeeded(Operation.DELETE_POST, caller_id, post_id)

    # ─── Helpers ─────────────────────────────────────────────────

    async def _mutate(
        self,
        operation: Operation,
        post_id: PostId,
        caller_id: UserId,
        mutation: Mutation,
    ) -> HelpPost:
        """Authorize + mutate + verify invariants atomically, retrying on conflict."""

        def guarded(post: HelpPost) -> None:
            authorize(operation, caller_id, post)
            before = copy.deepcopy(post)
            mutation(post)
            check_invariants(post)
            check_offer_transitions(before, post)

        with self._observed(operation, caller_id, post_id):
            attempt = 1
            while True:
                try:
                    return await self.store.atomic_update(post_id, guarded)
                except ConcurrencyError:
                    if attempt >= self.max_attempts:
                        raise
                    self.observer.conflict_retried(operation, post_id, attempt)
                    attempt += 1

    @contextmanager
    def _observed(
        self,
        operation: Operation,
        caller_id: UserId | None,
        post_id: PostId | None = None,
    ) -> Iterator[None]:
        """Report failures to the observer; wrap unexpected ones as InternalError."""
        try:
            yield
        except HelpBoardError as e:
            if e.context.operation is None:
                e.context.operation = operation.value
            self.observer.operation_failed(operation, caller_id, post_id, e)
            raise
        except Exception as e:
            logger.error(
                f"Unexpected failure in {operation.value}: {e}", exc_info=True,
            )
            error = InternalError(ErrorContext(
                post_id=str(post_id) if post_id else None,
                operation=operation.value,
            ))
            self.observer.operation_failed(operation, caller_id, post_id, error)
            raise error from e
