"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but the mutation functions passed to atomic_update are pure and sync —
      the shell orchestrates the async calls around the pure logic
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from helpboard.core.domain_types import (
    Category, Operation, PostId, PostStatus, UserId,
)
from helpboard.core.errors import HelpBoardError
from helpboard.core.help_post import HelpPost


@dataclass(frozen=True)
class PostFilter:
    """Conjunctive filter for list queries. None means 'any'."""
    category: Category | None = None
    status: PostStatus | None = None


Mutation = Callable[[HelpPost], None]


class HelpPostStore(Protocol):
    """Contract for durable help-post storage — implemented by shell.

    atomic_update loads the freshest document, applies mutation in place and
    writes it back only if nobody else wrote in between; otherwise it raises
    ConcurrencyError and nothing is persisted. Errors raised by mutation
    propagate unchanged and nothing is persisted.
    """
    async def load(self, post_id: PostId) -> HelpPost | None: ...
    async def insert(self, post: HelpPost) -> HelpPost: ...
    async def atomic_update(self, post_id: PostId, mutation: Mutation) -> HelpPost: ...
    async def compare_and_swap(self, post: HelpPost) -> HelpPost: ...
    async def delete(self, post_id: PostId) -> bool: ...
    async def query(
        self, post_filter: PostFilter, page: int, page_size: int,
    ) -> tuple[list[HelpPost], int]: ...
    async def list_by_author(self, author_id: UserId) -> list[HelpPost]: ...


class IdentityProvider(Protocol):
    """Resolves an opaque credential to a stable user id, or raises AuthenticationError."""
    def resolve_caller(self, credential: str) -> UserId: ...


class LifecycleObserver(Protocol):
    """Observability collaborator notified by the lifecycle engine."""
    def operation_succeeded(
        self, operation: Operation, caller_id: UserId | None,
        post_id: PostId | None, **fields: object,
    ) -> None: ...
    def operation_failed(
        self, operation: Operation, caller_id: UserId | None,
        post_id: PostId | None, error: HelpBoardError,
    ) -> None: ...
    def conflict_retried(
        self, operation: Operation, post_id: PostId, attempt: int,
    ) -> None: ...
