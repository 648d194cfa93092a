"""In-memory HelpPostStore — same contract as SqlHelpPostStore, plus race hooks.

before_write callbacks run between load/mutation and the conditional write,
so a test can commit a competing change exactly where a real race would land.
"""

import copy
from collections.abc import Awaitable, Callable

from helpboard.core.domain_types import PostId, UserId
from helpboard.core.errors import (
    ConcurrencyError, ErrorContext, ResourceNotFoundError,
)
from helpboard.core.help_post import HelpPost
from helpboard.core.repository_protocols import Mutation, PostFilter


class InMemoryHelpPostStore:
    def __init__(self):
        self.posts: dict[PostId, HelpPost] = {}
        self.before_write: list[Callable[[HelpPost], Awaitable[None]]] = []
        self.writes = 0

    async def load(self, post_id: PostId) -> HelpPost | None:
        post = self.posts.get(post_id)
        return copy.deepcopy(post) if post else None

    async def insert(self, post: HelpPost) -> HelpPost:
        post.version = 0
        self.posts[post.id] = copy.deepcopy(post)
        return post

    async def compare_and_swap(self, post: HelpPost) -> HelpPost:
        hooks, self.before_write = self.before_write, []
        for hook in hooks:
            await hook(post)
        current = self.posts.get(post.id)
        if current is None or current.version != post.version:
            raise ConcurrencyError(
                "Help post was modified concurrently, please retry",
                ErrorContext(post_id=str(post.id)),
            )
        post.version += 1
        self.posts[post.id] = copy.deepcopy(post)
        self.writes += 1
        return post

    async def atomic_update(self, post_id: PostId, mutation: Mutation) -> HelpPost:
        post = await self.load(post_id)
        if post is None:
            raise ResourceNotFoundError("HelpPost", str(post_id))
        mutation(post)
        return await self.compare_and_swap(post)

    async def delete(self, post_id: PostId) -> bool:
        return self.posts.pop(post_id, None) is not None

    async def query(
        self, post_filter: PostFilter, page: int, page_size: int,
    ) -> tuple[list[HelpPost], int]:
        matches = [
            p for p in self.posts.values()
            if (post_filter.category is None or p.category == post_filter.category)
            and (post_filter.status is None or p.status == post_filter.status)
        ]
        matches.sort(key=lambda p: (p.created_at, str(p.id)), reverse=True)
        start = (page - 1) * page_size
        return copy.deepcopy(matches[start:start + page_size]), len(matches)

    async def list_by_author(self, author_id: UserId) -> list[HelpPost]:
        mine = [p for p in self.posts.values() if p.author_id == author_id]
        mine.sort(key=lambda p: (p.created_at, str(p.id)), reverse=True)
        return copy.deepcopy(mine)
