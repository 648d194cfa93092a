"""SQL HelpPost Store — verifies the document round-trip and the conditional write.

Invariants:
    - Offers survive the JSON column with ids, order and statuses intact
    - Timestamps come back timezone-aware
    - A write against a stale version raises ConcurrencyError and persists nothing
    - Mutation errors roll back and propagate unchanged
"""

import copy
from uuid import uuid4

import pytest

from helpboard.core.domain_types import Category, OfferStatus, PostId, PostStatus
from helpboard.core.errors import (
    ConcurrencyError, DuplicateOfferError, ResourceNotFoundError,
)
from helpboard.core.repository_protocols import PostFilter
from helpboard.infrastructure.help_post_store import offer_from_json, offer_to_json
from tests.factories import AUTHOR, HELPER, NOW, OTHER_HELPER, make_post


async def test_insert_and_load_round_trip(sql_store):
    post = make_post()
    post.add_offer(HELPER, "hi", NOW)
    await sql_store.insert(post)

    loaded = await sql_store.load(post.id)
    assert loaded.id == post.id
    assert loaded.author_id == AUTHOR
    assert loaded.version == 0
    assert loaded.created_at == NOW
    assert loaded.created_at.tzinfo is not None
    assert loaded.offers == post.offers


async def test_load_missing_returns_none(sql_store):
    assert await sql_store.load(PostId(uuid4())) is None


async def test_atomic_update_bumps_version(sql_store):
    post = await sql_store.insert(make_post())
    updated = await sql_store.atomic_update(
        post.id, lambda p: p.add_offer(HELPER, "", NOW),
    )
    assert updated.version == 1
    loaded = await sql_store.load(post.id)
    assert loaded.version == 1
    assert [o.helper_id for o in loaded.offers] == [HELPER]


async def test_stale_compare_and_swap_is_rejected(sql_store):
    post = await sql_store.insert(make_post())
    stale = copy.deepcopy(await sql_store.load(post.id))

    await sql_store.atomic_update(post.id, lambda p: p.add_offer(HELPER, "", NOW))

    stale.add_offer(OTHER_HELPER, "", NOW)
    with pytest.raises(ConcurrencyError):
        await sql_store.compare_and_swap(stale)

    loaded = await sql_store.load(post.id)
    assert [o.helper_id for o in loaded.offers] == [HELPER]
    assert loaded.version == 1


async def test_mutation_error_persists_nothing(sql_store):
    post = await sql_store.insert(make_post())
    await sql_store.atomic_update(post.id, lambda p: p.add_offer(HELPER, "", NOW))

    with pytest.raises(DuplicateOfferError):
        await sql_store.atomic_update(
            post.id, lambda p: p.add_offer(HELPER, "again", NOW),
        )
    loaded = await sql_store.load(post.id)
    assert len(loaded.offers) == 1
    assert loaded.version == 1


async def test_atomic_update_missing_post(sql_store):
    with pytest.raises(ResourceNotFoundError):
        await sql_store.atomic_update(PostId(uuid4()), lambda p: None)


async def test_delete(sql_store):
    post = await sql_store.insert(make_post())
    assert await sql_store.delete(post.id) is True
    assert await sql_store.load(post.id) is None
    assert await sql_store.delete(post.id) is False


async def test_query_filters_and_counts(sql_lifecycle, sql_store):
    shopping = await sql_lifecycle.create_post(
        AUTHOR, "a", "b", "Shopping", "c", "2026-03-05T10:00:00Z",
    )
    await sql_lifecycle.create_post(
        AUTHOR, "a", "b", "Transport", "c", "2026-03-05T10:00:00Z",
    )
    posts, total = await sql_store.query(
        PostFilter(category=Category.SHOPPING), page=1, page_size=10,
    )
    assert total == 1
    assert [p.id for p in posts] == [shopping.id]

    posts, total = await sql_store.query(
        PostFilter(status=PostStatus.COMPLETED), page=1, page_size=10,
    )
    assert (posts, total) == ([], 0)


async def test_query_orders_newest_first_and_pages(sql_lifecycle, sql_store):
    created = [
        await sql_lifecycle.create_post(
            AUTHOR, f"post {i}", "b", "Other", "c", "2026-03-05T10:00:00Z",
        )
        for i in range(3)
    ]
    posts, total = await sql_store.query(PostFilter(), page=1, page_size=2)
    assert total == 3
    assert [p.id for p in posts] == [created[2].id, created[1].id]
    posts, _ = await sql_store.query(PostFilter(), page=2, page_size=2)
    assert [p.id for p in posts] == [created[0].id]


async def test_list_by_author(sql_lifecycle, sql_store):
    mine = await sql_lifecycle.create_post(
        AUTHOR, "a", "b", "Other", "c", "2026-03-05T10:00:00Z",
    )
    await sql_lifecycle.create_post(
        HELPER, "a", "b", "Other", "c", "2026-03-05T10:00:00Z",
    )
    assert [p.id for p in await sql_store.list_by_author(AUTHOR)] == [mine.id]


async def test_sql_lifecycle_accept_flow(sql_lifecycle):
    post = await sql_lifecycle.create_post(
        AUTHOR, "a", "b", "Other", "c", "2026-03-05T10:00:00Z",
    )
    post = await sql_lifecycle.submit_offer(post.id, HELPER, "hi")
    post = await sql_lifecycle.accept_offer(post.id, post.offers[0].id, AUTHOR)
    post = await sql_lifecycle.update_status(post.id, AUTHOR, "completed")

    loaded = await sql_lifecycle.get_post(post.id)
    assert loaded.status == PostStatus.COMPLETED
    assert loaded.offers[0].offer_status == OfferStatus.ACCEPTED
    assert loaded.version == 3


def test_offer_json_round_trip():
    post = make_post()
    offer = post.add_offer(HELPER, "hello", NOW)
    data = offer_to_json(offer)
    assert data["offer_status"] == "pending"
    assert data["offered_at"] == NOW.isoformat()
    assert offer_from_json(data) == offer
