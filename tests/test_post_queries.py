# tests/test_post_queries.py
import asyncio

import pytest
from sqlalchemy import update

from motd_bot.database.models.sqlalchemy_models import posts, utcnow
from motd_bot.database.queries import PostQueries


@pytest.mark.asyncio
async def test_create_and_get(engine):
    post_id = await PostQueries.create(
        engine, body="foo", author_id=42, author_name="alice", channel_ref=7
    )

    post = await PostQueries.get(engine, post_id)
    assert post.body == "foo"
    assert post.author_id == 42
    assert post.author_name == "alice"
    assert post.channel_ref == 7
    assert post.external_message_ref is None
    assert post.cross_posted is False
    assert post.created_at is not None


@pytest.mark.asyncio
async def test_create_without_author(engine):
    post_id = await PostQueries.create(engine, body="anonymous")
    post = await PostQueries.get(engine, post_id)
    assert post.author_id is None
    assert post.channel_ref is None


@pytest.mark.asyncio
async def test_ids_are_unique(engine):
    ids = {await PostQueries.create(engine, body=f"m{i}") for i in range(5)}
    assert len(ids) == 5


@pytest.mark.asyncio
async def test_attach_external_ref_is_single_assignment(engine):
    post_id = await PostQueries.create(engine, body="foo")

    assert await PostQueries.attach_external_ref(engine, post_id, 555) is True
    assert await PostQueries.attach_external_ref(engine, post_id, 555) is True
    assert await PostQueries.attach_external_ref(engine, post_id, 999) is False

    post = await PostQueries.get(engine, post_id)
    assert post.external_message_ref == 555


@pytest.mark.asyncio
async def test_attach_external_ref_unknown_post(engine):
    assert await PostQueries.attach_external_ref(engine, 12345, 1) is False


@pytest.mark.asyncio
async def test_lookup_by_external_ref(engine):
    post_id = await PostQueries.create(engine, body="foo")
    await PostQueries.attach_external_ref(engine, post_id, 555)

    assert await PostQueries.lookup_by_external_ref(engine, 555) == post_id
    assert await PostQueries.lookup_by_external_ref(engine, 556) is None


@pytest.mark.asyncio
async def test_mark_cross_posted_flips_once(engine):
    post_id = await PostQueries.create(engine, body="foo")

    assert await PostQueries.get_for_crosspost_decision(engine, post_id) == (False, "foo")
    assert await PostQueries.mark_cross_posted(engine, post_id, "at://x/app.bsky.feed.post/1") is True
    assert await PostQueries.mark_cross_posted(engine, post_id, "at://x/app.bsky.feed.post/2") is False

    post = await PostQueries.get(engine, post_id)
    assert post.cross_posted is True
    assert post.external_post_ref == "at://x/app.bsky.feed.post/1"
    assert post.cross_posted_at is not None
    assert await PostQueries.get_for_crosspost_decision(engine, post_id) == (True, "foo")


@pytest.mark.asyncio
async def test_decision_for_unknown_post(engine):
    assert await PostQueries.get_for_crosspost_decision(engine, 404) is None


@pytest.mark.asyncio
async def test_claim_has_one_winner(engine):
    post_id = await PostQueries.create(engine, body="foo")

    results = await asyncio.gather(
        *(PostQueries.claim_for_crosspost(engine, post_id) for _ in range(8))
    )

    assert results.count("foo") == 1
    assert results.count(None) == 7


@pytest.mark.asyncio
async def test_released_claim_can_be_taken_again(engine):
    post_id = await PostQueries.create(engine, body="foo")

    assert await PostQueries.claim_for_crosspost(engine, post_id) == "foo"
    assert await PostQueries.claim_for_crosspost(engine, post_id) is None
    await PostQueries.release_claim(engine, post_id)
    assert await PostQueries.claim_for_crosspost(engine, post_id) == "foo"


@pytest.mark.asyncio
async def test_stale_claim_expires(engine):
    post_id = await PostQueries.create(engine, body="foo")
    assert await PostQueries.claim_for_crosspost(engine, post_id) == "foo"

    # negative lease: any existing claim counts as stale
    assert await PostQueries.claim_for_crosspost(engine, post_id, lease_seconds=-1) == "foo"


@pytest.mark.asyncio
async def test_cross_posted_post_cannot_be_claimed(engine):
    post_id = await PostQueries.create(engine, body="foo")
    await PostQueries.mark_cross_posted(engine, post_id)

    assert await PostQueries.claim_for_crosspost(engine, post_id, lease_seconds=-1) is None
    await PostQueries.release_claim(engine, post_id)
    assert (await PostQueries.get(engine, post_id)).cross_posted is True


@pytest.mark.asyncio
async def test_recent_is_newest_first(engine):
    ids = [await PostQueries.create(engine, body=f"m{i}") for i in range(3)]
    async with engine.begin() as conn:
        await conn.execute(update(posts).where(posts.c.id == ids[0]).values(created_at=utcnow()))

    recent = await PostQueries.recent(engine, limit=2)

    assert [p.id for p in recent] == [ids[0], ids[2]]
