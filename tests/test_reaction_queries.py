# tests/test_reaction_queries.py
import pytest
from sqlalchemy import func, select

from motd_bot.database.models.sqlalchemy_models import post_reactions
from motd_bot.database.queries import PostQueries, ReactionQueries

from .conftest import BOT_ID, EMOJI


async def _row_count(engine) -> int:
    async with engine.connect() as conn:
        return await conn.scalar(select(func.count()).select_from(post_reactions))


@pytest.mark.asyncio
async def test_duplicate_add_is_counted_once(engine):
    post_id = await PostQueries.create(engine, body="foo")

    inserted = [await ReactionQueries.add(engine, post_id, 1, EMOJI) for _ in range(5)]

    assert inserted == [True, False, False, False, False]
    assert await ReactionQueries.count_distinct_reactors(engine, post_id, EMOJI) == 1


@pytest.mark.asyncio
async def test_remove_missing_reaction_is_a_noop(engine):
    post_id = await PostQueries.create(engine, body="foo")
    await ReactionQueries.add(engine, post_id, 1, EMOJI)

    assert await ReactionQueries.remove(engine, post_id, 2, EMOJI) is False
    assert await ReactionQueries.remove(engine, post_id, 1, "👍") is False
    assert await _row_count(engine) == 1


@pytest.mark.asyncio
async def test_remove_then_add_again(engine):
    post_id = await PostQueries.create(engine, body="foo")
    await ReactionQueries.add(engine, post_id, 1, EMOJI)

    assert await ReactionQueries.remove(engine, post_id, 1, EMOJI) is True
    assert await ReactionQueries.count_distinct_reactors(engine, post_id, EMOJI) == 0
    assert await ReactionQueries.add(engine, post_id, 1, EMOJI) is True


@pytest.mark.asyncio
async def test_count_is_per_post_and_emoji(engine):
    first = await PostQueries.create(engine, body="first")
    second = await PostQueries.create(engine, body="second")
    await ReactionQueries.add(engine, first, 1, EMOJI)
    await ReactionQueries.add(engine, first, 2, EMOJI)
    await ReactionQueries.add(engine, first, 3, "👍")
    await ReactionQueries.add(engine, second, 4, EMOJI)

    assert await ReactionQueries.count_distinct_reactors(engine, first, EMOJI) == 2
    assert await ReactionQueries.count_distinct_reactors(engine, first, "👍") == 1
    assert await ReactionQueries.count_distinct_reactors(engine, second, EMOJI) == 1


@pytest.mark.asyncio
async def test_count_excludes_seed_reaction(engine):
    post_id = await PostQueries.create(engine, body="foo")
    await ReactionQueries.add(engine, post_id, BOT_ID, EMOJI)
    await ReactionQueries.add(engine, post_id, 1, EMOJI)

    assert await ReactionQueries.count_distinct_reactors(engine, post_id, EMOJI) == 2
    assert (
        await ReactionQueries.count_distinct_reactors(engine, post_id, EMOJI, excluding_user_id=BOT_ID)
        == 1
    )


@pytest.mark.asyncio
async def test_large_discord_ids(engine):
    post_id = await PostQueries.create(engine, body="foo", author_id=1234567890123456789)
    await ReactionQueries.add(engine, post_id, 987654321098765432, EMOJI)

    assert await ReactionQueries.count_distinct_reactors(engine, post_id, EMOJI) == 1
    assert (await PostQueries.get(engine, post_id)).author_id == 1234567890123456789
