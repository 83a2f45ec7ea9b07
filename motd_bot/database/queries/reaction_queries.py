# motd_bot/database/queries/reaction_queries.py
from __future__ import annotations

from sqlalchemy import delete, distinct, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from ..models.sqlalchemy_models import Base, post_reactions, posts, utcnow


def _insert_ignore(conn: AsyncConnection, values: dict):
    """INSERT ... ON CONFLICT DO NOTHING for the dialects we run on."""
    if conn.dialect.name == "postgresql":
        stmt = postgresql.insert(post_reactions)
    elif conn.dialect.name == "sqlite":
        stmt = sqlite.insert(post_reactions)
    else:
        raise NotImplementedError(f"Unsupported dialect: {conn.dialect.name}")
    return stmt.values(**values).on_conflict_do_nothing(
        index_elements=["post_id", "user_id", "emoji"]
    )


class ReactionQueries:
    @staticmethod
    async def ensure_schema(engine: AsyncEngine) -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, tables=[posts, post_reactions])

    @staticmethod
    async def add(engine: AsyncEngine, post_id: int, user_id: int, emoji: str) -> bool:
        """Returns True when a new row was inserted, False for a duplicate."""
        async with engine.begin() as conn:
            result = await conn.execute(
                _insert_ignore(
                    conn,
                    {"post_id": post_id, "user_id": user_id, "emoji": emoji, "created_at": utcnow()},
                )
            )
        return result.rowcount == 1

    @staticmethod
    async def remove(engine: AsyncEngine, post_id: int, user_id: int, emoji: str) -> bool:
        async with engine.begin() as conn:
            result = await conn.execute(
                delete(post_reactions).where(
                    post_reactions.c.post_id == post_id,
                    post_reactions.c.user_id == user_id,
                    post_reactions.c.emoji == emoji,
                )
            )
        return result.rowcount == 1

    @staticmethod
    async def count_distinct_reactors(
        engine: AsyncEngine,
        post_id: int,
        emoji: str,
        excluding_user_id: int | None = None,
    ) -> int:
        query = select(func.count(distinct(post_reactions.c.user_id))).where(
            post_reactions.c.post_id == post_id,
            post_reactions.c.emoji == emoji,
        )
        if excluding_user_id is not None:
            query = query.where(post_reactions.c.user_id != excluding_user_id)
        async with engine.connect() as conn:
            return int(await conn.scalar(query) or 0)
