# motd_bot/database/queries/post_queries.py
from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import false, insert, select, true, update
from sqlalchemy.ext.asyncio import AsyncEngine

from ..models.post import Post
from ..models.sqlalchemy_models import Base, posts, utcnow

logger = logging.getLogger(__name__)


class PostQueries:
    @staticmethod
    async def ensure_schema(engine: AsyncEngine) -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, tables=[posts])

    @staticmethod
    async def create(
        engine: AsyncEngine,
        *,
        body: str,
        author_id: int | None = None,
        author_name: str | None = None,
        channel_ref: int | None = None,
    ) -> int:
        async with engine.begin() as conn:
            result = await conn.execute(
                insert(posts).values(
                    body=body,
                    author_id=author_id,
                    author_name=author_name,
                    channel_ref=channel_ref,
                    cross_posted=False,
                    created_at=utcnow(),
                )
            )
        return int(result.inserted_primary_key[0])

    @staticmethod
    async def attach_external_ref(engine: AsyncEngine, post_id: int, ref: int) -> bool:
        """
        Set the announcement message id once. Repeating the call with the same
        ref is a successful no-op; a different ref is refused.
        """
        async with engine.begin() as conn:
            result = await conn.execute(
                update(posts)
                .where(posts.c.id == post_id, posts.c.external_message_ref.is_(None))
                .values(external_message_ref=ref)
            )
            if result.rowcount == 1:
                return True
            current = await conn.scalar(
                select(posts.c.external_message_ref).where(posts.c.id == post_id)
            )
        if current == ref:
            return True
        logger.warning(
            f"Refusing to attach message {ref} to post {post_id} (current ref: {current})"
        )
        return False

    @staticmethod
    async def lookup_by_external_ref(engine: AsyncEngine, ref: int) -> int | None:
        async with engine.connect() as conn:
            return await conn.scalar(
                select(posts.c.id).where(posts.c.external_message_ref == ref)
            )

    @staticmethod
    async def get(engine: AsyncEngine, post_id: int) -> Post | None:
        async with engine.connect() as conn:
            row = (await conn.execute(select(posts).where(posts.c.id == post_id))).first()
        return Post.from_row(row) if row else None

    @staticmethod
    async def recent(engine: AsyncEngine, limit: int = 10) -> list[Post]:
        async with engine.connect() as conn:
            rows = (
                await conn.execute(
                    select(posts).order_by(posts.c.created_at.desc(), posts.c.id.desc()).limit(limit)
                )
            ).all()
        return [Post.from_row(r) for r in rows]

    @staticmethod
    async def get_for_crosspost_decision(
        engine: AsyncEngine, post_id: int
    ) -> tuple[bool, str] | None:
        async with engine.connect() as conn:
            row = (
                await conn.execute(
                    select(posts.c.cross_posted, posts.c.body).where(posts.c.id == post_id)
                )
            ).first()
        if row is None:
            return None
        return bool(row.cross_posted), row.body

    @staticmethod
    async def claim_for_crosspost(
        engine: AsyncEngine, post_id: int, *, lease_seconds: int = 300
    ) -> str | None:
        """
        Atomically take the right to publish a post. Returns the body for the
        single caller whose conditional update hit the row, None for everyone
        else (already cross-posted, or claimed by a live handler).
        """
        now = utcnow()
        stale_before = now - timedelta(seconds=lease_seconds)
        async with engine.begin() as conn:
            result = await conn.execute(
                update(posts)
                .where(
                    posts.c.id == post_id,
                    posts.c.cross_posted == false(),
                    (posts.c.crosspost_claimed_at.is_(None))
                    | (posts.c.crosspost_claimed_at < stale_before),
                )
                .values(crosspost_claimed_at=now)
            )
            if result.rowcount != 1:
                return None
            return await conn.scalar(select(posts.c.body).where(posts.c.id == post_id))

    @staticmethod
    async def release_claim(engine: AsyncEngine, post_id: int) -> None:
        async with engine.begin() as conn:
            await conn.execute(
                update(posts)
                .where(posts.c.id == post_id, posts.c.cross_posted == false())
                .values(crosspost_claimed_at=None)
            )

    @staticmethod
    async def mark_cross_posted(
        engine: AsyncEngine, post_id: int, external_post_ref: str | None = None
    ) -> bool:
        """Flip cross_posted false -> true. True only for the caller that flipped it."""
        async with engine.begin() as conn:
            result = await conn.execute(
                update(posts)
                .where(posts.c.id == post_id, posts.c.cross_posted == false())
                .values(
                    cross_posted=true(),
                    cross_posted_at=utcnow(),
                    external_post_ref=external_post_ref,
                    crosspost_claimed_at=None,
                )
            )
        return result.rowcount == 1
