"""
motd_bot/services/crosspost_service.py
At-most-once publishing of community-approved posts to the external platform
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncEngine

from ..database.queries import PostQueries
from .bluesky_client import post_url
from .errors import ExternalPostError
from .logging_service import EmbedLogger, LogLevel

logger = logging.getLogger(__name__)


class ExternalPost(Protocol):
    async def publish(self, text: str) -> str: ...


class ChatPlatform(Protocol):
    async def send_message(self, channel_ref: int, text: str) -> None: ...

    async def add_reaction(self, channel_ref: int, message_ref: int, emoji: str) -> None: ...


class CrossPostDispatcher:
    def __init__(
        self,
        engine: AsyncEngine,
        publisher: ExternalPost,
        chat: Optional[ChatPlatform] = None,
        *,
        ack_emoji: str = "✅",
        claim_lease_seconds: int = 300,
        embed_logger: Optional[EmbedLogger] = None,
    ):
        self.engine = engine
        self.publisher = publisher
        self.chat = chat
        self.ack_emoji = ack_emoji
        self.claim_lease_seconds = claim_lease_seconds
        self.embed_logger = embed_logger

    async def dispatch(self, post_id: int) -> bool:
        """
        Publish the post unless another handler already has. Returns True only
        for the call that actually published.
        """
        body = await PostQueries.claim_for_crosspost(
            self.engine, post_id, lease_seconds=self.claim_lease_seconds
        )
        if body is None:
            logger.debug(f"Post {post_id} already cross-posted or claimed")
            return False

        try:
            external_ref = await self.publisher.publish(body)
        except ExternalPostError as e:
            logger.error(f"Cross-post of post {post_id} failed: {e}")
            await self._publish_failed(post_id, e)
            return False
        except Exception as e:
            logger.exception(f"Unexpected error cross-posting post {post_id}")
            await self._publish_failed(post_id, e)
            return False

        if not await PostQueries.mark_cross_posted(self.engine, post_id, external_ref):
            # cannot happen while we hold the claim unless it went stale
            logger.warning(f"Post {post_id} was already marked cross-posted")
            return False

        logger.info(f"Cross-posted post {post_id} as {external_ref}")
        await self._acknowledge(post_id, external_ref)
        return True

    async def _publish_failed(self, post_id: int, error: Exception) -> None:
        # the claim must go so the next qualifying reaction retries
        await PostQueries.release_claim(self.engine, post_id)
        if self.embed_logger:
            await self.embed_logger.log_error(
                service="Cross-Post", error=error, context=f"Publishing post {post_id} failed"
            )

    async def _acknowledge(self, post_id: int, external_ref: str) -> None:
        post = await PostQueries.get(self.engine, post_id)
        if post is None or post.channel_ref is None:
            return
        link = post_url(external_ref)

        if self.chat:
            if post.external_message_ref is not None:
                try:
                    await self.chat.add_reaction(post.channel_ref, post.external_message_ref, self.ack_emoji)
                except Exception as e:
                    logger.warning(f"Could not add acknowledgement reaction for post {post_id}: {e}")
            try:
                await self.chat.send_message(post.channel_ref, f"Cross-posted to Bluesky: {link}")
            except Exception as e:
                logger.warning(f"Could not send cross-post link for post {post_id}: {e}")

        if self.embed_logger:
            try:
                await self.embed_logger.log_custom(
                    service="Cross-Post",
                    title="Posted to Bluesky",
                    description=post.body,
                    level=LogLevel.SUCCESS,
                    fields={"Post": str(post_id), "Link": link, "Author": post.author_name or "unknown"},
                )
            except Exception as e:
                logger.warning(f"Admin log for post {post_id} failed: {e}")
