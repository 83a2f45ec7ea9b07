# motd_bot/services/threshold_service.py
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from ..database.queries import PostQueries, ReactionQueries

logger = logging.getLogger(__name__)


class ThresholdEvaluator:
    """Decides whether a post has enough distinct reactors to be cross-posted. Read-only."""

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        emoji: str,
        threshold: int,
        self_id: Optional[int] = None,
    ):
        self.engine = engine
        self.emoji = emoji
        self.threshold = threshold
        # the bot's own seed reaction never counts
        self.self_id = self_id

    async def reactor_count(self, post_id: int) -> int:
        return await ReactionQueries.count_distinct_reactors(
            self.engine, post_id, self.emoji, excluding_user_id=self.self_id
        )

    async def evaluate(self, post_id: int) -> bool:
        count = await self.reactor_count(post_id)
        if count < self.threshold:
            logger.debug(f"Post {post_id}: {count}/{self.threshold} reactors")
            return False
        decision = await PostQueries.get_for_crosspost_decision(self.engine, post_id)
        if decision is None:
            return False
        already_cross_posted, _body = decision
        return not already_cross_posted
