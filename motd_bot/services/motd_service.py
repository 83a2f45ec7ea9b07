"""
motd_bot/services/motd_service.py
Handles the inbound MOTD events: submissions, announcements and reactions.

Every handler contains its own failures: a storage error aborts that one event
and is logged, it never reaches the caller.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from ..database.models.events import (
    AnnouncementPublished,
    ReactionAdded,
    ReactionRemoved,
    SubmitMessage,
)
from ..database.queries import PostQueries, ReactionQueries
from .crosspost_service import CrossPostDispatcher
from .motd_store import MOTDStore
from .threshold_service import ThresholdEvaluator

logger = logging.getLogger(__name__)


class MOTDService:
    def __init__(
        self,
        store: MOTDStore,
        engine: AsyncEngine,
        evaluator: ThresholdEvaluator,
        dispatcher: Optional[CrossPostDispatcher] = None,
    ):
        self.store = store
        self.engine = engine
        self.evaluator = evaluator
        self.dispatcher = dispatcher

    @property
    def target_emoji(self) -> str:
        return self.evaluator.emoji

    async def submit(self, event: SubmitMessage) -> tuple[bool, Optional[int]]:
        """
        Update the MOTD and record the post. Returns (motd_updated, post_id);
        post_id is None when the ledger was unavailable.
        """
        if not self.store.set(event.body):
            return False, None

        try:
            post_id = await PostQueries.create(
                self.engine,
                body=event.body,
                author_id=event.author_id,
                author_name=event.author_name,
                channel_ref=event.channel_ref,
            )
        except SQLAlchemyError as e:
            logger.error(f"Error saving post to database: {e}")
            return True, None

        logger.info(f"Post {post_id} submitted by {event.author_name or 'unknown'}")
        return True, post_id

    async def announce(self, event: AnnouncementPublished) -> bool:
        try:
            return await PostQueries.attach_external_ref(
                self.engine, event.post_id, event.external_message_ref
            )
        except SQLAlchemyError as e:
            logger.error(f"Error attaching message {event.external_message_ref} to post {event.post_id}: {e}")
            return False

    async def reaction_added(self, event: ReactionAdded) -> bool:
        """Record the reaction; returns True when it triggered a cross-post."""
        try:
            post_id = await PostQueries.lookup_by_external_ref(self.engine, event.external_message_ref)
            if post_id is None:
                logger.debug(f"Reaction on untracked message {event.external_message_ref}")
                return False

            await ReactionQueries.add(self.engine, post_id, event.user_id, event.emoji)
            if event.emoji != self.target_emoji or self.dispatcher is None:
                return False

            if not await self.evaluator.evaluate(post_id):
                return False
            return await self.dispatcher.dispatch(post_id)
        except SQLAlchemyError as e:
            logger.error(f"Error handling reaction on message {event.external_message_ref}: {e}")
            return False

    async def reaction_removed(self, event: ReactionRemoved) -> None:
        try:
            post_id = await PostQueries.lookup_by_external_ref(self.engine, event.external_message_ref)
            if post_id is None:
                logger.debug(f"Reaction removal on untracked message {event.external_message_ref}")
                return
            await ReactionQueries.remove(self.engine, post_id, event.user_id, event.emoji)
        except SQLAlchemyError as e:
            logger.error(f"Error handling reaction removal on message {event.external_message_ref}: {e}")
