"""
motd_bot/database/models/events.py
Inbound events, decoupled from discord.py payload types
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SubmitMessage:
    body: str
    channel_ref: Optional[int]
    author_id: Optional[int] = None
    author_name: Optional[str] = None


@dataclass(frozen=True)
class AnnouncementPublished:
    post_id: int
    external_message_ref: int


@dataclass(frozen=True)
class ReactionAdded:
    external_message_ref: int
    user_id: int
    emoji: str


@dataclass(frozen=True)
class ReactionRemoved:
    external_message_ref: int
    user_id: int
    emoji: str
