"""
motd_bot/database/models/__init__.py
Database models package
"""
from .events import AnnouncementPublished, ReactionAdded, ReactionRemoved, SubmitMessage
from .post import Post
from .sqlalchemy_models import Base, post_reactions, posts

__all__ = [
    "Post",
    "SubmitMessage",
    "AnnouncementPublished",
    "ReactionAdded",
    "ReactionRemoved",
    "Base",
    "posts",
    "post_reactions",
]
