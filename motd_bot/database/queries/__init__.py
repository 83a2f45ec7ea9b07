"""
motd_bot/database/queries/__init__.py
Database queries package
"""
from .post_queries import PostQueries
from .reaction_queries import ReactionQueries

__all__ = [
    "PostQueries",
    "ReactionQueries",
]
