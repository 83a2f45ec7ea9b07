"""
motd_bot/database/models/sqlalchemy_models.py
SQLAlchemy table definitions for the post and reaction ledgers
"""

from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    false,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# SQLite only autoincrements INTEGER PRIMARY KEY columns
_PostId = BigInteger().with_variant(Integer, "sqlite")


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Post(Base):
    """One submitted MOTD update"""
    __tablename__ = "posts"

    id = Column(_PostId, primary_key=True, autoincrement=True)
    body = Column(Text, nullable=False)
    author_id = Column(BigInteger, nullable=True)
    author_name = Column(String(100), nullable=True)
    channel_ref = Column(BigInteger, nullable=True)
    external_message_ref = Column(BigInteger, nullable=True, unique=True)
    cross_posted = Column(Boolean, nullable=False, default=False, server_default=false())
    external_post_ref = Column(String(255), nullable=True)
    cross_posted_at = Column(DateTime, nullable=True)
    crosspost_claimed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class PostReaction(Base):
    """A (post, user, emoji) reaction fact"""
    __tablename__ = "post_reactions"

    post_id = Column(_PostId, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(BigInteger, primary_key=True)
    emoji = Column(String(64), primary_key=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


posts = Post.__table__
post_reactions = PostReaction.__table__
