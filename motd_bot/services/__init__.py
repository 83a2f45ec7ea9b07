"""
motd_bot/services/__init__.py
Services package for the MOTD bot
"""

from .errors import BlueskyError, ExternalPostError
from .logging_service import EmbedLogger, LogLevel
from .motd_store import MOTDStore

__all__ = ["EmbedLogger", "LogLevel", "MOTDStore", "ExternalPostError", "BlueskyError"]
