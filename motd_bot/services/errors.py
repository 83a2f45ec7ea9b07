"""
motd_bot/services/errors.py
Errors raised by outbound integrations
"""

from typing import Optional


class ExternalPostError(Exception):
    """Publishing to the external platform failed"""


class BlueskyError(ExternalPostError):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
