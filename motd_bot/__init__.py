"""
motd_bot
Message-of-the-day bot: web page, Discord announcements and Bluesky cross-posts.
"""

__version__ = "1.0.0"
