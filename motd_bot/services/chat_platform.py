"""
motd_bot/services/chat_platform.py
Discord side of the cross-post acknowledgements
"""

import logging

import discord

logger = logging.getLogger(__name__)


class DiscordChatPlatform:
    """Sends messages and reactions by id, without needing the message cached."""

    def __init__(self, bot: discord.Client):
        self.bot = bot

    async def send_message(self, channel_ref: int, text: str) -> None:
        channel = self.bot.get_partial_messageable(int(channel_ref))
        await channel.send(text)

    async def add_reaction(self, channel_ref: int, message_ref: int, emoji: str) -> None:
        channel = self.bot.get_partial_messageable(int(channel_ref))
        await channel.get_partial_message(int(message_ref)).add_reaction(emoji)
