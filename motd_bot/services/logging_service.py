"""
motd_bot/services/logging_service.py
Admin-channel logging with Discord embeds
"""

import asyncio
import logging
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

import discord
from discord import Color, Embed

logger = logging.getLogger(__name__)


class LogLevel(Enum):
    """Log level colors and emojis"""
    INFO = (Color.blue(), "ℹ️")
    SUCCESS = (Color.green(), "✅")
    CRITICAL = (Color.dark_red(), "🚨")


class EmbedLogger:
    """Posts service events to the admin log channel"""

    def __init__(self, bot: discord.Client, admin_channel_id: int):
        self.bot = bot
        self.admin_channel_id = int(admin_channel_id)
        self.admin_channel: Optional[discord.abc.Messageable] = None
        self._setup_done: bool = False
        self._setup_attempted: bool = False
        self._retry_task: Optional[asyncio.Task] = None

        self.stats = {
            "logs_sent": 0,
            "logs_failed": 0,
            "logs_by_level": {level.name: 0 for level in LogLevel},
        }

        # Rate limiting to prevent spam
        self.rate_limit = {
            "messages": [],
            "max_per_minute": 30,
            "similar_message_cache": {},
        }

    async def _resolve_channel(self) -> Optional[discord.abc.Messageable]:
        """Resolve the admin channel via API with cache fallback."""
        try:
            chan = await self.bot.fetch_channel(self.admin_channel_id)
            if isinstance(chan, (discord.TextChannel, discord.Thread)):
                return chan
        except discord.DiscordException as e:
            logger.debug(f"fetch_channel({self.admin_channel_id}) failed: {e}")
        chan = self.bot.get_channel(self.admin_channel_id)
        if isinstance(chan, (discord.TextChannel, discord.Thread)):
            return chan
        return None

    async def setup(self) -> bool:
        """
        Initialize the logging channel.
        Safe to call multiple times; it will re-try if the channel is not yet resolvable.
        """
        self._setup_attempted = True
        self.admin_channel = await self._resolve_channel()

        if not self.admin_channel:
            logger.error(f"Admin log channel {self.admin_channel_id} not found (yet). Will retry once after ready.")
            if not self._retry_task:
                self._retry_task = asyncio.create_task(self._delayed_retry())
            return False

        self._setup_done = True
        await self.log_custom(
            service="Logger",
            title="Logging Started",
            description="Admin logging initialized",
            level=LogLevel.SUCCESS,
            fields={"Channel ID": str(self.admin_channel_id)},
        )
        return True

    async def _delayed_retry(self):
        """Retry channel resolution once after a short delay (post-ready)."""
        try:
            await self.bot.wait_until_ready()
            await asyncio.sleep(2)
            self.admin_channel = await self._resolve_channel()
            if self.admin_channel:
                self._setup_done = True
                logger.info(f"Admin log channel {self.admin_channel_id} resolved on retry.")
            else:
                logger.error(f"Admin log channel {self.admin_channel_id} still not found after retry.")
        except Exception as e:
            logger.exception(f"Logger delayed retry failed: {e}")

    def _should_rate_limit(self, content_hash: str) -> bool:
        """Check if message should be rate limited"""
        now = datetime.now(timezone.utc)

        # Clean old messages (older than 1 minute)
        self.rate_limit["messages"] = [
            msg_time for msg_time in self.rate_limit["messages"]
            if (now - msg_time).total_seconds() < 60
        ]

        if len(self.rate_limit["messages"]) >= self.rate_limit["max_per_minute"]:
            return True

        # Same message within 10 seconds
        last_sent = self.rate_limit["similar_message_cache"].get(content_hash)
        if last_sent and (now - last_sent).total_seconds() < 10:
            return True

        self.rate_limit["messages"].append(now)
        self.rate_limit["similar_message_cache"][content_hash] = now
        return False

    async def _safe_send(self, embed: Embed, content_hash: Optional[str] = None) -> Optional[discord.Message]:
        """Send embed if channel is ready and rate limiting allows."""
        if not self._setup_done:
            if self._setup_attempted and not self.admin_channel:
                self.admin_channel = await self._resolve_channel()
                if self.admin_channel:
                    self._setup_done = True

        if not self.admin_channel:
            return None

        if content_hash and self._should_rate_limit(content_hash):
            logger.debug("Rate limiting admin log message")
            return None

        try:
            message = await self.admin_channel.send(embed=embed)
            self.stats["logs_sent"] += 1
            return message
        except discord.HTTPException as e:
            if e.status == 429:
                logger.warning("Discord rate limited admin logging")
            else:
                logger.debug(f"Failed to send admin embed: {e}")
            self.stats["logs_failed"] += 1
        return None

    def _create_base_embed(self, title: str, description: str, level: LogLevel) -> Embed:
        color, emoji = level.value
        embed = Embed(
            title=f"{emoji} {title}",
            description=description[:2000] if description else None,  # Discord limit
            color=color,
            timestamp=datetime.now(timezone.utc),
        )
        self.stats["logs_by_level"][level.name] += 1
        return embed

    def _add_fields_to_embed(self, embed: Embed, fields: Union[List[tuple], Dict[str, Any], None]):
        if not fields:
            return

        if isinstance(fields, dict):
            field_list = [(k, v, len(str(v)) < 50) for k, v in fields.items()]
        else:
            field_list = fields

        for field in field_list:
            if len(field) == 2:
                name, value = field
                inline = len(str(value)) < 50
            elif len(field) == 3:
                name, value, inline = field
            else:
                continue

            name = str(name)[:256]
            value = str(value)[:1024] if value else "N/A"
            embed.add_field(name=name, value=value, inline=bool(inline))

            # Discord has a limit of 25 fields per embed
            if len(embed.fields) >= 25:
                break

    async def log_error(self, service: str, error: Exception, context: Optional[str] = None):
        """Log errors with context"""
        embed = self._create_base_embed(
            title="Service Error",
            description=f"Error occurred in **{service}**",
            level=LogLevel.CRITICAL,
        )
        error_type = type(error).__name__
        self._add_fields_to_embed(embed, {
            "Service": service,
            "Error Type": f"`{error_type}`",
        })
        embed.add_field(name="Error Message", value=f"```python\n{str(error)[:1000]}\n```", inline=False)

        if context:
            embed.add_field(name="Context", value=context[:500], inline=False)

        tb = traceback.format_exc()
        if tb and tb != "NoneType: None\n":
            embed.add_field(name="Traceback (tail)", value=f"```python\n{tb[-800:]}\n```", inline=False)

        await self._safe_send(embed, f"error_{service}_{error_type}".lower())

    async def log_custom(
        self,
        service: str,
        title: str,
        description: str,
        level: LogLevel = LogLevel.INFO,
        fields: Optional[Union[List[tuple], Dict[str, Any]]] = None,
    ):
        embed = self._create_base_embed(title=title, description=description, level=level)
        self._add_fields_to_embed(embed, fields)
        embed.set_footer(text=service)
        await self._safe_send(embed, f"{service}_{title}".lower())
