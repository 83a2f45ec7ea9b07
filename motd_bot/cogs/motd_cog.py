# motd_bot/cogs/motd_cog.py
import logging

import discord
from discord import app_commands
from discord.ext import commands

from motd_bot.database.models.events import (
    AnnouncementPublished,
    ReactionAdded,
    ReactionRemoved,
    SubmitMessage,
)
from motd_bot.database.queries import PostQueries
from motd_bot.services.motd_service import MOTDService

logger = logging.getLogger(__name__)


class MOTDCog(commands.Cog):
    """Slash command to change the MOTD, and the reaction listeners that drive cross-posting."""

    def __init__(self, bot: commands.Bot, service: MOTDService):
        self.bot = bot
        self.service = service
        self.config = bot.config
        self.embed_logger = getattr(bot, "embed_logger", None)

    async def cog_load(self):
        guild_obj = discord.Object(id=self.config.guild_id)
        self.bot.tree.add_command(self._build_motd_command(), guild=guild_obj)
        self.bot.tree.add_command(self._build_history_command(), guild=guild_obj)

    def _authorized(self, guild_id) -> bool:
        return guild_id is not None and guild_id == self.config.guild_id

    def _build_motd_command(self) -> app_commands.Command:
        @app_commands.command(
            name=self.config.motd_command_name,
            description=f"Changes the message on {self.config.site_url}",
        )
        @app_commands.describe(message="The new message to display")
        async def motd(interaction: discord.Interaction, message: str):
            await self.handle_submit(interaction, message)

        return motd

    def _build_history_command(self) -> app_commands.Command:
        @app_commands.command(
            name=f"{self.config.motd_command_name}-history",
            description="Shows recent messages and whether they were cross-posted",
        )
        @app_commands.describe(limit="number of posts (max 20)")
        async def motd_history(interaction: discord.Interaction, limit: int = 10):
            await self.handle_history(interaction, limit)

        return motd_history

    async def handle_submit(self, interaction: discord.Interaction, message: str):
        if not self._authorized(interaction.guild_id):
            logger.warning(f"Unauthorized guild ID: {interaction.guild_id}")
            await interaction.response.send_message("Unauthorized", ephemeral=True)
            return

        updated, post_id = await self.service.submit(
            SubmitMessage(
                body=message,
                channel_ref=interaction.channel_id,
                author_id=interaction.user.id,
                author_name=str(interaction.user),
            )
        )
        if not updated:
            await interaction.response.send_message("❌ Could not save the new message.", ephemeral=True)
            return

        await interaction.response.send_message(
            f"Updated {self.config.site_url} message to: {message}",
            allowed_mentions=discord.AllowedMentions.none(),
        )
        if post_id is None:
            return

        try:
            sent = await interaction.original_response()
        except discord.HTTPException as e:
            logger.error(f"Could not fetch announcement for post {post_id}: {e}")
            return

        await self.service.announce(AnnouncementPublished(post_id=post_id, external_message_ref=sent.id))

        if self.config.crosspost_enabled:
            try:
                await sent.add_reaction(self.service.target_emoji)
            except discord.HTTPException as e:
                logger.warning(f"Could not add seed reaction to post {post_id}: {e}")

    async def handle_history(self, interaction: discord.Interaction, limit: int):
        if not self._authorized(interaction.guild_id):
            await interaction.response.send_message("Unauthorized", ephemeral=True)
            return

        await interaction.response.defer(ephemeral=True)
        limit = max(1, min(limit, 20))
        try:
            posts = await PostQueries.recent(self.service.engine, limit)
        except Exception as e:
            logger.error(f"Failed to load post history: {e}")
            await interaction.followup.send("❌ History is unavailable right now.", ephemeral=True)
            return

        if not posts:
            await interaction.followup.send("No messages yet.", ephemeral=True)
            return

        lines = []
        for p in posts:
            mark = "🦋" if p.cross_posted else "·"
            who = f"<@{p.author_id}>" if p.author_id else (p.author_name or "unknown")
            lines.append(f"{mark} **#{p.id}** {who}: {discord.utils.escape_markdown(p.body)[:120]}")
        await interaction.followup.send(
            "\n".join(lines), ephemeral=True, allowed_mentions=discord.AllowedMentions.none()
        )

    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent):
        if not self._authorized(payload.guild_id):
            return
        try:
            await self.service.reaction_added(
                ReactionAdded(
                    external_message_ref=payload.message_id,
                    user_id=payload.user_id,
                    emoji=str(payload.emoji),
                )
            )
        except Exception as e:
            logger.exception(f"Error processing reaction on {payload.message_id}")
            if self.embed_logger:
                await self.embed_logger.log_error("MOTD Reactions", e, context=f"reaction add on {payload.message_id}")

    @commands.Cog.listener()
    async def on_raw_reaction_remove(self, payload: discord.RawReactionActionEvent):
        if not self._authorized(payload.guild_id):
            return
        try:
            await self.service.reaction_removed(
                ReactionRemoved(
                    external_message_ref=payload.message_id,
                    user_id=payload.user_id,
                    emoji=str(payload.emoji),
                )
            )
        except Exception as e:
            logger.exception(f"Error processing reaction removal on {payload.message_id}")
            if self.embed_logger:
                await self.embed_logger.log_error("MOTD Reactions", e, context=f"reaction remove on {payload.message_id}")
