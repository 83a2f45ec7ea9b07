"""
motd_bot/main.py
Bootstrap: load config, init database, web page and services, load the MOTD cog
"""
import asyncio
import logging
from datetime import datetime

import discord
from discord.ext import commands
from dotenv import load_dotenv

load_dotenv()

from motd_bot.cogs.motd_cog import MOTDCog  # noqa: E402
from motd_bot.database.database_service import DatabaseService  # noqa: E402
from motd_bot.services.bluesky_client import BlueskyClient  # noqa: E402
from motd_bot.services.chat_platform import DiscordChatPlatform  # noqa: E402
from motd_bot.services.crosspost_service import CrossPostDispatcher  # noqa: E402
from motd_bot.services.logging_service import EmbedLogger, LogLevel  # noqa: E402
from motd_bot.services.motd_service import MOTDService  # noqa: E402
from motd_bot.services.motd_store import MOTDStore  # noqa: E402
from motd_bot.services.threshold_service import ThresholdEvaluator  # noqa: E402
from motd_bot.utils.config import Config  # noqa: E402
from motd_bot.utils.logging_config import setup_logging  # noqa: E402
from motd_bot.utils.webserver import MOTDWebServer  # noqa: E402

logger = logging.getLogger(__name__)


class MOTDBot(commands.Bot):
    def __init__(self, config: Config):
        intents = discord.Intents.default()
        intents.guilds = True
        intents.guild_reactions = True
        super().__init__(command_prefix=config.command_prefix, intents=intents)
        self.config = config
        self.db_service = DatabaseService(config)
        self.embed_logger: EmbedLogger | None = None
        self.web_server: MOTDWebServer | None = None
        self.motd_store: MOTDStore | None = None
        self.motd_service: MOTDService | None = None
        self.startup_time = None

    def build_dispatcher(self, engine) -> CrossPostDispatcher | None:
        if not self.config.crosspost_enabled:
            logger.info("Cross-posting disabled")
            return None
        publisher = BlueskyClient(
            self.config.bluesky_handle,
            self.config.bluesky_app_password,
            service=self.config.bluesky_service,
        )
        if not publisher.is_enabled:
            logger.warning("Bluesky credentials missing - cross-posting disabled")
            return None
        return CrossPostDispatcher(
            engine,
            publisher,
            DiscordChatPlatform(self),
            ack_emoji=self.config.crosspost_ack_emoji,
            claim_lease_seconds=self.config.crosspost_claim_lease_sec,
            embed_logger=self.embed_logger,
        )

    async def setup_hook(self):
        """Called after login, before the gateway connects"""
        logger.info("Bot setup hook called - initializing services...")
        self.startup_time = datetime.now()

        if self.config.admin_log_channel_id:
            self.embed_logger = EmbedLogger(self, self.config.admin_log_channel_id)
            self.db_service.set_logger(self.embed_logger)

        engine = await self.db_service.initialize()

        self.motd_store = MOTDStore(self.config.motd_data_path, self.config.motd_default_message)

        self.web_server = MOTDWebServer(
            self.motd_store,
            host=self.config.web_host,
            port=self.config.web_port,
            public_dir=self.config.public_dir,
            db_service=self.db_service,
        )
        await self.web_server.start()

        evaluator = ThresholdEvaluator(
            engine,
            emoji=self.config.crosspost_emoji,
            threshold=self.config.crosspost_threshold,
            self_id=self.user.id if self.user else None,
        )
        self.motd_service = MOTDService(
            self.motd_store, engine, evaluator, self.build_dispatcher(engine)
        )
        await self.add_cog(MOTDCog(self, self.motd_service))
        logger.info(f"Loaded {len(self.cogs)} cog(s)")

        self._post_login_task = asyncio.create_task(self._post_login_init())

    async def _post_login_init(self):
        await self.wait_until_ready()
        if self.embed_logger:
            try:
                await self.embed_logger.setup()
            except discord.DiscordException as e:
                logger.warning(f"Embed logger setup failed: {e}")
        await self._sync_app_commands()

    async def _sync_app_commands(self):
        """Register slash commands for the configured guild"""
        try:
            gobj = discord.Object(id=self.config.guild_id)
            synced = await self.tree.sync(guild=gobj)
            logger.info(f"Synced {len(synced)} guild slash command(s) to {self.config.guild_id}")
        except discord.DiscordException as e:
            logger.exception("Slash command sync failed")
            if self.embed_logger:
                await self.embed_logger.log_error(
                    service="Bot Startup", error=e, context="Slash command sync failed during startup"
                )

    async def on_ready(self):
        logger.info(f"Logged in as {self.user} ({self.user.id})")
        if self.embed_logger:
            await self.embed_logger.log_custom(
                service="Bot Status",
                title="Bot Ready",
                description="MOTD bot is online",
                level=LogLevel.SUCCESS,
                fields={
                    "Bot ID": str(self.user.id),
                    "Guild ID": str(self.config.guild_id),
                    "Cross-posting": "on" if self.motd_service and self.motd_service.dispatcher else "off",
                },
            )

    async def close(self):
        """Clean shutdown"""
        logger.info("Bot shutting down...")
        if self.web_server:
            try:
                await self.web_server.stop()
            except Exception as e:
                logger.error(f"Error stopping web server: {e}")
        await self.db_service.close()
        await super().close()


def validate_config(config: Config) -> list[str]:
    missing = []
    if not config.bot_token:
        missing.append("DISCORD_BOT_TOKEN")
    if not config.guild_id:
        missing.append("DISCORD_GUILD_ID")
    return missing


async def main():
    """Main entry point"""
    config = Config()

    missing_config = validate_config(config)
    if missing_config:
        logger.error(f"Missing critical configuration: {', '.join(missing_config)}")
        return

    logger.info("=" * 60)
    logger.info("Starting MOTD bot...")
    logger.info(f"Guild ID: {config.guild_id}")
    logger.info(f"Site: {config.site_url} (listening on {config.web_host}:{config.web_port})")
    logger.info(f"Cross-post: {config.crosspost_threshold}x {config.crosspost_emoji}")
    logger.info("=" * 60)

    bot = MOTDBot(config)
    try:
        await bot.start(config.bot_token)
    finally:
        if not bot.is_closed():
            await bot.close()
        logger.info("Bot shutdown complete")


def run():
    setup_logging()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested via keyboard interrupt")


if __name__ == "__main__":
    run()
