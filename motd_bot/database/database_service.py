"""
motd_bot/database/database_service.py
Database initialization and connection management
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from ..services.logging_service import EmbedLogger, LogLevel
from ..utils.config import Config
from .queries import PostQueries, ReactionQueries

logger = logging.getLogger(__name__)


class DatabaseService:
    """Owns the async engine the post and reaction ledgers run on"""

    def __init__(self, config: Config):
        self.config = config
        self.engine: Optional[AsyncEngine] = None
        self.embed_logger: Optional[EmbedLogger] = None
        self.connection_stats = {
            "connections_created": 0,
            "connections_failed": 0,
            "startup_time": None,
        }
        self.database_url = config.database_url

    def set_logger(self, embed_logger: Optional[EmbedLogger]):
        """Set the embed logger for database operations"""
        self.embed_logger = embed_logger

    @property
    def safe_url(self) -> str:
        return make_url(self.database_url).render_as_string(hide_password=True)

    async def initialize(self) -> AsyncEngine:
        """Create the engine, wait for the database and ensure the schema"""
        start_time = datetime.now()
        self.connection_stats["startup_time"] = start_time

        logger.info(f"Initializing database service ({self.safe_url})...")

        try:
            self.engine = create_async_engine(self.database_url, echo=False, pool_pre_ping=True)
            await self._wait_for_database()

            await PostQueries.ensure_schema(self.engine)
            await ReactionQueries.ensure_schema(self.engine)

            init_time = (datetime.now() - start_time).total_seconds()
            logger.info(f"Database service initialized successfully in {init_time:.2f}s")

            if self.embed_logger:
                await self.embed_logger.log_custom(
                    service="Database Service",
                    title="Database Initialization Complete",
                    description="Post and reaction ledgers ready",
                    level=LogLevel.SUCCESS,
                    fields={
                        "Initialization Time": f"{init_time:.2f}s",
                        "Database": self.safe_url,
                    },
                )
            return self.engine

        except Exception as e:
            init_time = (datetime.now() - start_time).total_seconds()
            logger.error(f"Failed to initialize database after {init_time:.2f}s: {e}")
            if self.embed_logger:
                await self.embed_logger.log_error(
                    service="Database Service",
                    error=e,
                    context=f"Database initialization failed after {init_time:.2f}s",
                )
            raise

    async def _wait_for_database(self):
        """Poll the database until it accepts connections"""
        attempts = max(1, self.config.db_connect_attempts)
        for attempt in range(attempts):
            try:
                async with self.engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
                self.connection_stats["connections_created"] += 1
                logger.info(f"Database ready after {attempt + 1} attempt(s)")
                return
            except Exception as e:
                self.connection_stats["connections_failed"] += 1
                if attempt < attempts - 1:
                    logger.info(f"Database not ready (attempt {attempt + 1}/{attempts}), waiting... Error: {e}")
                    await asyncio.sleep(1)
                else:
                    logger.error(f"Failed to connect to database after {attempts} attempts: {e}")
                    raise

    async def close(self):
        """Dispose the engine"""
        logger.info("Closing database connections...")
        if self.engine:
            try:
                await self.engine.dispose()
                logger.info("SQLAlchemy engine disposed")
            except Exception as e:
                logger.error(f"Error disposing SQLAlchemy engine: {e}")
        self.engine = None

    async def health_check(self) -> bool:
        """Check database connection health"""
        try:
            if not self.engine:
                return False
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    def get_stats(self) -> dict:
        stats = dict(self.connection_stats)
        if stats["startup_time"]:
            stats["uptime_seconds"] = (datetime.now() - stats["startup_time"]).total_seconds()
            stats["startup_time"] = stats["startup_time"].isoformat()
        return stats


__all__ = ["DatabaseService"]
