# motd_bot/utils/config.py

import os
from dataclasses import dataclass


DEFAULT_MOTD = "does citadel usually make money off these things?"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _database_url() -> str:
    """
    Resolve the SQLAlchemy URL. POSTGRES_URL / DATABASE_URL win; otherwise the
    URL is assembled from the DB_* variables.
    """
    raw = os.getenv("DATABASE_URL") or os.getenv("POSTGRES_URL") or ""
    if raw:
        return normalize_database_url(raw)
    user = os.getenv("DB_USER", "motd_bot")
    password = os.getenv("DB_PASSWORD", "")
    host = os.getenv("DB_HOST", "postgres")
    port = os.getenv("DB_PORT", "5432")
    name = os.getenv("DB_NAME", "motd")
    return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{name}"


def normalize_database_url(url: str) -> str:
    """Map libpq style URLs onto the asyncpg driver."""
    if url.startswith("postgres://"):
        return "postgresql+asyncpg://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url


@dataclass
class Config:
    # Discord
    bot_token: str = os.getenv("DISCORD_BOT_TOKEN", "")
    guild_id: int = _env_int("DISCORD_GUILD_ID", 0)
    command_prefix: str = os.getenv("COMMAND_PREFIX", "!")
    motd_command_name: str = os.getenv("MOTD_COMMAND_NAME", "motd")
    admin_log_channel_id: int = _env_int("ADMIN_LOG_CHANNEL_ID", 0)

    # Database
    database_url: str = _database_url()
    db_connect_attempts: int = _env_int("DB_CONNECT_ATTEMPTS", 30)

    # MOTD / web page
    motd_data_path: str = os.getenv("MOTD_DATA_PATH", "data/motd.json")
    motd_default_message: str = os.getenv("MOTD_DEFAULT_MESSAGE", DEFAULT_MOTD)
    site_url: str = os.getenv("SITE_URL", "http://localhost:4331")
    public_dir: str = os.getenv("PUBLIC_DIR", "public")
    web_host: str = os.getenv("WEB_HOST", "127.0.0.1")
    web_port: int = _env_int("WEB_PORT", 4331)

    # Cross-posting
    crosspost_enabled: bool = _env_bool("CROSSPOST_ENABLED", True)
    crosspost_emoji: str = os.getenv("CROSSPOST_EMOJI", "🦋")
    crosspost_threshold: int = _env_int("CROSSPOST_THRESHOLD", 3)
    crosspost_ack_emoji: str = os.getenv("CROSSPOST_ACK_EMOJI", "✅")
    crosspost_claim_lease_sec: int = _env_int("CROSSPOST_CLAIM_LEASE_SEC", 300)

    # Bluesky
    bluesky_service: str = os.getenv("BLUESKY_SERVICE", "https://bsky.social")
    bluesky_handle: str = os.getenv("BLUESKY_HANDLE", "")
    bluesky_app_password: str = os.getenv("BLUESKY_APP_PASSWORD", "")
