# bot_core/config.py
"""
Configuration for the invite tracker bot.

Values come from environment variables; a local .env file is loaded first.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _get_env_value(key: str, default: str = "") -> str:
    value = os.getenv(key, default)
    # stray spaces are a common copy/paste mistake in hosting dashboards
    return value.strip() if value else default


def _get_int(key: str, default: int) -> int:
    try:
        return int(_get_env_value(key, str(default)))
    except ValueError:
        return default


class Config:
    """Application configuration."""

    BOT_TOKEN: str = _get_env_value("DISCORD_TOKEN") or _get_env_value("BOT_TOKEN")
    # Commands sync instantly to this guild; global sync can take up to an hour
    GUILD_ID: str = _get_env_value("GUILD_ID")

    DATA_DIR: str = _get_env_value("DATA_DIR", "data")

    # Keep-alive web server for free hosting tiers
    PORT: int = _get_int("PORT", 3000)
    KEEPALIVE_ENABLED: bool = _get_env_value("KEEPALIVE_ENABLED", "1") == "1"

    # Live status message
    STATUS_CHANNEL_ID: str = _get_env_value("STATUS_CHANNEL_ID")
    STATUS_INTERVAL_SECONDS: int = max(5, _get_int("STATUS_INTERVAL_SECONDS", 30))

    INVITE_REFRESH_MINUTES: int = max(1, _get_int("INVITE_REFRESH_MINUTES", 30))

    ERROR_WEBHOOK: str = _get_env_value("ERROR_WEBHOOK")

    LOG_CHANNEL_NAME: str = _get_env_value("LOG_CHANNEL_NAME", "invite-logs")
    BOT_USERNAME: str = _get_env_value("BOT_USERNAME")

    # /lb amount bounds
    LEADERBOARD_DEFAULT: int = 10
    LEADERBOARD_MIN: int = 3
    LEADERBOARD_MAX: int = 25

    THEME_COLOR: int = 0x8000FF

    @classmethod
    def validate(cls):
        if not cls.BOT_TOKEN:
            raise ValueError("DISCORD_TOKEN is required")

    @classmethod
    def clamp_leaderboard(cls, amount) -> int:
        if amount is None:
            return cls.LEADERBOARD_DEFAULT
        return max(cls.LEADERBOARD_MIN, min(cls.LEADERBOARD_MAX, int(amount)))
