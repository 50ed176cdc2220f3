# bot_core/errors.py
import asyncio

import aiohttp

# Raw connection failures discord.py lets through untranslated
NETWORK_ERRORS = (aiohttp.ClientError, OSError, asyncio.TimeoutError)


class TrackerError(Exception):
    """Base class for invite tracker failures."""


class InvitesForbidden(TrackerError):
    """The bot lacks Manage Server in the guild, so invites can't be listed."""

    def __init__(self, guild_id):
        super().__init__(f"Missing Manage Server permission in guild {guild_id}")
        self.guild_id = guild_id


class TransientFetchError(TrackerError):
    """Network failure or rate limit while talking to Discord."""

    def __init__(self, guild_id, message: str):
        super().__init__(f"[{guild_id}] {message}")
        self.guild_id = guild_id


class PersistenceError(TrackerError):
    """A JSON document could not be written to disk."""

    def __init__(self, key: str, cause: Exception):
        super().__init__(f"Could not save '{key}': {cause}")
        self.key = key
        self.cause = cause
