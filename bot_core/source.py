# bot_core/source.py
# Adapter between a discord.Guild and the snapshot cache / attribution engine.

import logging
from typing import List, Optional

import discord

from .errors import NETWORK_ERRORS, InvitesForbidden, TransientFetchError
from .models import InviteRecord

logger = logging.getLogger('InviteBot')


class GuildInviteSource:
    """Everything the tracker needs to ask Discord about one guild.

    Tests substitute any object with the same attributes and coroutines.
    """

    def __init__(self, guild: discord.Guild):
        self.guild = guild

    @property
    def guild_id(self) -> str:
        return str(self.guild.id)

    @property
    def name(self) -> str:
        return self.guild.name

    def can_manage_guild(self) -> bool:
        me = self.guild.me
        return bool(me and me.guild_permissions.manage_guild)

    async def fetch_invites(self) -> List[InviteRecord]:
        try:
            invites = await self.guild.invites()
        except discord.Forbidden as e:
            raise InvitesForbidden(self.guild_id) from e
        except discord.HTTPException as e:
            raise TransientFetchError(self.guild_id, f"Could not fetch invites: {e}") from e
        except NETWORK_ERRORS as e:
            raise TransientFetchError(self.guild_id, f"Connection lost fetching invites: {e!r}") from e
        return [InviteRecord.from_invite(invite) for invite in invites]

    async def fetch_vanity_uses(self) -> Optional[int]:
        """Uses of the vanity URL, or None when the guild has none."""
        if "VANITY_URL" not in self.guild.features:
            return None
        try:
            vanity = await self.guild.vanity_invite()
        except discord.Forbidden as e:
            raise InvitesForbidden(self.guild_id) from e
        except discord.HTTPException as e:
            raise TransientFetchError(self.guild_id, f"Could not fetch vanity data: {e}") from e
        except NETWORK_ERRORS as e:
            raise TransientFetchError(self.guild_id, f"Connection lost fetching vanity data: {e!r}") from e
        if vanity is None:
            return None
        return vanity.uses or 0
