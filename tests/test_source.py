import asyncio
from types import SimpleNamespace

import aiohttp
import pytest

from bot_core.errors import TransientFetchError
from bot_core.models import RefreshStatus
from bot_core.snapshots import InviteSnapshotCache
from bot_core.source import GuildInviteSource

from conftest import GUILD, invite


class FakeGuild:
    """Just enough of discord.Guild for GuildInviteSource."""

    def __init__(self, invites=(), vanity=None, features=("VANITY_URL",), error=None):
        self.id = int(GUILD)
        self.name = "fake guild"
        self.features = list(features)
        self.me = SimpleNamespace(guild_permissions=SimpleNamespace(manage_guild=True))
        self._invites = list(invites)
        self._vanity = vanity
        self.error = error

    async def invites(self):
        if self.error is not None:
            raise self.error
        return self._invites

    async def vanity_invite(self):
        if self.error is not None:
            raise self.error
        return self._vanity


def _discord_invite(code, uses, inviter_id=77):
    return SimpleNamespace(
        code=code,
        uses=uses,
        inviter=SimpleNamespace(id=inviter_id),
        channel=SimpleNamespace(id=555),
        max_uses=0,
        created_at=None,
        expires_at=None,
    )


async def test_fetch_invites_maps_discord_invites():
    source = GuildInviteSource(FakeGuild(invites=[_discord_invite("abc", 3)]))

    records = await source.fetch_invites()

    assert [(r.code, r.uses, r.inviter_id, r.channel_id, r.max_uses) for r in records] == [
        ("abc", 3, "77", "555", None)
    ]


@pytest.mark.parametrize("error", [
    aiohttp.ClientConnectionError("connection reset"),
    asyncio.TimeoutError(),
    OSError("network unreachable"),
])
async def test_fetch_invites_wraps_connection_failures(error):
    source = GuildInviteSource(FakeGuild(error=error))

    with pytest.raises(TransientFetchError) as info:
        await source.fetch_invites()

    assert info.value.guild_id == GUILD
    assert info.value.__cause__ is error


async def test_fetch_vanity_uses_wraps_connection_failures():
    error = aiohttp.ClientConnectionError("connection reset")
    source = GuildInviteSource(FakeGuild(error=error))

    with pytest.raises(TransientFetchError):
        await source.fetch_vanity_uses()


async def test_vanity_uses_without_vanity_feature_is_none():
    source = GuildInviteSource(FakeGuild(features=(), error=OSError("never reached")))

    assert await source.fetch_vanity_uses() is None


async def test_vanity_uses_reads_counter():
    source = GuildInviteSource(FakeGuild(vanity=SimpleNamespace(uses=12)))

    assert await source.fetch_vanity_uses() == 12


async def test_refresh_over_dropped_connection_keeps_stale_cache(state):
    cache = InviteSnapshotCache(state)
    cache.record_create(GUILD, invite("abc", 1))
    source = GuildInviteSource(FakeGuild(error=aiohttp.ClientConnectionError("connection reset")))

    result = await cache.refresh(source)

    assert result.status is RefreshStatus.FAILED
    assert isinstance(result.error, TransientFetchError)
    assert cache.snapshot(GUILD)["abc"].uses == 1
