import logging
from types import SimpleNamespace

import discord

from bot_core.config import Config
from cogs.invite import find_named_channel
from cogs.status import StatusCog


def _not_found():
    return discord.NotFound(SimpleNamespace(status=404, reason="Not Found"), "Unknown Channel")


def test_find_named_channel_ignores_case_on_both_sides():
    channels = [SimpleNamespace(name="general"), SimpleNamespace(name="invite-logs")]

    assert find_named_channel(channels, "Invite-Logs") is channels[1]
    assert find_named_channel(channels, "INVITE-LOGS") is channels[1]
    assert find_named_channel(channels, "audit") is None


async def test_missing_status_channel_warns_once(state, monkeypatch, caplog):
    async def fetch_channel(channel_id):
        raise _not_found()

    bot = SimpleNamespace(tracker=SimpleNamespace(state=state), get_channel=lambda channel_id: None,
                          fetch_channel=fetch_channel)
    monkeypatch.setattr(Config, "STATUS_CHANNEL_ID", "")
    cog = StatusCog(bot)
    monkeypatch.setattr(Config, "STATUS_CHANNEL_ID", "42")

    with caplog.at_level(logging.WARNING, logger="InviteBot"):
        await cog.update_status()
        await cog.update_status()
        await cog.update_status()

    missing = [r for r in caplog.records if "is missing" in r.getMessage()]
    assert len(missing) == 1
    assert cog.message is None
