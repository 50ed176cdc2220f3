import asyncio
from dataclasses import replace

import pytest

from bot_core.database import DatabaseHandler
from bot_core.errors import PersistenceError
from bot_core.models import InviteRecord
from bot_core.state import TrackerState
from bot_core.tracker import InviteTracker

GUILD = "100"


def invite(code, uses, inviter="9001", channel="555", max_uses=None):
    return InviteRecord(code=code, uses=uses, inviter_id=inviter, channel_id=channel, max_uses=max_uses)


class FakeSource:
    """Stands in for GuildInviteSource: a guild whose invites we control."""

    def __init__(self, guild_id=GUILD, invites=None, vanity=None, manage=True):
        self.guild_id = guild_id
        self.name = f"guild-{guild_id}"
        self.invites = list(invites or [])
        # successive vanity readings; the last one repeats
        self.vanity = list(vanity) if isinstance(vanity, (list, tuple)) else [vanity]
        self.manage = manage
        self.invite_error = None
        self.vanity_error = None
        self.fetch_calls = 0
        self.active = 0
        self.max_active = 0
        self.shared = None

    def can_manage_guild(self):
        return self.manage

    def set_uses(self, code, uses):
        self.invites = [replace(r, uses=uses) if r.code == code else r for r in self.invites]

    async def fetch_invites(self):
        self.fetch_calls += 1
        counter = self.shared or self
        counter.active += 1
        counter.max_active = max(counter.max_active, counter.active)
        try:
            await asyncio.sleep(0)
            if self.invite_error is not None:
                raise self.invite_error
            return [replace(r) for r in self.invites]
        finally:
            counter.active -= 1

    async def fetch_vanity_uses(self):
        if self.vanity_error is not None:
            raise self.vanity_error
        if len(self.vanity) > 1:
            return self.vanity.pop(0)
        return self.vanity[0]


class FailingStore(DatabaseHandler):
    """Loads normally, refuses every write."""

    def save(self, key, data):
        raise PersistenceError(key, OSError("disk full"))


@pytest.fixture
def store(tmp_path):
    handler = DatabaseHandler(tmp_path / "data")
    handler.ensure_files()
    return handler


@pytest.fixture
def state(store):
    return TrackerState.load(store)


@pytest.fixture
def tracker(store):
    return InviteTracker.from_store(store)
