# bot_core/tracker.py
# Entry point the cogs talk to. Owns the state holder and wires the
# snapshot cache, ledger and attribution engine together.

import logging
from typing import List, Optional, Tuple

from .attribution import AttributionEngine
from .database import DatabaseHandler
from .ledger import StatisticsLedger
from .migrations import run_migrations
from .models import AttributionResult, InviteRecord, InviterStats, RefreshResult
from .snapshots import InviteSnapshotCache
from .state import TrackerState

logger = logging.getLogger('InviteBot')


class InviteTracker:
    def __init__(self, state: TrackerState):
        self.state = state
        self.snapshots = InviteSnapshotCache(state)
        self.ledger = StatisticsLedger(state)
        self.engine = AttributionEngine(self.snapshots, self.ledger)

    @classmethod
    def from_store(cls, store: DatabaseHandler) -> "InviteTracker":
        store.ensure_files()
        run_migrations(store)
        return cls(TrackerState.load(store))

    # ---------- reads ----------

    def get_stats(self, guild_id, user_id) -> InviterStats:
        return self.ledger.get(guild_id, user_id)

    def leaderboard(self, guild_id, n: int) -> List[Tuple[str, int]]:
        return self.ledger.top_n(guild_id, n)

    def log_channel_id(self, guild_id) -> Optional[str]:
        return self.state.log_channel_id(guild_id)

    # ---------- writes ----------

    def adjust_bonus(self, guild_id, user_id, delta: int) -> InviterStats:
        """Apply a manual bonus. Callers check permissions first."""
        return self.ledger.adjust_bonus(guild_id, user_id, delta)

    def set_log_channel(self, guild_id, channel_id):
        self.state.set_log_channel(guild_id, channel_id)

    # ---------- events ----------

    async def refresh(self, source) -> RefreshResult:
        """Full invite refresh, queued behind any join being attributed."""
        async with self.engine.lock_for(source.guild_id):
            return await self.snapshots.refresh(source)

    async def on_join(self, source, member_id) -> AttributionResult:
        return await self.engine.attribute(source, member_id)

    async def on_leave(self, guild_id, member_id) -> Optional[str]:
        """Returns the inviter credited with the leave, if any.

        Waits for a join of the same guild still being attributed, so a
        member leaving mid-attribution is credited against their inviter.
        """
        async with self.engine.lock_for(guild_id):
            return self.ledger.credit_leave(guild_id, member_id)

    def on_invite_create(self, guild_id, record: InviteRecord):
        self.snapshots.record_create(guild_id, record)

    def on_invite_delete(self, guild_id, code: str):
        self.snapshots.record_delete(guild_id, code)
