# bot_core/ledger.py
# Per-guild inviter statistics and the member -> inviter reverse index.

import logging
from typing import List, Optional, Tuple

from .database import MEMBERS, STATS
from .models import InviterStats
from .state import TrackerState

logger = logging.getLogger('InviteBot')


class StatisticsLedger:
    def __init__(self, state: TrackerState):
        self.state = state

    def _record(self, guild_id, user_id) -> InviterStats:
        users = self.state.stats.setdefault(str(guild_id), {})
        return users.setdefault(str(user_id), InviterStats())

    def get(self, guild_id, user_id) -> InviterStats:
        """Stats of a user; a zeroed record (not stored) if there are none."""
        stats = self.state.stats.get(str(guild_id), {}).get(str(user_id))
        if stats is None:
            return InviterStats()
        return InviterStats(stats.joins, stats.leaves, stats.bonus, stats.last_invite_code)

    def has_stats(self, guild_id) -> bool:
        return bool(self.state.stats.get(str(guild_id)))

    @staticmethod
    def total(stats: InviterStats) -> int:
        return stats.joins - stats.leaves + stats.bonus

    def increment_join(self, guild_id, user_id, code: Optional[str]) -> InviterStats:
        stats = self._record(guild_id, user_id)
        stats.joins += 1
        if code:
            stats.last_invite_code = code
        self.state.persist(STATS)
        return stats

    def increment_leave(self, guild_id, user_id) -> InviterStats:
        stats = self._record(guild_id, user_id)
        stats.leaves += 1
        self.state.persist(STATS)
        return stats

    def adjust_bonus(self, guild_id, user_id, delta: int) -> InviterStats:
        stats = self._record(guild_id, user_id)
        stats.bonus += int(delta)
        self.state.persist(STATS)
        return stats

    def top_n(self, guild_id, n: int) -> List[Tuple[str, int]]:
        """Inviters by total, highest first.

        sorted() is stable, so equal totals keep ledger insertion order: the
        inviter recorded first in this guild ranks first.
        """
        if n <= 0:
            return []
        users = self.state.stats.get(str(guild_id), {})
        ranked = sorted(
            ((user_id, self.total(stats)) for user_id, stats in users.items()),
            key=lambda entry: entry[1],
            reverse=True,
        )
        return ranked[:n]

    # ---------- reverse index ----------

    def record_attribution(self, guild_id, member_id, inviter_id):
        self.state.members.setdefault(str(guild_id), {})[str(member_id)] = str(inviter_id)
        self.state.persist(MEMBERS)

    def inviter_of(self, guild_id, member_id) -> Optional[str]:
        return self.state.members.get(str(guild_id), {}).get(str(member_id))

    def credit_leave(self, guild_id, member_id) -> Optional[str]:
        """Credit a departure to the member's inviter, if one is known.

        The index entry stays in place so the last known inviter survives the
        departure; a rejoin overwrites it.
        """
        inviter_id = self.inviter_of(guild_id, member_id)
        if inviter_id is None:
            return None
        self.increment_leave(guild_id, inviter_id)
        return inviter_id
