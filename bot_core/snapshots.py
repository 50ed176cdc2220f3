# bot_core/snapshots.py
# Per-guild cache of invite code -> last known usage.

import logging
from typing import Dict

from .database import INVITES
from .errors import NETWORK_ERRORS, InvitesForbidden, TransientFetchError
from .models import InviteRecord, RefreshResult, RefreshStatus
from .state import TrackerState

logger = logging.getLogger('InviteBot')


class InviteSnapshotCache:
    def __init__(self, state: TrackerState):
        self.state = state

    def snapshot(self, guild_id) -> Dict[str, InviteRecord]:
        """Copy of the cached invites of a guild, empty if never seen."""
        return dict(self.state.invites.get(str(guild_id), {}))

    async def refresh(self, source) -> RefreshResult:
        """Re-fetch every invite of ``source``'s guild and replace the cache.

        Without Manage Server this is a silent no-op. Fetch failures keep the
        stale cache and come back as a FAILED result instead of raising.
        """
        guild_id = str(source.guild_id)

        if not source.can_manage_guild():
            return RefreshResult(RefreshStatus.SKIPPED, self.snapshot(guild_id))

        try:
            fetched = await source.fetch_invites()
        except InvitesForbidden as e:
            return RefreshResult(RefreshStatus.SKIPPED, self.snapshot(guild_id), e)
        except TransientFetchError as e:
            logger.warning(f"Keeping stale invite cache: {e}")
            return RefreshResult(RefreshStatus.FAILED, self.snapshot(guild_id), e)
        except NETWORK_ERRORS as e:
            logger.warning(f"[{guild_id}] Keeping stale invite cache, connection lost: {e!r}")
            return RefreshResult(RefreshStatus.FAILED, self.snapshot(guild_id), e)

        # insertion order follows the fetch order, the join diff relies on it
        fresh = {record.code: record for record in fetched}
        self.state.invites[guild_id] = fresh
        self.state.persist(INVITES)
        return RefreshResult(RefreshStatus.OK, dict(fresh))

    def record_create(self, guild_id, record: InviteRecord):
        self.state.invites.setdefault(str(guild_id), {})[record.code] = record
        self.state.persist(INVITES)

    def record_delete(self, guild_id, code: str) -> bool:
        codes = self.state.invites.get(str(guild_id))
        if not codes or code not in codes:
            return False
        del codes[code]
        self.state.persist(INVITES)
        return True

