# bot_core/attribution.py
# Works out which invite a freshly joined member used.
#
# Discord never says which invite was used, so the engine compares the
# cached use counts with a fresh fetch and falls back to the vanity URL
# counter. Joins in the same guild are serialised so two overlapping joins
# never diff against the same baseline.

import asyncio
import logging
from typing import Dict, Optional

from .errors import NETWORK_ERRORS, TrackerError
from .ledger import StatisticsLedger
from .models import (
    AttributionResult,
    Inconclusive,
    InviteRecord,
    MatchedInvite,
    MatchedVanity,
)
from .snapshots import InviteSnapshotCache

logger = logging.getLogger('InviteBot')


def find_used_invite(before: Dict[str, InviteRecord], after: Dict[str, InviteRecord]) -> Optional[InviteRecord]:
    """First invite in fetch order whose uses went up.

    Codes already cached are compared first. Codes the cache has never seen
    count from 0 and are only considered when no known code moved, so an
    invite created while the bot was offline can't shadow the real one.
    When several codes moved inside one refresh window the first one wins;
    fetch order is whatever Discord returned.
    """
    for code, record in after.items():
        previous = before.get(code)
        if previous is not None and record.uses > previous.uses:
            return record
    for code, record in after.items():
        if code not in before and record.uses > 0:
            return record
    return None


class AttributionEngine:
    def __init__(self, snapshots: InviteSnapshotCache, ledger: StatisticsLedger):
        self.snapshots = snapshots
        self.ledger = ledger
        self._locks: Dict[str, asyncio.Lock] = {}

    def lock_for(self, guild_id) -> asyncio.Lock:
        key = str(guild_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    async def vanity_uses(self, source) -> Optional[int]:
        try:
            return await source.fetch_vanity_uses()
        except (TrackerError,) + NETWORK_ERRORS as e:
            logger.info(f"Vanity data unavailable: {e}")
            return None

    async def attribute(self, source, member_id) -> AttributionResult:
        """Attribute one join. Never raises; failures end as Inconclusive."""
        guild_id = str(source.guild_id)
        async with self.lock_for(guild_id):
            try:
                return await self._attribute(source, guild_id, str(member_id))
            except Exception as e:
                logger.error(f"Attribution failed in guild {guild_id} for member {member_id}: {e}", exc_info=e)
                return Inconclusive(reason=f"error: {e}")

    async def _attribute(self, source, guild_id: str, member_id: str) -> AttributionResult:
        vanity_before = await self.vanity_uses(source)
        before = self.snapshots.snapshot(guild_id)

        refreshed = await self.snapshots.refresh(source)
        used = find_used_invite(before, refreshed.invites)

        if used is not None:
            result = MatchedInvite.from_record(used)
            if result.inviter_id:
                self.ledger.increment_join(guild_id, result.inviter_id, result.code)
                self.ledger.record_attribution(guild_id, member_id, result.inviter_id)
            return result

        if vanity_before is not None:
            vanity_after = await self.vanity_uses(source)
            if vanity_after is not None and vanity_after > vanity_before:
                return MatchedVanity(uses=vanity_after)

        if not refreshed.ok:
            return Inconclusive(reason=f"invite refresh {refreshed.status.value}")
        return Inconclusive()
