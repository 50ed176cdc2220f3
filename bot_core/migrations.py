# bot_core/migrations.py
# Startup schema migrations for the JSON documents.
#
# Each step is idempotent: running it on already-migrated data changes nothing.
# meta.json remembers the last applied version so steps normally run once.

import logging
from typing import Callable, List, Tuple

from .database import META, STATS, DatabaseHandler
from .errors import PersistenceError

logger = logging.getLogger('InviteBot')

STAT_FIELDS = ("joins", "leaves", "bonus")


def _to_int(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def migrate_stats_record(record):
    """Return ``(record, changed)`` for one per-user stats record.

    Legacy records only carried a cumulative ``total``; that becomes ``joins``.
    Current records get missing counters zeroed. ``total`` is derived and is
    never kept on disk.
    """
    if not isinstance(record, dict):
        # the first bot versions stored a bare count per user
        return {"joins": max(0, _to_int(record)), "leaves": 0, "bonus": 0, "lastInviteCode": None}, True

    is_legacy = "total" in record and not any(f in record for f in STAT_FIELDS)
    if is_legacy:
        migrated = {
            "joins": max(0, _to_int(record.get("total"))),
            "leaves": 0,
            "bonus": 0,
            "lastInviteCode": record.get("lastInviteCode"),
        }
        return migrated, True

    migrated = dict(record)
    for name in STAT_FIELDS:
        migrated.setdefault(name, 0)
    migrated.setdefault("lastInviteCode", None)
    migrated.pop("total", None)
    return migrated, migrated != record


def split_legacy_totals(stats: dict) -> bool:
    """Migrate every stats record in place. Returns True if anything changed."""
    changed = False
    for guild_id in list(stats):
        users = stats[guild_id]
        if not isinstance(users, dict):
            stats[guild_id] = {}
            changed = True
            continue
        for user_id in list(users):
            migrated, record_changed = migrate_stats_record(users[user_id])
            if record_changed:
                users[user_id] = migrated
                changed = True
    return changed


MIGRATIONS: List[Tuple[int, Callable[[dict], bool]]] = [
    (1, split_legacy_totals),
]

SCHEMA_VERSION = MIGRATIONS[-1][0]


def run_migrations(store: DatabaseHandler) -> bool:
    """Apply pending migrations to the stats document. Saves once at the end."""
    meta = store.load(META)
    current = _to_int(meta.get("schema_version"))
    pending = [(version, step) for version, step in MIGRATIONS if version > current]
    if not pending:
        return False

    stats = store.load(STATS)
    changed = False
    for version, step in pending:
        if step(stats):
            changed = True
            logger.info(f"Applied stats migration v{version}")

    try:
        if changed:
            store.save(STATS, stats)
        store.save(META, {**meta, "schema_version": SCHEMA_VERSION})
    except PersistenceError as e:
        # migrated records are still normalised in memory when loaded
        logger.warning(f"Migration result not persisted: {e}")
    return changed
