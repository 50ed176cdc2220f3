import copy

from bot_core.database import META, STATS
from bot_core.migrations import SCHEMA_VERSION, migrate_stats_record, run_migrations, split_legacy_totals
from bot_core.state import TrackerState


def test_legacy_total_becomes_joins():
    record, changed = migrate_stats_record({"total": 12, "lastInviteCode": "abc"})

    assert changed
    assert record == {"joins": 12, "leaves": 0, "bonus": 0, "lastInviteCode": "abc"}


def test_current_shape_is_defaulted_without_touching_values():
    record, changed = migrate_stats_record({"joins": 4, "bonus": -2})

    assert changed
    assert record == {"joins": 4, "leaves": 0, "bonus": -2, "lastInviteCode": None}


def test_complete_record_is_left_alone():
    original = {"joins": 4, "leaves": 1, "bonus": 2, "lastInviteCode": "xyz"}
    record, changed = migrate_stats_record(dict(original))

    assert not changed
    assert record == original


def test_bare_count_from_first_versions():
    record, changed = migrate_stats_record(7)

    assert changed
    assert record == {"joins": 7, "leaves": 0, "bonus": 0, "lastInviteCode": None}


def test_migration_is_idempotent():
    stats = {
        "1": {
            "a": {"total": 12, "lastInviteCode": "abc"},
            "b": {"joins": 3},
            "c": {"joins": 1, "leaves": 1, "bonus": 0, "lastInviteCode": None},
        },
        "2": "garbage",
    }
    once = copy.deepcopy(stats)
    assert split_legacy_totals(once)

    twice = copy.deepcopy(once)
    assert not split_legacy_totals(twice)
    assert twice == once
    assert once["2"] == {}


def test_run_migrations_persists_once_and_records_version(store):
    store.save(STATS, {"1": {"42": {"total": 5, "lastInviteCode": "zzz"}}})

    assert run_migrations(store) is True
    assert store.load(STATS) == {"1": {"42": {"joins": 5, "leaves": 0, "bonus": 0, "lastInviteCode": "zzz"}}}
    assert store.load(META)["schema_version"] == SCHEMA_VERSION

    assert run_migrations(store) is False


def test_state_load_normalises_legacy_records_even_without_migration(store):
    store.save(STATS, {"1": {"42": {"total": 5, "lastInviteCode": "zzz"}}})

    state = TrackerState.load(store)
    stats = state.stats["1"]["42"]

    assert (stats.joins, stats.leaves, stats.bonus) == (5, 0, 0)
    assert stats.last_invite_code == "zzz"
