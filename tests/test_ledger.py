from bot_core.database import MEMBERS, STATS
from bot_core.ledger import StatisticsLedger
from bot_core.state import TrackerState

from conftest import GUILD, FailingStore


def test_total_tracks_every_mutation(state):
    ledger = StatisticsLedger(state)
    operations = [
        ("join", None), ("join", None), ("bonus", 5), ("leave", None),
        ("bonus", -7), ("join", None), ("leave", None), ("leave", None), ("bonus", 3),
    ]

    for op, value in operations:
        if op == "join":
            stats = ledger.increment_join(GUILD, "1", "code")
        elif op == "leave":
            stats = ledger.increment_leave(GUILD, "1")
        else:
            stats = ledger.adjust_bonus(GUILD, "1", value)
        assert stats.total == stats.joins - stats.leaves + stats.bonus
        assert ledger.total(ledger.get(GUILD, "1")) == stats.total

    final = ledger.get(GUILD, "1")
    assert (final.joins, final.leaves, final.bonus, final.total) == (3, 3, 1, 1)


def test_get_does_not_create_records(state):
    ledger = StatisticsLedger(state)

    stats = ledger.get(GUILD, "404")

    assert stats.total == 0
    assert state.stats == {}


def test_get_returns_a_copy(state):
    ledger = StatisticsLedger(state)
    ledger.increment_join(GUILD, "1", "abc")

    copy = ledger.get(GUILD, "1")
    copy.joins = 99

    assert ledger.get(GUILD, "1").joins == 1


def test_increment_join_sets_last_code_and_persists(state, store):
    ledger = StatisticsLedger(state)
    ledger.increment_join(GUILD, 1, "abc")
    ledger.increment_join(GUILD, 1, "def")

    on_disk = store.load(STATS)[GUILD]["1"]
    assert on_disk == {"joins": 2, "leaves": 0, "bonus": 0, "lastInviteCode": "def"}


def test_bonus_creates_record_lazily(state):
    ledger = StatisticsLedger(state)

    stats = ledger.adjust_bonus(GUILD, "7", -4)

    assert (stats.joins, stats.leaves, stats.bonus, stats.total) == (0, 0, -4, -4)


def _seed(ledger, totals):
    for user_id, total in totals.items():
        ledger.adjust_bonus(GUILD, user_id, total)


def test_top_n_orders_by_total_with_insertion_tie_break(state):
    ledger = StatisticsLedger(state)
    _seed(ledger, {"A": 5, "B": 9, "C": 9, "D": 1})

    assert ledger.top_n(GUILD, 3) == [("B", 9), ("C", 9), ("A", 5)]


def test_top_n_tie_break_follows_first_recorded(state):
    ledger = StatisticsLedger(state)
    _seed(ledger, {"C": 9, "B": 9})

    assert ledger.top_n(GUILD, 2) == [("C", 9), ("B", 9)]


def test_top_n_larger_than_entries_returns_everything(state):
    ledger = StatisticsLedger(state)
    _seed(ledger, {"A": 5, "B": 9, "C": 9, "D": 1})

    assert ledger.top_n(GUILD, 50) == [("B", 9), ("C", 9), ("A", 5), ("D", 1)]
    assert ledger.top_n(GUILD, 0) == []
    assert ledger.top_n("unknown", 10) == []


def test_credit_leave_for_attributed_member(state):
    ledger = StatisticsLedger(state)
    ledger.increment_join(GUILD, "inviter", "abc")
    ledger.increment_join(GUILD, "other", "def")
    ledger.record_attribution(GUILD, "member", "inviter")

    assert ledger.credit_leave(GUILD, "member") == "inviter"

    assert ledger.get(GUILD, "inviter").leaves == 1
    assert ledger.get(GUILD, "inviter").joins == 1
    assert ledger.get(GUILD, "other").leaves == 0
    # the inviter stays on record after the departure
    assert ledger.inviter_of(GUILD, "member") == "inviter"


def test_credit_leave_for_unknown_member_changes_nothing(state, store):
    ledger = StatisticsLedger(state)
    ledger.increment_join(GUILD, "inviter", "abc")
    before_stats = store.load(STATS)
    before_members = store.load(MEMBERS)

    assert ledger.credit_leave(GUILD, "stranger") is None

    assert store.load(STATS) == before_stats
    assert store.load(MEMBERS) == before_members
    assert ledger.get(GUILD, "inviter").leaves == 0


def test_rejoin_overwrites_attribution(state, store):
    ledger = StatisticsLedger(state)
    ledger.record_attribution(GUILD, "member", "first")
    ledger.record_attribution(GUILD, "member", "second")

    assert ledger.inviter_of(GUILD, "member") == "second"
    assert store.load(MEMBERS) == {GUILD: {"member": "second"}}


def test_write_failure_keeps_memory_authoritative(tmp_path):
    store = FailingStore(tmp_path / "data")
    state = TrackerState.load(store)
    ledger = StatisticsLedger(state)

    stats = ledger.increment_join(GUILD, "1", "abc")

    assert stats.joins == 1
    assert ledger.get(GUILD, "1").joins == 1
