from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

from pysettle.models import LeagueConfig, PrizeEntry
from pysettle.persistence import SettlementStore


def _league(store: SettlementStore, **overrides) -> str:
    config = {
        "match_id": "M",
        "entry_fee": Decimal("10"),
        "max_members": 4,
        "prize_distribution": [PrizeEntry(rank=1, amount=Decimal("25")), PrizeEntry(rank=2, amount=Decimal("15"))],
    }
    config.update(overrides)
    return store.add_league(LeagueConfig(**config)).league_id


def test_league_config_rejects_prizes_over_pool():
    with pytest.raises(ValidationError):
        LeagueConfig(
            match_id="M",
            entry_fee=Decimal("10"),
            max_members=2,
            base_prize_pool=Decimal("5"),
            prize_distribution=[PrizeEntry(rank=1, amount=Decimal("25.01"))],
        )


def test_league_config_accepts_exact_pool_and_sorts_table():
    config = LeagueConfig(
        match_id="M",
        entry_fee=Decimal("10"),
        max_members=2,
        base_prize_pool=Decimal("5"),
        prize_distribution=[
            PrizeEntry(rank=2, amount=Decimal("10")),
            PrizeEntry(rank=1, amount=Decimal("15")),
        ],
    )
    assert config.prize_pool == Decimal("25")
    assert [entry.rank for entry in config.prize_distribution] == [1, 2]


def test_league_config_rejects_duplicate_ranks():
    with pytest.raises(ValidationError):
        LeagueConfig(
            match_id="M",
            entry_fee=Decimal("10"),
            prize_distribution=[PrizeEntry(rank=1, amount=Decimal("5")), PrizeEntry(rank=1, amount=Decimal("5"))],
        )


def test_constructor_path_beats_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    from_env = tmp_path / "from-env.sqlite"
    explicit = tmp_path / "explicit.sqlite"
    monkeypatch.setenv("PYSETTLE_DB_PATH", str(from_env))
    store = SettlementStore(explicit)
    assert store.db_path == explicit
    assert explicit.exists()
    assert not from_env.exists()


def test_league_round_trip(store: SettlementStore):
    store.add_match("KC", "BUF", match_id="M")
    league_id = _league(store, name="Sunday")
    league = store.get_league(league_id)
    assert league is not None
    assert league.name == "Sunday"
    assert league.entry_fee == Decimal("10")
    assert [(entry.rank, entry.amount) for entry in league.prize_distribution] == [
        (1, Decimal("25")),
        (2, Decimal("15")),
    ]
    assert [record.league_id for record in store.list_leagues("M")] == [league_id]
    assert store.get_league("missing") is None


def test_ordinals_follow_creation_order(store: SettlementStore):
    first = store.add_user("first")
    second = store.add_user("second")
    assert second.ordinal == first.ordinal + 1
    assert [user.username for user in store.list_users()] == ["first", "second"]


def test_payouts_credit_only_the_difference(store: SettlementStore):
    store.add_match("KC", "BUF", match_id="M")
    store.add_user("alice", credits=100, user_id="alice")
    store.add_user("bob", credits=100, user_id="bob")
    league_id = _league(store)
    alice = store.add_membership(league_id, "alice").membership_id
    bob = store.add_membership(league_id, "bob").membership_id

    applied = store.apply_league_payouts(league_id, {alice: Decimal("25"), bob: Decimal("15")})
    assert {(payout.user_id, payout.delta) for payout in applied} == {
        ("alice", Decimal("25")),
        ("bob", Decimal("15")),
    }
    assert store.apply_league_payouts(league_id, {alice: Decimal("25"), bob: Decimal("15")}) == []
    assert store.get_user("alice").credits == Decimal("125")
    assert store.get_user("bob").credits == Decimal("115")

    # Standings flipped after a stat correction: the prizes move with them.
    store.apply_league_payouts(league_id, {alice: Decimal("15"), bob: Decimal("25")})
    assert store.get_user("alice").credits == Decimal("115")
    assert store.get_user("bob").credits == Decimal("125")
    assert store.get_membership(alice).prizes_won == Decimal("15")
    assert store.get_membership(bob).prizes_won == Decimal("25")


def test_payouts_roll_back_as_a_unit(store: SettlementStore):
    store.add_match("KC", "BUF", match_id="M")
    store.add_user("alice", credits=100, user_id="alice")
    league_id = _league(store)
    alice = store.add_membership(league_id, "alice").membership_id
    ghost = store.add_membership(league_id, "ghost").membership_id

    with pytest.raises(KeyError):
        store.apply_league_payouts(league_id, {alice: Decimal("25"), ghost: Decimal("15")})

    assert store.get_user("alice").credits == Decimal("100")
    assert store.get_membership(alice).prizes_won == Decimal("0")
    assert store.apply_league_payouts(league_id, {alice: Decimal("25")})[0].delta == Decimal("25")


def test_payouts_reject_foreign_memberships(store: SettlementStore):
    store.add_match("KC", "BUF", match_id="M")
    league_id = _league(store)
    with pytest.raises(KeyError):
        store.apply_league_payouts(league_id, {"not-a-member": Decimal("5")})


def test_settlement_history(store: SettlementStore):
    store.add_match("KC", "BUF", match_id="M")
    record = store.create_settlement("M")
    assert record.state == "running"
    assert record.completed_at is None

    updated = store.update_settlement(record.settlement_id, state="completed", report={"users_updated": 2})
    assert updated.state == "completed"
    assert updated.completed_at is not None
    assert updated.report == {"users_updated": 2}
    assert [item.settlement_id for item in store.list_settlements("M")] == [record.settlement_id]
    with pytest.raises(KeyError):
        store.update_settlement("missing", state="failed")
