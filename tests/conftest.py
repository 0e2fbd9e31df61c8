from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path

import pytest

from pysettle.models import LeagueConfig, PrizeEntry, StatLine
from pysettle.persistence import SettlementStore


@pytest.fixture
def store(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> SettlementStore:
    monkeypatch.delenv("PYSETTLE_DB_PATH", raising=False)
    return SettlementStore(tmp_path / "settle.sqlite")


@dataclass
class Scenario:
    store: SettlementStore
    match_id: str
    league_id: str
    alice_roster: str
    bob_roster: str
    alice_member: str
    bob_member: str


@pytest.fixture
def scenario(store: SettlementStore) -> Scenario:
    """Two rosters in match M scoring 30.5 and 18.0, one league paying 50 to first."""

    store.add_user("alice", credits=100, user_id="alice")
    store.add_user("bob", credits=100, user_id="bob")
    store.add_match("KC", "BUF", home_score=27, away_score=20, match_id="M")

    store.add_player("Quinn Passer", "KC", "QB", player_id="qb1")
    store.add_player("Kade Boot", "KC", "K", player_id="k1")
    store.add_player("Bills Defense", "BUF", "DEF", player_id="def1")
    store.add_player("Rory Runner", "BUF", "RB", player_id="rb1")

    # 22.0 + 3.5 + 5.0 = 30.5
    store.save_stat_line("qb1", "M", StatLine(passing_yards=300, passing_tds=3, interceptions=1))
    store.save_stat_line("k1", "M", StatLine(field_goals_made=1, field_goals_attempted=2))
    store.save_stat_line("def1", "M", StatLine(def_sacks=5))
    # 12 + 6 = 18.0
    store.save_stat_line("rb1", "M", StatLine(rushing_yards=120, rushing_tds=1))

    alice_roster = store.add_roster(
        "alice", "M", [("QB", "qb1"), ("K", "k1"), ("DEF", "def1")], name="Alice's Aces", roster_id="ra"
    )
    bob_roster = store.add_roster("bob", "M", [("RB-1", "rb1")], name="Bob's Bunch", roster_id="rb")

    league = store.add_league(
        LeagueConfig(
            match_id="M",
            name="Friday Night",
            entry_fee=Decimal("10"),
            max_members=2,
            base_prize_pool=Decimal("30"),
            prize_distribution=[PrizeEntry(rank=1, amount=Decimal("50"))],
        ),
        league_id="L1",
    )
    # Bob joins first so join order alone would put him on top.
    bob_member = store.add_membership(league.league_id, "bob", roster_id=bob_roster.roster_id, membership_id="mb")
    alice_member = store.add_membership(
        league.league_id, "alice", roster_id=alice_roster.roster_id, membership_id="ma"
    )
    return Scenario(
        store=store,
        match_id="M",
        league_id=league.league_id,
        alice_roster=alice_roster.roster_id,
        bob_roster=bob_roster.roster_id,
        alice_member=alice_member.membership_id,
        bob_member=bob_member.membership_id,
    )
