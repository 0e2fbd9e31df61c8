import random

import pytest

from pysettle.models import Position, StatLine
from pysettle.persistence import SettlementStore
from pysettle.scoring import points
from pysettle.simulation import generate_stat_line, performance_bonus, simulate, simulate_missing_stats


@pytest.mark.parametrize(
    "team_score, opponent_score, expected",
    [
        (42, 20, 0.25),
        (40, 20, 0.15),
        (31, 20, 0.15),
        (30, 20, 0.05),
        (21, 20, 0.05),
        (20, 20, -0.05),
        (20, 29, -0.05),
        (20, 30, -0.15),
        (20, 39, -0.15),
        (20, 40, -0.25),
    ],
)
def test_performance_bonus_steps(team_score, opponent_score, expected):
    assert performance_bonus(team_score, opponent_score) == pytest.approx(expected)


def test_qb_bounds_at_neutral_bonus():
    rng = random.Random(1234)
    for _ in range(10_000):
        stat = generate_stat_line("QB", 0.0, rng=rng)
        assert 180 <= stat.passing_yards <= 350
        assert 0 <= stat.interceptions <= 2


def test_seeded_simulation_is_reproducible():
    first = [simulate("RB", 30, 10, rng=random.Random(7)) for _ in range(3)]
    second = [simulate("RB", 30, 10, rng=random.Random(7)) for _ in range(3)]
    assert first == second


def test_kicker_never_makes_more_than_attempted():
    rng = random.Random(99)
    for _ in range(2_000):
        stat = simulate("K", 38, 10, rng=rng)
        assert 2 <= stat.field_goals_attempted <= 5
        assert stat.field_goals_made <= stat.field_goals_attempted


def test_blowout_losses_stay_non_negative():
    rng = random.Random(5)
    for position in Position:
        for _ in range(500):
            stat = simulate(position, 0, 45, rng=rng)
            assert all(value >= 0 for value in stat.model_dump().values())


def test_unknown_position_simulates_as_receiver():
    stat = simulate("LS", 21, 17, rng=random.Random(11))
    assert stat.passing_yards == 0
    assert stat.receiving_yards > 0
    assert Position.parse("dst") is Position.DEF


def test_simulate_missing_stats_fills_only_gaps(store: SettlementStore):
    store.add_match("DAL", "PHI", home_score=13, away_score=34, match_id="G1")
    store.add_player("Dak Arm", "DAL", "QB", player_id="p1")
    store.add_player("Ceedee Hands", "DAL", "WR", player_id="p2")
    store.add_player("Saquon Legs", "PHI", "RB", player_id="p3")
    store.add_player("Eagles Defense", "PHI", "DEF", player_id="p4")
    store.add_player("Bench Guy", "NYG", "TE", player_id="p5")
    provided = StatLine(passing_yards=250, passing_tds=2)
    store.save_stat_line("p1", "G1", provided, fantasy_points=points(provided))

    report = simulate_missing_stats(store, "G1", rng=random.Random(3))

    assert report.created == 3
    assert report.skipped == 1
    records = {record.player_id: record for record in store.list_stat_lines("G1")}
    assert set(records) == {"p1", "p2", "p3", "p4"}
    assert records["p1"].source == "provider"
    assert records["p1"].stat == provided
    for player_id in ("p2", "p3", "p4"):
        assert records[player_id].source == "simulated"
        assert records[player_id].fantasy_points == points(records[player_id].stat)

    again = simulate_missing_stats(store, "G1", rng=random.Random(3))
    assert again.created == 0
    assert again.skipped == 4


def test_simulate_missing_stats_unknown_match(store: SettlementStore):
    with pytest.raises(KeyError):
        simulate_missing_stats(store, "missing")


def test_interceptions_use_the_negated_bonus():
    win_rng = random.Random(17)
    loss_rng = random.Random(17)
    wins = [generate_stat_line("QB", 0.25, winning=True, rng=win_rng).interceptions for _ in range(2_000)]
    losses = [generate_stat_line("QB", -0.25, rng=loss_rng).interceptions for _ in range(2_000)]
    # 2 * 0.75 never rounds past 1 for the winner.
    assert max(wins) <= 1
    assert 2 in losses
    assert sum(losses) > sum(wins)


def test_fumbles_rarer_for_winners():
    win_rng = random.Random(29)
    loss_rng = random.Random(29)
    wins = sum(generate_stat_line("QB", 0.25, winning=True, rng=win_rng).fumbles_lost for _ in range(20_000))
    losses = sum(generate_stat_line("QB", -0.25, rng=loss_rng).fumbles_lost for _ in range(20_000))
    # Expected 0.075 vs 0.125 per game.
    assert wins < losses
    assert 1_200 < wins < 1_800
    assert 2_100 < losses < 2_900


def test_simulate_at_even_score():
    rng = random.Random(8)
    for _ in range(2_000):
        stat = simulate("QB", 24, 24, rng=rng)
        assert 171 <= stat.passing_yards <= 333
        assert 0 <= stat.interceptions <= 2
    assert simulate("QB", 24, 24, rng=random.Random(4)) == generate_stat_line("QB", -0.05, rng=random.Random(4))
