from decimal import Decimal

import pytest
from pydantic import ValidationError

from pysettle.config import STANDARD, get_scoring_rules, iter_scoring_rules
from pysettle.models import StatLine
from pysettle.scoring import points, round_points, total_points


def test_passing_vector():
    stat = StatLine(passing_yards=300, passing_tds=3, interceptions=1)
    assert points(stat) == Decimal("22.0")


def test_points_is_deterministic():
    stat = StatLine(passing_yards=287, rushing_yards=31, rushing_tds=1, fumbles_lost=1)
    assert points(stat) == points(stat) == Decimal("18.0")


def test_yardage_floors_to_whole_points():
    assert points(StatLine(rushing_yards=99)) == Decimal("9.0")
    assert points(StatLine(passing_yards=24)) == Decimal("0.0")
    assert points(StatLine(receiving_yards=105, receiving_tds=2)) == Decimal("22.0")


def test_negative_rushing_yards_floor_downwards():
    assert points(StatLine(rushing_yards=-3)) == Decimal("-1.0")


def test_receptions_score_nothing_in_standard():
    assert points(StatLine(receptions=8, receiving_yards=40)) == Decimal("4.0")


@pytest.mark.parametrize(
    "name, expected",
    [("STANDARD", Decimal("4.0")), ("HALF_PPR", Decimal("8.0")), ("PPR", Decimal("12.0"))],
)
def test_reception_weights_by_format(name, expected):
    rules = get_scoring_rules(name)
    assert points(StatLine(receptions=8, receiving_yards=40), rules) == expected


def test_kicking_and_defense():
    assert points(StatLine(field_goals_made=3, field_goals_attempted=4)) == Decimal("10.5")
    assert points(StatLine(def_sacks=3, def_interceptions=1, def_tds=1)) == Decimal("11.0")
    assert points(StatLine(fumbles_lost=2)) == Decimal("-4.0")


def test_missing_fields_count_as_zero():
    assert points(StatLine()) == Decimal("0.0")
    assert StatLine(passing_yards=None, rushing_tds="").rushing_tds == 0


def test_stat_line_rejects_negative_counts():
    with pytest.raises(ValidationError):
        StatLine(passing_tds=-1)


def test_round_points_half_up():
    assert round_points(Decimal("0.25")) == Decimal("0.3")
    assert round_points(Decimal("-0.25")) == Decimal("-0.3")
    assert total_points([Decimal("1.25"), None, Decimal("2")]) == Decimal("3.3")


def test_scoring_rules_lookup():
    assert get_scoring_rules("half-ppr").name == "HALF_PPR"
    assert get_scoring_rules("standard") is STANDARD
    assert {rules.name for rules in iter_scoring_rules()} == {"STANDARD", "HALF_PPR", "PPR"}
    with pytest.raises(KeyError):
        get_scoring_rules("SUPERFLEX")
