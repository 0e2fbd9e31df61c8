"""Scoring weights for supported fantasy formats."""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Dict, Iterable


@dataclass(frozen=True)
class ScoringRules:
    name: str
    passing_yards_per_point: int
    passing_td: Decimal
    interception: Decimal
    rushing_yards_per_point: int
    rushing_td: Decimal
    receiving_yards_per_point: int
    receiving_td: Decimal
    reception: Decimal
    fumble_lost: Decimal
    field_goal: Decimal
    def_sack: Decimal
    def_interception: Decimal
    def_td: Decimal


STANDARD = ScoringRules(
    name="STANDARD",
    passing_yards_per_point=25,
    passing_td=Decimal("4"),
    interception=Decimal("-2"),
    rushing_yards_per_point=10,
    rushing_td=Decimal("6"),
    receiving_yards_per_point=10,
    receiving_td=Decimal("6"),
    reception=Decimal("0"),
    fumble_lost=Decimal("-2"),
    # Flat average of the 3/4/5 point distance buckets.
    field_goal=Decimal("3.5"),
    def_sack=Decimal("1"),
    def_interception=Decimal("2"),
    def_td=Decimal("6"),
)


_SCORING_RULES: Dict[str, ScoringRules] = {
    "STANDARD": STANDARD,
    "HALF_PPR": replace(STANDARD, name="HALF_PPR", reception=Decimal("0.5")),
    "PPR": replace(STANDARD, name="PPR", reception=Decimal("1")),
}


def iter_scoring_rules() -> Iterable[ScoringRules]:
    """Return an iterator of all configured scoring formats."""

    return _SCORING_RULES.values()


def get_scoring_rules(name: str) -> ScoringRules:
    """Fetch a scoring format by name, raising KeyError if missing."""

    key = name.strip().upper().replace("-", "_")
    if key not in _SCORING_RULES:
        raise KeyError(f"No scoring rules configured for {name!r}")
    return _SCORING_RULES[key]
