"""Fantasy point calculation for a single stat line."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from pysettle.config.scoring import STANDARD, ScoringRules
from pysettle.models import StatLine


ONE_DECIMAL = Decimal("0.1")


def round_points(value: Decimal) -> Decimal:
    """Round to one decimal place, halves away from zero."""

    return Decimal(value).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)


def points(stat: StatLine, rules: Optional[ScoringRules] = None) -> Decimal:
    """Return the fantasy points earned by ``stat``.

    Yardage converts in whole-point steps (``floor(yards / per_point)``), so
    negative rushing yardage costs a point as soon as it dips below zero.
    Kicking uses a flat per-make value rather than distance buckets.
    """

    rules = rules or STANDARD
    total = Decimal("0")

    total += stat.passing_yards // rules.passing_yards_per_point
    total += rules.passing_td * stat.passing_tds
    total += rules.interception * stat.interceptions

    total += stat.rushing_yards // rules.rushing_yards_per_point
    total += rules.rushing_td * stat.rushing_tds

    total += stat.receiving_yards // rules.receiving_yards_per_point
    total += rules.receiving_td * stat.receiving_tds
    total += rules.reception * stat.receptions

    total += rules.fumble_lost * stat.fumbles_lost

    total += rules.field_goal * stat.field_goals_made

    total += rules.def_sack * stat.def_sacks
    total += rules.def_interception * stat.def_interceptions
    total += rules.def_td * stat.def_tds

    return round_points(total)


def total_points(values: Iterable[Optional[Decimal]]) -> Decimal:
    """Sum cached point values, counting missing entries as zero."""

    return round_points(sum((value or Decimal("0") for value in values), Decimal("0")))
