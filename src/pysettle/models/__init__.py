"""Canonical models shared across scoring, simulation and settlement."""

from .league import LeagueConfig, PrizeEntry, prize_pool, prize_total
from .stats import STAT_FIELDS, Position, StatLine

__all__ = [
    "LeagueConfig",
    "Position",
    "PrizeEntry",
    "STAT_FIELDS",
    "StatLine",
    "prize_pool",
    "prize_total",
]
