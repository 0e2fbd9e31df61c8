"""Stochastic stat generation for matches without authoritative stats."""

from .simulator import (
    SimulationReport,
    generate_stat_line,
    performance_bonus,
    simulate,
    simulate_missing_stats,
)

__all__ = [
    "SimulationReport",
    "generate_stat_line",
    "performance_bonus",
    "simulate",
    "simulate_missing_stats",
]
