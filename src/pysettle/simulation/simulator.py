"""Plausible stat lines for players with no authoritative box score.

Each position draws from fixed ranges that are scaled by a performance bonus
derived from the final score differential, so players on winning teams tend to
post bigger numbers and commit fewer turnovers. The output is a plain
:class:`~pysettle.models.StatLine`; points always come from the scoring
calculator.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from pysettle.config.scoring import ScoringRules
from pysettle.models import Position, StatLine
from pysettle.persistence import SettlementStore
from pysettle.scoring import points


logger = logging.getLogger(__name__)


def performance_bonus(team_score: int, opponent_score: int) -> float:
    """Step function from score differential to a stat multiplier offset."""

    differential = team_score - opponent_score
    if differential > 20:
        return 0.25
    if differential > 10:
        return 0.15
    if differential > 0:
        return 0.05
    if differential > -10:
        return -0.05
    if differential > -20:
        return -0.15
    return -0.25


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _draw(rng: random.Random, low: float, high: float, bias: float = 0.0) -> int:
    base = rng.uniform(low, high)
    return max(0, _round_half_up(base * (1 + bias)))


def _chance(rng: random.Random, probability: float) -> int:
    return 1 if rng.random() < probability else 0


def _fumble(rng: random.Random, base_probability: float, bonus: float) -> int:
    return _chance(rng, base_probability * (1 - bonus))


def _qb(rng: random.Random, bonus: float, winning: bool) -> StatLine:
    return StatLine(
        passing_yards=_draw(rng, 180, 350, bonus),
        passing_tds=_draw(rng, 1, 4, bonus),
        interceptions=_draw(rng, 0, 2, -bonus),
        rushing_yards=_draw(rng, 0, 35, bonus / 2),
        rushing_tds=_draw(rng, 0, 1, bonus / 2),
        fumbles_lost=_fumble(rng, 0.10, bonus),
    )


def _rb(rng: random.Random, bonus: float, winning: bool) -> StatLine:
    starter = rng.random() > 0.5
    return StatLine(
        rushing_yards=_draw(rng, 60, 140, bonus) if starter else _draw(rng, 20, 70, bonus),
        rushing_tds=_draw(rng, 0, 2, bonus),
        receptions=_draw(rng, 2, 6, bonus / 2),
        receiving_yards=_draw(rng, 10, 50, bonus / 2),
        receiving_tds=_chance(rng, 0.15),
        fumbles_lost=_fumble(rng, 0.08, bonus),
    )


def _wr(rng: random.Random, bonus: float, winning: bool) -> StatLine:
    wr1 = rng.random() > 0.6
    return StatLine(
        rushing_yards=_draw(rng, 5, 25) if rng.random() < 0.2 else 0,
        receptions=_draw(rng, 5, 10, bonus) if wr1 else _draw(rng, 2, 6, bonus),
        receiving_yards=_draw(rng, 60, 130, bonus) if wr1 else _draw(rng, 25, 80, bonus),
        receiving_tds=_draw(rng, 0, 2, bonus),
        fumbles_lost=_fumble(rng, 0.05, bonus),
    )


def _te(rng: random.Random, bonus: float, winning: bool) -> StatLine:
    return StatLine(
        receptions=_draw(rng, 3, 8, bonus),
        receiving_yards=_draw(rng, 30, 90, bonus),
        receiving_tds=_draw(rng, 0, 1, bonus),
        fumbles_lost=_fumble(rng, 0.03, bonus),
    )


def _k(rng: random.Random, bonus: float, winning: bool) -> StatLine:
    attempts = _draw(rng, 2, 5)
    made = min(attempts, _draw(rng, 1, 4, bonus))
    return StatLine(field_goals_made=made, field_goals_attempted=attempts)


def _defense(rng: random.Random, bonus: float, winning: bool) -> StatLine:
    return StatLine(
        def_sacks=_draw(rng, 2, 6, bonus),
        def_interceptions=_draw(rng, 0, 2, bonus),
        def_tds=_chance(rng, 0.15 if winning else 0.05),
    )


_GENERATORS: Dict[Position, Callable[[random.Random, float, bool], StatLine]] = {
    Position.QB: _qb,
    Position.RB: _rb,
    Position.WR: _wr,
    Position.TE: _te,
    Position.K: _k,
    Position.DEF: _defense,
}


def generate_stat_line(
    position: Position | str,
    bonus: float,
    *,
    winning: bool = False,
    rng: Optional[random.Random] = None,
) -> StatLine:
    """Draw a stat line for ``position`` at an explicit performance bonus."""

    rng = rng or random.Random()
    generator = _GENERATORS[Position.parse(position)]
    return generator(rng, bonus, winning)


def simulate(
    position: Position | str,
    team_score: int,
    opponent_score: int,
    *,
    rng: Optional[random.Random] = None,
) -> StatLine:
    """Simulate a stat line for a player whose team finished ``team_score`` to ``opponent_score``."""

    return generate_stat_line(
        position,
        performance_bonus(team_score, opponent_score),
        winning=team_score > opponent_score,
        rng=rng,
    )


@dataclass(frozen=True)
class SimulationReport:
    match_id: str
    created: int
    skipped: int


def simulate_missing_stats(
    store: SettlementStore,
    match_id: str,
    *,
    rng: Optional[random.Random] = None,
    rules: Optional[ScoringRules] = None,
) -> SimulationReport:
    """Fill in stat lines for every player of the match who has none.

    Existing lines are never overwritten. Generated lines are scored with the
    calculator before they are stored.
    """

    match = store.get_match(match_id)
    if match is None:
        raise KeyError(f"Match {match_id} not found")
    rng = rng or random.Random()
    home_score = match.home_score or 0
    away_score = match.away_score or 0
    existing = {record.player_id for record in store.list_stat_lines(match_id)}

    created = 0
    skipped = 0
    for player in store.list_team_players([match.home_team, match.away_team]):
        if player.player_id in existing:
            skipped += 1
            continue
        if player.team == match.home_team:
            stat = simulate(player.position, home_score, away_score, rng=rng)
        else:
            stat = simulate(player.position, away_score, home_score, rng=rng)
        store.save_stat_line(
            player.player_id,
            match_id,
            stat,
            fantasy_points=points(stat, rules),
            source="simulated",
        )
        created += 1

    logger.info(
        "Simulated %d stat lines for match %s (%d already present)", created, match_id, skipped
    )
    return SimulationReport(match_id=match_id, created=created, skipped=skipped)
