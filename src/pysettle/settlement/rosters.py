"""Roster totals and match-pool ranks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List

from pysettle.persistence import SettlementStore
from pysettle.scoring import total_points

from .ranking import assign_ranks


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RosterStanding:
    roster_id: str
    user_id: str
    total_points: Decimal
    rank: int


def aggregate_rosters(store: SettlementStore, match_id: str) -> List[RosterStanding]:
    """Total every roster bound to ``match_id`` and rank the pool.

    A slot whose player has no stat line for the match contributes zero.
    Ties go to the roster created first. Every roster in the match is written,
    changed or not.
    """

    cached: Dict[str, Decimal] = {
        record.player_id: record.fantasy_points or Decimal("0")
        for record in store.list_stat_lines(match_id)
    }
    rosters = store.list_rosters(match_id)
    totals = {
        roster.roster_id: total_points(cached.get(slot.player_id) for slot in roster.slots)
        for roster in rosters
    }
    ranked = assign_ranks(
        rosters,
        score=lambda roster: totals[roster.roster_id],
        tiebreak=lambda roster: roster.ordinal,
    )
    standings = [
        RosterStanding(
            roster_id=roster.roster_id,
            user_id=roster.user_id,
            total_points=totals[roster.roster_id],
            rank=rank,
        )
        for rank, roster in ranked
    ]
    store.save_roster_standings(
        (standing.roster_id, standing.total_points, standing.rank) for standing in standings
    )
    logger.info("Ranked %d rosters for match %s", len(standings), match_id)
    return standings
