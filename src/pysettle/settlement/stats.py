"""Refresh the cached fantasy points of every stat line in a match."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from pysettle.config.scoring import ScoringRules
from pysettle.persistence import SettlementStore
from pysettle.scoring import points


logger = logging.getLogger(__name__)


def score_match_stats(
    store: SettlementStore,
    match_id: str,
    *,
    rules: Optional[ScoringRules] = None,
) -> int:
    """Recompute and persist ``fantasy_points`` for all stat lines of a match."""

    records = store.list_stat_lines(match_id)
    values: List[Tuple[str, Decimal]] = [
        (record.player_id, points(record.stat, rules)) for record in records
    ]
    store.save_fantasy_points(match_id, values)
    logger.info("Scored %d stat lines for match %s", len(values), match_id)
    return len(values)
