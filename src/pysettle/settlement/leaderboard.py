"""Cross-match user totals and the global leaderboard."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Tuple

from pysettle.persistence import SettlementStore
from pysettle.scoring import total_points

from .ranking import assign_ranks


logger = logging.getLogger(__name__)


def update_user_total(store: SettlementStore, user_id: str) -> Decimal:
    """Set a user's total to the sum over all of their rosters, every match."""

    if store.get_user(user_id) is None:
        raise KeyError(f"User {user_id} not found")
    total = total_points(roster.total_points for roster in store.list_user_rosters(user_id))
    store.set_user_total(user_id, total)
    return total


def update_global_ranks(store: SettlementStore) -> List[Tuple[str, int]]:
    """Re-rank every user; earlier accounts win ties.

    This resorts the full user table on each call.
    """

    users = store.list_users()
    ranked = [
        (user.user_id, rank)
        for rank, user in assign_ranks(
            users,
            score=lambda user: user.total_points,
            tiebreak=lambda user: user.ordinal,
        )
    ]
    store.save_user_ranks(ranked)
    logger.info("Updated global ranks for %d users", len(ranked))
    return ranked
