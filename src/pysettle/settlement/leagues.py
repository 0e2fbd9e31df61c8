"""League standings and prize distribution."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List

from pysettle.models import prize_pool, prize_total
from pysettle.persistence import LeagueRecord, MembershipRecord, PayoutRecord, SettlementStore

from .errors import NOT_FOUND, TRANSACTION, VALIDATION, PrizeTableError, SettlementFailure
from .ranking import assign_ranks


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MembershipStanding:
    membership_id: str
    user_id: str
    points: int
    rank: int


@dataclass
class LeagueOutcome:
    league_id: str
    standings: List[MembershipStanding] = field(default_factory=list)
    payouts: List[PayoutRecord] = field(default_factory=list)
    failures: List[SettlementFailure] = field(default_factory=list)

    @property
    def settled(self) -> bool:
        """Ranked and paid out; roster-level problems are only warnings."""

        return not any(failure.scope == "league" for failure in self.failures)

    @property
    def warnings(self) -> List[SettlementFailure]:
        return [failure for failure in self.failures if failure.scope != "league"]


def _round_whole(value: Decimal) -> int:
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def check_prize_table(league: LeagueRecord) -> None:
    """Raise PrizeTableError if the stored table cannot be honoured."""

    ranks = [entry.rank for entry in league.prize_distribution]
    if len(ranks) != len(set(ranks)):
        raise PrizeTableError(f"League {league.league_id} prize table has duplicate ranks")
    available = prize_pool(league.entry_fee, league.max_members, league.base_prize_pool)
    total = prize_total(league.prize_distribution)
    if total > available:
        raise PrizeTableError(
            f"League {league.league_id} prize table pays {total} but the pool is {available}"
        )


def settle_league(store: SettlementStore, league: LeagueRecord) -> LeagueOutcome:
    """Sync points, rank memberships and pay out one league."""

    outcome = LeagueOutcome(league_id=league.league_id)
    memberships = store.list_memberships(league.league_id)

    roster_points: Dict[str, Decimal] = {}
    for membership in memberships:
        if membership.roster_id is None:
            logger.debug(
                "Membership %s in league %s has no roster; keeping %d points",
                membership.membership_id,
                league.league_id,
                membership.points,
            )
            continue
        roster = store.get_roster(membership.roster_id)
        if roster is None:
            logger.warning(
                "Roster %s for membership %s not found", membership.roster_id, membership.membership_id
            )
            outcome.failures.append(
                SettlementFailure(
                    scope="roster",
                    entity_id=membership.roster_id,
                    kind=NOT_FOUND,
                    message=f"Roster {membership.roster_id} not found",
                )
            )
            continue
        roster_points[membership.membership_id] = roster.total_points

    def _score(membership: MembershipRecord) -> Decimal:
        return roster_points.get(membership.membership_id, Decimal(membership.points))

    ranked = assign_ranks(memberships, score=_score, tiebreak=lambda membership: membership.ordinal)
    outcome.standings = [
        MembershipStanding(
            membership_id=membership.membership_id,
            user_id=membership.user_id,
            points=(
                _round_whole(roster_points[membership.membership_id])
                if membership.membership_id in roster_points
                else membership.points
            ),
            rank=rank,
        )
        for rank, membership in ranked
    ]
    store.save_membership_standings(
        (standing.membership_id, standing.points, standing.rank) for standing in outcome.standings
    )

    if not league.prize_distribution:
        return outcome

    try:
        check_prize_table(league)
    except PrizeTableError as exc:
        logger.warning("Skipping prize distribution: %s", exc)
        outcome.failures.append(
            SettlementFailure(scope="league", entity_id=league.league_id, kind=VALIDATION, message=str(exc))
        )
        return outcome

    holders = {standing.rank: standing for standing in outcome.standings}
    targets: Dict[str, Decimal] = {}
    for entry in league.prize_distribution:
        holder = holders.get(entry.rank)
        if holder is None or entry.amount <= 0:
            continue
        targets[holder.membership_id] = entry.amount

    try:
        outcome.payouts = store.apply_league_payouts(league.league_id, targets)
    except Exception as exc:
        logger.exception("Prize payout for league %s rolled back", league.league_id)
        outcome.failures.append(
            SettlementFailure(scope="league", entity_id=league.league_id, kind=TRANSACTION, message=str(exc))
        )
        return outcome

    for payout in outcome.payouts:
        logger.info(
            "League %s: credited %s to user %s (total %s)",
            league.league_id,
            payout.delta,
            payout.user_id,
            payout.paid_total,
        )
    return outcome


def settle_leagues(store: SettlementStore, match_id: str) -> List[LeagueOutcome]:
    """Settle every league bound to ``match_id``; one failure never blocks the rest."""

    outcomes: List[LeagueOutcome] = []
    for league in store.list_leagues(match_id):
        try:
            outcomes.append(settle_league(store, league))
        except Exception as exc:
            logger.exception("Settlement of league %s failed", league.league_id)
            outcomes.append(
                LeagueOutcome(
                    league_id=league.league_id,
                    failures=[
                        SettlementFailure(
                            scope="league",
                            entity_id=league.league_id,
                            kind="error",
                            message=str(exc),
                        )
                    ],
                )
            )
    return outcomes
