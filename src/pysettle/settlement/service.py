"""Single entry point that settles one completed match end to end."""

from __future__ import annotations

import logging
import random
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from pysettle.config.scoring import ScoringRules
from pysettle.persistence import SettlementStore
from pysettle.simulation import simulate_missing_stats

from .errors import NOT_FOUND, MatchNotFoundError, SettlementAborted, SettlementFailure
from .leaderboard import update_global_ranks, update_user_total
from .leagues import LeagueOutcome, settle_leagues
from .rosters import aggregate_rosters
from .stats import score_match_stats


logger = logging.getLogger(__name__)


@dataclass
class _LockEntry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


_MATCH_LOCKS: Dict[str, _LockEntry] = {}
_MATCH_LOCKS_GUARD = threading.Lock()


@contextmanager
def _match_lock(match_id: str) -> Iterator[None]:
    """Serialize callers for one match; the entry is dropped with its last holder."""

    with _MATCH_LOCKS_GUARD:
        entry = _MATCH_LOCKS.setdefault(match_id, _LockEntry())
        entry.holders += 1
    try:
        with entry.lock:
            yield
    finally:
        with _MATCH_LOCKS_GUARD:
            entry.holders -= 1
            if entry.holders == 0:
                del _MATCH_LOCKS[match_id]


@dataclass
class SettlementReport:
    match_id: str
    settlement_id: Optional[str] = None
    stats_simulated: int = 0
    stats_scored: int = 0
    rosters_ranked: int = 0
    users_updated: int = 0
    leagues: List[LeagueOutcome] = field(default_factory=list)
    failures: List[SettlementFailure] = field(default_factory=list)
    failed_step: Optional[str] = None

    @property
    def leagues_settled(self) -> int:
        return sum(1 for outcome in self.leagues if outcome.settled)

    def all_failures(self) -> List[SettlementFailure]:
        collected = list(self.failures)
        for outcome in self.leagues:
            collected.extend(outcome.failures)
        return collected

    def to_dict(self) -> dict:
        return {
            "match_id": self.match_id,
            "settlement_id": self.settlement_id,
            "stats_simulated": self.stats_simulated,
            "stats_scored": self.stats_scored,
            "rosters_ranked": self.rosters_ranked,
            "users_updated": self.users_updated,
            "leagues_settled": self.leagues_settled,
            "leagues": [
                {
                    "league_id": outcome.league_id,
                    "settled": outcome.settled,
                    "payouts": [
                        {
                            "membership_id": payout.membership_id,
                            "user_id": payout.user_id,
                            "delta": str(payout.delta),
                            "paid_total": str(payout.paid_total),
                        }
                        for payout in outcome.payouts
                    ],
                }
                for outcome in self.leagues
            ],
            "failures": [failure.to_dict() for failure in self.all_failures()],
            "failed_step": self.failed_step,
        }


def settle(
    store: SettlementStore,
    match_id: str,
    *,
    rules: Optional[ScoringRules] = None,
    simulate_missing: bool = False,
    rng: Optional[random.Random] = None,
) -> SettlementReport:
    """Score, rank and pay out everything bound to ``match_id``.

    Steps run strictly in order: (optional) simulate missing stats, rescore
    stat lines, aggregate rosters, refresh the totals of users with a roster in
    the match, re-rank all users, then settle each league. Calls for the same
    match are serialized. Per-entity problems are collected on the report; a
    failing step raises :class:`SettlementAborted` and earlier steps keep
    their writes. Only a missing match is rejected up front.
    """

    if store.get_match(match_id) is None:
        raise MatchNotFoundError(match_id)

    with _match_lock(match_id):
        record = store.create_settlement(match_id)
        report = SettlementReport(match_id=match_id, settlement_id=record.settlement_id)
        step = "simulate_missing"
        try:
            if simulate_missing:
                report.stats_simulated = simulate_missing_stats(store, match_id, rng=rng, rules=rules).created

            step = "score_stats"
            report.stats_scored = score_match_stats(store, match_id, rules=rules)

            step = "aggregate_rosters"
            standings = aggregate_rosters(store, match_id)
            report.rosters_ranked = len(standings)

            step = "update_user_totals"
            user_ids = list(dict.fromkeys(standing.user_id for standing in standings))
            for user_id in user_ids:
                try:
                    update_user_total(store, user_id)
                except KeyError as exc:
                    logger.warning("Skipping total for user %s: %s", user_id, exc)
                    report.failures.append(
                        SettlementFailure(scope="user", entity_id=user_id, kind=NOT_FOUND, message=str(exc))
                    )
                    continue
                report.users_updated += 1

            step = "update_global_ranks"
            update_global_ranks(store)

            step = "settle_leagues"
            report.leagues = settle_leagues(store, match_id)
        except Exception as exc:
            report.failed_step = step
            logger.exception("Settlement of match %s failed during %s", match_id, step)
            store.update_settlement(
                record.settlement_id,
                state="failed",
                message=f"{step}: {exc}",
                report=report.to_dict(),
            )
            raise SettlementAborted(step, report, exc) from exc

        failures = report.all_failures()
        store.update_settlement(
            record.settlement_id,
            state="completed",
            message=f"{len(failures)} failures" if failures else None,
            report=report.to_dict(),
        )
        logger.info(
            "Settled match %s: %d rosters, %d users, %d/%d leagues",
            match_id,
            report.rosters_ranked,
            report.users_updated,
            report.leagues_settled,
            len(report.leagues),
        )
        return report
