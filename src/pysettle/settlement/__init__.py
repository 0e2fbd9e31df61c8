"""Settlement pipeline: rosters, leaderboard, leagues and the orchestrator."""

from .errors import MatchNotFoundError, PrizeTableError, SettlementAborted, SettlementFailure
from .leaderboard import update_global_ranks, update_user_total
from .leagues import LeagueOutcome, MembershipStanding, settle_league, settle_leagues
from .rosters import RosterStanding, aggregate_rosters
from .service import SettlementReport, settle
from .stats import score_match_stats

__all__ = [
    "LeagueOutcome",
    "MatchNotFoundError",
    "MembershipStanding",
    "PrizeTableError",
    "RosterStanding",
    "SettlementAborted",
    "SettlementFailure",
    "SettlementReport",
    "aggregate_rosters",
    "score_match_stats",
    "settle",
    "settle_league",
    "settle_leagues",
    "update_global_ranks",
    "update_user_total",
]
