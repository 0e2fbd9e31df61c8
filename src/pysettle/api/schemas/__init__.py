"""Pydantic models for API I/O."""

from .leaderboard import (
    GlobalLeaderboardResponse,
    LeagueStandingEntry,
    LeagueStandingsResponse,
    MatchLeaderboardResponse,
    RosterLeaderboardEntry,
    UserLeaderboardEntry,
)
from .scoring import PointsRequest, PointsResponse, SimulateRequest, SimulateResponse
from .settlement import (
    FailureResponse,
    LeagueOutcomeResponse,
    PayoutResponse,
    SettleRequest,
    SettlementRecordResponse,
    SettlementResponse,
)

__all__ = [
    "FailureResponse",
    "GlobalLeaderboardResponse",
    "LeagueOutcomeResponse",
    "LeagueStandingEntry",
    "LeagueStandingsResponse",
    "MatchLeaderboardResponse",
    "PayoutResponse",
    "PointsRequest",
    "PointsResponse",
    "RosterLeaderboardEntry",
    "SettleRequest",
    "SettlementRecordResponse",
    "SettlementResponse",
    "SimulateRequest",
    "SimulateResponse",
    "UserLeaderboardEntry",
]
