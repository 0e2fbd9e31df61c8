from __future__ import annotations

from decimal import Decimal
from typing import List

from pydantic import BaseModel


class RosterLeaderboardEntry(BaseModel):
    rank: int | None
    roster_id: str
    user_id: str
    username: str | None
    name: str
    points: Decimal


class LeagueStandingEntry(BaseModel):
    rank: int | None
    membership_id: str
    user_id: str
    username: str | None
    points: int
    prizes_won: Decimal


class UserLeaderboardEntry(BaseModel):
    rank: int | None
    user_id: str
    username: str
    points: Decimal


class MatchLeaderboardResponse(BaseModel):
    match_id: str
    leaderboard: List[RosterLeaderboardEntry]


class LeagueStandingsResponse(BaseModel):
    league_id: str
    match_id: str
    standings: List[LeagueStandingEntry]


class GlobalLeaderboardResponse(BaseModel):
    leaderboard: List[UserLeaderboardEntry]
