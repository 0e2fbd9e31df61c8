from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field


class SettleRequest(BaseModel):
    simulate_missing: bool | None = None
    seed: int | None = None
    scoring: str | None = None


class FailureResponse(BaseModel):
    scope: str
    entity_id: str
    kind: str
    message: str


class PayoutResponse(BaseModel):
    membership_id: str
    user_id: str
    delta: Decimal
    paid_total: Decimal


class LeagueOutcomeResponse(BaseModel):
    league_id: str
    settled: bool
    payouts: List[PayoutResponse] = Field(default_factory=list)


class SettlementResponse(BaseModel):
    settlement_id: str | None
    match_id: str
    users_updated: int
    stats_simulated: int
    stats_scored: int
    rosters_ranked: int
    leagues_settled: int
    leagues: List[LeagueOutcomeResponse]
    failures: List[FailureResponse]


class SettlementRecordResponse(BaseModel):
    settlement_id: str
    match_id: str
    state: str
    message: str | None
    report: dict
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None
