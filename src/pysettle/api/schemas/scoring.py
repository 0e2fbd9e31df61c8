from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field

from pysettle.models import StatLine


class PointsRequest(BaseModel):
    stat: StatLine
    scoring: str | None = None


class PointsResponse(BaseModel):
    fantasy_points: Decimal
    scoring: str


class SimulateRequest(BaseModel):
    position: str = Field(..., min_length=1)
    team_score: int = Field(..., ge=0)
    opponent_score: int = Field(..., ge=0)
    seed: int | None = None
    scoring: str | None = None


class SimulateResponse(BaseModel):
    position: str
    performance_bonus: float
    stat: StatLine
    fantasy_points: Decimal
