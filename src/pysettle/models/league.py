"""League configuration models validated before they reach the store."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.config import ConfigDict


class PrizeEntry(BaseModel):
    rank: int = Field(..., ge=1)
    amount: Decimal = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)


def prize_pool(entry_fee: Decimal, max_members: int, base_prize_pool: Decimal) -> Decimal:
    """Total credits a league may pay out."""

    return Decimal(entry_fee) * max_members + Decimal(base_prize_pool)


def prize_total(entries: Iterable[PrizeEntry]) -> Decimal:
    return sum((entry.amount for entry in entries), Decimal("0"))


class LeagueConfig(BaseModel):
    """A prize-bearing competition scoped to one match."""

    match_id: str = Field(..., min_length=1)
    name: str = ""
    entry_fee: Decimal = Field(default=Decimal("0"), ge=0)
    max_members: int = Field(default=10, ge=2)
    base_prize_pool: Decimal = Field(default=Decimal("0"), ge=0)
    prize_distribution: List[PrizeEntry] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @field_validator("prize_distribution")
    @classmethod
    def _sort_by_rank(cls, value: List[PrizeEntry]) -> List[PrizeEntry]:
        return sorted(value, key=lambda entry: entry.rank)

    @model_validator(mode="after")
    def _check_prize_table(self) -> "LeagueConfig":
        ranks = [entry.rank for entry in self.prize_distribution]
        if len(ranks) != len(set(ranks)):
            raise ValueError("Prize distribution cannot have duplicate ranks")
        available = self.prize_pool
        total = prize_total(self.prize_distribution)
        if total > available:
            raise ValueError(
                f"Total prize distribution ({total}) cannot exceed available prize pool ({available})"
            )
        return self

    @property
    def prize_pool(self) -> Decimal:
        return prize_pool(self.entry_fee, self.max_members, self.base_prize_pool)
