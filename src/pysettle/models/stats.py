"""Raw per-player, per-match counting statistics."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict


class Position(str, Enum):
    QB = "QB"
    RB = "RB"
    WR = "WR"
    TE = "TE"
    K = "K"
    DEF = "DEF"

    @classmethod
    def parse(cls, value: "Position | str") -> "Position":
        """Resolve a position code, falling back to WR for unknown codes."""

        if isinstance(value, Position):
            return value
        text = str(value).strip().upper()
        if text in {"D", "DST", "D/ST"}:
            return cls.DEF
        try:
            return cls(text)
        except ValueError:
            return cls.WR


STAT_FIELDS: tuple[str, ...] = (
    "passing_yards",
    "passing_tds",
    "interceptions",
    "rushing_yards",
    "rushing_tds",
    "receptions",
    "receiving_yards",
    "receiving_tds",
    "fumbles_lost",
    "field_goals_made",
    "field_goals_attempted",
    "def_sacks",
    "def_interceptions",
    "def_tds",
)


class StatLine(BaseModel):
    """One player's raw box-score line for one match.

    Yardage may be negative (a sack-heavy scramble or a loss on a screen);
    every other count is non-negative. Missing values are treated as zero.
    """

    passing_yards: int = 0
    passing_tds: int = Field(default=0, ge=0)
    interceptions: int = Field(default=0, ge=0)
    rushing_yards: int = 0
    rushing_tds: int = Field(default=0, ge=0)
    receptions: int = Field(default=0, ge=0)
    receiving_yards: int = 0
    receiving_tds: int = Field(default=0, ge=0)
    fumbles_lost: int = Field(default=0, ge=0)
    field_goals_made: int = Field(default=0, ge=0)
    field_goals_attempted: int = Field(default=0, ge=0)
    def_sacks: int = Field(default=0, ge=0)
    def_interceptions: int = Field(default=0, ge=0)
    def_tds: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator(*STAT_FIELDS, mode="before")
    @classmethod
    def _none_is_zero(cls, value: Any) -> Any:
        if value is None or value == "":
            return 0
        return value
