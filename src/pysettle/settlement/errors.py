"""Errors and per-entity failure records raised or reported by settlement."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING


if TYPE_CHECKING:  # pragma: no cover
    from .service import SettlementReport


NOT_FOUND = "not_found"
VALIDATION = "validation"
TRANSACTION = "transaction"


class MatchNotFoundError(KeyError):
    """Raised when the match being settled does not exist."""

    def __init__(self, match_id: str):
        super().__init__(f"Match {match_id} not found")
        self.match_id = match_id


class PrizeTableError(ValueError):
    """Raised when a stored prize table pays out more than the league pool."""


class SettlementAborted(RuntimeError):
    """Raised when a pipeline step fails; earlier steps keep their writes."""

    def __init__(self, step: str, report: "SettlementReport", cause: BaseException):
        super().__init__(f"Settlement of match {report.match_id} failed during {step}: {cause}")
        self.step = step
        self.report = report
        self.cause = cause


@dataclass(frozen=True)
class SettlementFailure:
    """One entity that could not be settled in this pass."""

    scope: str
    entity_id: str
    kind: str
    message: str

    def to_dict(self) -> dict:
        return {
            "scope": self.scope,
            "entity_id": self.entity_id,
            "kind": self.kind,
            "message": self.message,
        }
