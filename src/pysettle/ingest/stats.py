"""Helpers to load box-score CSVs and emit canonical stat lines."""

from __future__ import annotations

import csv
import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from pysettle.config.scoring import ScoringRules
from pysettle.models import STAT_FIELDS, StatLine
from pysettle.persistence import SettlementStore
from pysettle.scoring import points


logger = logging.getLogger(__name__)

DEFAULT_STATS_MAPPING: Dict[str, str] = {
    "player_id": "player_id",
    "name": "name",
    **{name: name for name in STAT_FIELDS},
}

# Column headers common in provider exports, matched case-insensitively.
STAT_COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    "player_id": ("id", "playerid", "player id"),
    "passing_yards": ("pass yds", "passyds", "passingyards"),
    "passing_tds": ("pass td", "passtd", "passingtds", "passingtouchdowns"),
    "interceptions": ("int", "ints", "interceptionsthrown"),
    "rushing_yards": ("rush yds", "rushyds", "rushingyards"),
    "rushing_tds": ("rush td", "rushtd", "rushingtds", "rushingtouchdowns"),
    "receptions": ("rec", "receptions"),
    "receiving_yards": ("rec yds", "recyds", "receivingyards"),
    "receiving_tds": ("rec td", "rectd", "receivingtds", "receivingtouchdowns"),
    "fumbles_lost": ("fum", "fumbles", "fumbleslost", "fl"),
    "field_goals_made": ("fgm", "fgmade", "fieldgoalsmade"),
    "field_goals_attempted": ("fga", "fgattempted", "fieldgoalsattempted"),
    "def_sacks": ("sacks", "sck", "defsacks"),
    "def_interceptions": ("def int", "defint", "definterceptions"),
    "def_tds": ("def td", "deftd", "deftds", "defensivetouchdowns"),
}


def _column_token(value: str) -> str:
    return re.sub(r"[^a-z0-9]", "", value.lower())


def infer_stats_mapping(headers: Sequence[str]) -> Dict[str, str]:
    """Guess a column mapping from CSV headers using known aliases."""

    by_token = {_column_token(header): header for header in headers}
    mapping: Dict[str, str] = {}
    for key in ("player_id", "name", *STAT_FIELDS):
        candidates = (key, *STAT_COLUMN_ALIASES.get(key, ()))
        for candidate in candidates:
            header = by_token.get(_column_token(candidate))
            if header is not None:
                mapping[key] = header
                break
    return mapping


class StatRow(BaseModel):
    raw_player_id: str
    raw_name: Optional[str] = None
    raw_values: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_mapping(cls, row: Mapping[str, str], mapping: Mapping[str, str]) -> "StatRow":
        def extract(column: Optional[str]) -> Optional[str]:
            if column is None:
                return None
            value = row.get(column)
            return value.strip() if value is not None else None

        values = {}
        for name in STAT_FIELDS:
            raw = extract(mapping.get(name))
            if raw is not None:
                values[name] = raw
        return cls(
            raw_player_id=extract(mapping.get("player_id", "player_id")) or "",
            raw_name=extract(mapping.get("name")),
            raw_values=values,
        )

    def to_stat_line(self) -> StatLine:
        return StatLine(**{name: _parse_count(raw, name) for name, raw in self.raw_values.items()})


def _parse_count(raw: str, name: str) -> int:
    text = raw.replace(",", "").strip()
    if not text or text in {"-", "--"}:
        return 0
    try:
        value = float(text)
    except ValueError:
        raise ValueError(f"{name} '{raw}' is not numeric") from None
    if not math.isfinite(value) or not value.is_integer():
        raise ValueError(f"{name} '{raw}' is not a whole count")
    return int(value)


@dataclass
class ImportReport:
    total_rows: int = 0
    imported: int = 0
    unknown_players: List[str] = field(default_factory=list)
    invalid_rows: List[str] = field(default_factory=list)


def load_stats_csv(path: Path, *, mapping: Mapping[str, str] | None = None) -> List[StatRow]:
    with path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        if mapping is None:
            mapping = infer_stats_mapping(reader.fieldnames or []) or DEFAULT_STATS_MAPPING
        rows = [StatRow.from_mapping(row, mapping) for row in reader]
    return rows


def import_stats_csv(
    store: SettlementStore,
    match_id: str,
    path: Path,
    *,
    mapping: Mapping[str, str] | None = None,
    rules: Optional[ScoringRules] = None,
) -> ImportReport:
    """Load provider stats for ``match_id`` into the store.

    Rows for players the store does not know are reported, not imported.
    Imported lines are scored immediately so previews show current points.
    """

    if store.get_match(match_id) is None:
        raise KeyError(f"Match {match_id} not found")

    report = ImportReport()
    for row in load_stats_csv(path, mapping=mapping):
        report.total_rows += 1
        label = row.raw_player_id or row.raw_name or f"row {report.total_rows}"
        if not row.raw_player_id or store.get_player(row.raw_player_id) is None:
            report.unknown_players.append(label)
            continue
        try:
            stat = row.to_stat_line()
        except ValueError as exc:
            logger.warning("Skipping stats for %s: %s", label, exc)
            report.invalid_rows.append(label)
            continue
        store.save_stat_line(
            row.raw_player_id,
            match_id,
            stat,
            fantasy_points=points(stat, rules),
            source="provider",
        )
        report.imported += 1

    logger.info(
        "Imported %d/%d stat rows for match %s", report.imported, report.total_rows, match_id
    )
    return report
