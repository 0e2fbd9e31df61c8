"""Runtime settings resolved from ``PYSETTLE_*`` environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .scoring import STANDARD, ScoringRules, get_scoring_rules


logger = logging.getLogger(__name__)

_DB_PATH_ENV = "PYSETTLE_DB_PATH"
_LOG_LEVEL_ENV = "PYSETTLE_LOG_LEVEL"
_SCORING_ENV = "PYSETTLE_SCORING"
_SIMULATE_MISSING_ENV = "PYSETTLE_SIMULATE_MISSING"

DEFAULT_DB_PATH = Path(__file__).resolve().parent.parent / "pysettle.sqlite"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    text = raw.strip().lower()
    if text in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if text in {"0", "false", "f", "no", "n", "off", ""}:
        return False
    logger.warning("Invalid boolean for %s: %s; using default %s", name, raw, default)
    return default


def _env_log_level(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    level = logging.getLevelName(raw.strip().upper())
    if not isinstance(level, int):
        logger.warning("Invalid log level for %s: %s; using default %s", name, raw, logging.getLevelName(default))
        return default
    return level


def _env_scoring(name: str, default: ScoringRules) -> ScoringRules:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return get_scoring_rules(raw)
    except KeyError:
        logger.warning("Unknown scoring rules for %s: %s; using %s", name, raw, default.name)
        return default


@dataclass(frozen=True)
class Settings:
    db_path: Path | str
    log_level: int
    scoring: ScoringRules
    simulate_missing: bool


def load_settings() -> Settings:
    """Read settings from the environment, falling back on defaults."""

    return Settings(
        db_path=os.getenv(_DB_PATH_ENV) or DEFAULT_DB_PATH,
        log_level=_env_log_level(_LOG_LEVEL_ENV, logging.INFO),
        scoring=_env_scoring(_SCORING_ENV, STANDARD),
        simulate_missing=_env_bool(_SIMULATE_MISSING_ENV, False),
    )
