"""Configuration helpers for scoring formats and runtime settings."""

from .scoring import STANDARD, ScoringRules, get_scoring_rules, iter_scoring_rules
from .settings import Settings, load_settings

__all__ = [
    "STANDARD",
    "ScoringRules",
    "Settings",
    "get_scoring_rules",
    "iter_scoring_rules",
    "load_settings",
]
