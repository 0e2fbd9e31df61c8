"""Input adapters that normalize provider box scores."""

from .stats import (
    DEFAULT_STATS_MAPPING,
    ImportReport,
    StatRow,
    import_stats_csv,
    infer_stats_mapping,
    load_stats_csv,
)

__all__ = [
    "DEFAULT_STATS_MAPPING",
    "ImportReport",
    "StatRow",
    "import_stats_csv",
    "infer_stats_mapping",
    "load_stats_csv",
]
