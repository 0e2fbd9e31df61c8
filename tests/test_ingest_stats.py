from decimal import Decimal
from pathlib import Path

import pytest

from pysettle.config import get_scoring_rules
from pysettle.config_loader import MappingProfile
from pysettle.ingest import StatRow, import_stats_csv, infer_stats_mapping, load_stats_csv
from pysettle.persistence import SettlementStore


def _box_score() -> str:
    return """Player ID,Name,Pass Yds,Pass TD,INT,Rush Yds,Rush TD,Rec,Rec Yds,Rec TD
qb1,Quinn Passer,"1,012",3,1,12,0,0,0,0
rb1,Rory Runner,-,-,-,88,1,4,31,0
zz9,Practice Squad,0,0,0,5,0,0,0,0
"""


def _store_with_players(store: SettlementStore) -> SettlementStore:
    store.add_match("KC", "BUF", match_id="M")
    store.add_player("Quinn Passer", "KC", "QB", player_id="qb1")
    store.add_player("Rory Runner", "BUF", "RB", player_id="rb1")
    return store


def test_infer_stats_mapping_from_provider_headers():
    mapping = infer_stats_mapping(["Player ID", "Name", "Pass Yds", "Pass TD", "INT", "FGM", "Sacks"])
    assert mapping["player_id"] == "Player ID"
    assert mapping["passing_yards"] == "Pass Yds"
    assert mapping["passing_tds"] == "Pass TD"
    assert mapping["interceptions"] == "INT"
    assert mapping["field_goals_made"] == "FGM"
    assert mapping["def_sacks"] == "Sacks"
    assert "receptions" not in mapping


def test_stat_row_parses_counts():
    row = StatRow(raw_player_id="qb1", raw_values={"passing_yards": "1,012", "interceptions": "-"})
    stat = row.to_stat_line()
    assert stat.passing_yards == 1012
    assert stat.interceptions == 0


def test_stat_row_rejects_text():
    row = StatRow(raw_player_id="qb1", raw_values={"passing_tds": "three"})
    with pytest.raises(ValueError):
        row.to_stat_line()


def test_load_stats_csv_infers_columns(tmp_path: Path):
    path = tmp_path / "box.csv"
    path.write_text(_box_score())
    rows = load_stats_csv(path)
    assert [row.raw_player_id for row in rows] == ["qb1", "rb1", "zz9"]
    assert rows[1].raw_values["rushing_yards"] == "88"


def test_import_stats_csv(store: SettlementStore, tmp_path: Path):
    _store_with_players(store)
    path = tmp_path / "box.csv"
    path.write_text(_box_score())

    report = import_stats_csv(store, "M", path)

    assert report.total_rows == 3
    assert report.imported == 2
    assert report.unknown_players == ["zz9"]
    qb = store.get_stat_line("qb1", "M")
    assert qb.source == "provider"
    # 40 + 12 - 2 + 1
    assert qb.fantasy_points == Decimal("51.0")
    assert store.get_stat_line("rb1", "M").fantasy_points == Decimal("17.0")


def test_import_stats_csv_with_explicit_mapping_and_rules(store: SettlementStore, tmp_path: Path):
    _store_with_players(store)
    path = tmp_path / "custom.csv"
    path.write_text("pid,catches,yds\nrb1,6,45\nqb1,oops,1\n")

    report = import_stats_csv(
        store,
        "M",
        path,
        mapping={"player_id": "pid", "receptions": "catches", "receiving_yards": "yds"},
        rules=get_scoring_rules("PPR"),
    )

    assert report.imported == 1
    assert report.invalid_rows == ["qb1"]
    assert store.get_stat_line("rb1", "M").fantasy_points == Decimal("10.0")
    assert store.get_stat_line("qb1", "M") is None


@pytest.mark.parametrize("raw", ["inf", "-inf", "nan", "12.7"])
def test_stat_row_rejects_non_whole_counts(raw):
    row = StatRow(raw_player_id="qb1", raw_values={"passing_yards": raw})
    with pytest.raises(ValueError):
        row.to_stat_line()


def test_stat_row_accepts_whole_decimals():
    row = StatRow(raw_player_id="qb1", raw_values={"passing_yards": "212.0"})
    assert row.to_stat_line().passing_yards == 212


def test_import_stats_csv_reports_infinite_values(store: SettlementStore, tmp_path: Path):
    _store_with_players(store)
    path = tmp_path / "overflow.csv"
    path.write_text("player_id,passing_yards,rushing_yards\nqb1,inf,0\nrb1,0,100\n")

    report = import_stats_csv(store, "M", path)

    assert report.invalid_rows == ["qb1"]
    assert report.imported == 1
    assert store.get_stat_line("qb1", "M") is None
    assert store.get_stat_line("rb1", "M").stat.rushing_yards == 100


def test_import_stats_csv_unknown_match(store: SettlementStore, tmp_path: Path):
    path = tmp_path / "box.csv"
    path.write_text(_box_score())
    with pytest.raises(KeyError):
        import_stats_csv(store, "missing", path)


def test_mapping_profile_round_trip(tmp_path: Path):
    path = tmp_path / "profile.json"
    MappingProfile({"passing_yards": "Pass Yds"}).save(path)
    assert MappingProfile.load(path).stats_mapping == {"passing_yards": "Pass Yds"}
