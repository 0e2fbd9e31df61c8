from pathlib import Path

import pytest

from pysettle.cli import main

from .conftest import Scenario


def test_points_command(capsys: pytest.CaptureFixture[str]):
    main(["points", "--stat", "passing_yards=300", "--stat", "passing_tds=3", "--stat", "interceptions=1"])
    assert capsys.readouterr().out.strip() == "22.0 fantasy points (STANDARD)"


def test_points_command_with_scoring(capsys: pytest.CaptureFixture[str]):
    main(["--scoring", "ppr", "points", "--stat", "receptions=5"])
    assert "5.0 fantasy points (PPR)" in capsys.readouterr().out


def test_settle_command(scenario: Scenario, capsys: pytest.CaptureFixture[str]):
    main(["--db", str(scenario.store.db_path), "settle", "M"])
    out = capsys.readouterr().out
    assert "2 rosters ranked" in out
    assert "1/1 leagues settled" in out

    main(["--db", str(scenario.store.db_path), "leaderboard"])
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].split() == ["1", "alice", "30.5"]
    assert lines[1].split() == ["2", "bob", "18.0"]


def test_db_flag_beats_env(
    scenario: Scenario, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
):
    from_env = tmp_path / "env" / "other.sqlite"
    monkeypatch.setenv("PYSETTLE_DB_PATH", str(from_env))
    main(["--db", str(scenario.store.db_path), "settle", "M"])
    assert "1/1 leagues settled" in capsys.readouterr().out
    assert scenario.store.get_user("alice").credits == 150
    assert not from_env.exists()


def test_settle_command_unknown_match(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("PYSETTLE_DB_PATH", raising=False)
    with pytest.raises(SystemExit) as excinfo:
        main(["--db", str(tmp_path / "empty.sqlite"), "settle", "nope"])
    assert "not found" in str(excinfo.value)


def test_import_stats_command_saves_profile(scenario: Scenario, tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    csv_path = tmp_path / "box.csv"
    csv_path.write_text("pid,yds\nrb1,140\n")
    profile = tmp_path / "profile.json"
    main(
        [
            "--db",
            str(scenario.store.db_path),
            "import-stats",
            "M",
            str(csv_path),
            "--column",
            "player_id=pid",
            "--column",
            "rushing_yards=yds",
            "--save-profile",
            str(profile),
        ]
    )
    out = capsys.readouterr().out
    assert "Imported 1/1 stat rows" in out
    assert profile.exists()
    assert scenario.store.get_stat_line("rb1", "M").stat.rushing_yards == 140
