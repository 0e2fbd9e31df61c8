"""Command-line interface for settling matches and previewing scores."""

from __future__ import annotations

import argparse
import json
import logging
import random
from pathlib import Path

from pysettle.config import get_scoring_rules, load_settings
from pysettle.config_loader import MappingProfile
from pysettle.ingest import import_stats_csv
from pysettle.models import StatLine
from pysettle.persistence import SettlementStore
from pysettle.scoring import points
from pysettle.settlement import MatchNotFoundError, SettlementAborted, settle
from pysettle.simulation import simulate, simulate_missing_stats


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fantasy match settlement engine")
    parser.add_argument("--db", type=Path, default=None, help="SQLite database path (default: PYSETTLE_DB_PATH)")
    parser.add_argument("--scoring", default=None, help="Scoring rules (STANDARD, HALF_PPR, PPR)")
    sub = parser.add_subparsers(dest="command", required=True)

    settle_cmd = sub.add_parser("settle", help="Score, rank and pay out a completed match")
    settle_cmd.add_argument("match_id")
    settle_cmd.add_argument(
        "--simulate-missing",
        action="store_true",
        default=None,
        help="Simulate stats for players without a box score first",
    )
    settle_cmd.add_argument("--seed", type=int, default=None, help="Seed for simulated stats")

    points_cmd = sub.add_parser("points", help="Preview fantasy points for a stat line")
    points_cmd.add_argument(
        "--stat",
        action="append",
        default=[],
        help="Stat value (e.g., passing_yards=300)",
    )

    simulate_cmd = sub.add_parser("simulate", help="Simulate one stat line")
    simulate_cmd.add_argument("position", help="QB, RB, WR, TE, K or DEF")
    simulate_cmd.add_argument("team_score", type=int)
    simulate_cmd.add_argument("opponent_score", type=int)
    simulate_cmd.add_argument("--seed", type=int, default=None)

    missing_cmd = sub.add_parser("simulate-missing", help="Simulate stats for every player of a match without one")
    missing_cmd.add_argument("match_id")
    missing_cmd.add_argument("--seed", type=int, default=None)

    import_cmd = sub.add_parser("import-stats", help="Import a box-score CSV for a match")
    import_cmd.add_argument("match_id")
    import_cmd.add_argument("csv", type=Path)
    import_cmd.add_argument(
        "--column",
        action="append",
        default=[],
        help="Mapping for stats CSV columns (e.g., passing_yards=Pass Yds)",
    )
    import_cmd.add_argument("--load-profile", type=Path, help="Load column mapping JSON", default=None)
    import_cmd.add_argument("--save-profile", type=Path, help="Save column mapping JSON", default=None)

    board_cmd = sub.add_parser("leaderboard", help="Print the global leaderboard")
    board_cmd.add_argument("--limit", type=int, default=20)

    serve_cmd = sub.add_parser("serve", help="Run the HTTP API")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8000)

    return parser.parse_args(argv)


def _parse_mapping(entries: list[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for entry in entries:
        if "=" not in entry:
            raise ValueError(f"Invalid mapping entry '{entry}', expected key=value")
        key, value = entry.split("=", 1)
        mapping[key.strip()] = value.strip()
    return mapping


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    rules = get_scoring_rules(args.scoring) if args.scoring else settings.scoring

    if args.command == "points":
        values = {key: int(value) for key, value in _parse_mapping(args.stat).items()}
        stat = StatLine(**values)
        print(f"{points(stat, rules)} fantasy points ({rules.name})")
        return

    if args.command == "simulate":
        rng = random.Random(args.seed) if args.seed is not None else None
        stat = simulate(args.position, args.team_score, args.opponent_score, rng=rng)
        payload = stat.model_dump()
        payload["fantasy_points"] = str(points(stat, rules))
        print(json.dumps(payload, indent=2))
        return

    if args.command == "serve":
        import uvicorn

        from pysettle.api import create_app

        store = SettlementStore(args.db or settings.db_path)
        uvicorn.run(create_app(store=store, settings=settings), host=args.host, port=args.port)
        return

    store = SettlementStore(args.db or settings.db_path)

    if args.command == "settle":
        simulate_missing = settings.simulate_missing if args.simulate_missing is None else args.simulate_missing
        rng = random.Random(args.seed) if args.seed is not None else None
        try:
            report = settle(store, args.match_id, rules=rules, simulate_missing=simulate_missing, rng=rng)
        except MatchNotFoundError:
            raise SystemExit(f"match {args.match_id} not found")
        except SettlementAborted as exc:
            raise SystemExit(f"Settlement stopped during {exc.step}: {exc.cause}")
        print(
            f"Settled match {report.match_id}: {report.rosters_ranked} rosters ranked, "
            f"{report.users_updated} users updated, "
            f"{report.leagues_settled}/{len(report.leagues)} leagues settled"
        )
        failures = report.all_failures()
        if failures:
            preview = ", ".join(f"{failure.scope} {failure.entity_id} ({failure.kind})" for failure in failures[:5])
            more = len(failures) - 5
            suffix = f", +{more} more" if more > 0 else ""
            print(f"Failures: {preview}{suffix}")
        return

    if args.command == "simulate-missing":
        rng = random.Random(args.seed) if args.seed is not None else None
        try:
            result = simulate_missing_stats(store, args.match_id, rng=rng, rules=rules)
        except KeyError:
            raise SystemExit(f"match {args.match_id} not found")
        print(f"Simulated {result.created} stat lines ({result.skipped} already present)")
        return

    if args.command == "import-stats":
        mapping = _parse_mapping(args.column)
        if args.load_profile:
            profile = MappingProfile.load(args.load_profile)
            mapping = profile.stats_mapping | mapping
        if args.save_profile:
            MappingProfile(mapping).save(args.save_profile)
            print(f"Saved mapping profile to {args.save_profile}")
        try:
            report = import_stats_csv(store, args.match_id, args.csv, mapping=mapping or None, rules=rules)
        except KeyError:
            raise SystemExit(f"match {args.match_id} not found")
        print(f"Imported {report.imported}/{report.total_rows} stat rows")
        if report.unknown_players:
            preview = ", ".join(report.unknown_players[:5])
            more = len(report.unknown_players) - 5
            suffix = f", +{more} more" if more > 0 else ""
            print(f"Unknown players: {preview}{suffix}")
        return

    if args.command == "leaderboard":
        users = [user for user in store.list_users() if user.total_points > 0]
        users.sort(key=lambda user: (user.rank is None, user.rank or 0, user.ordinal))
        for user in users[: args.limit]:
            rank = "-" if user.rank is None else str(user.rank)
            print(f"{rank:>4}  {user.username:<24} {user.total_points}")
        return


if __name__ == "__main__":
    main()
