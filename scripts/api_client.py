"""Lightweight REST client for the pysettle API."""

from __future__ import annotations

import argparse
import json

import httpx


def parse_stats(entries: list[str]) -> dict[str, int]:
    stats: dict[str, int] = {}
    for entry in entries:
        if "=" not in entry:
            raise SystemExit(f"Invalid stat '{entry}', expected key=value")
        key, value = entry.split("=", 1)
        stats[key.strip()] = int(value)
    return stats


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the pysettle REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument("--settle", metavar="MATCH_ID", help="Settle a completed match")
    parser.add_argument("--simulate-missing", action="store_true", help="Simulate stats for players without one")
    parser.add_argument("--seed", type=int, default=None, help="Seed for simulated stats")
    parser.add_argument("--scoring", default=None, help="Scoring rules (STANDARD, HALF_PPR, PPR)")
    parser.add_argument("--points", metavar="STAT", action="append", default=[], help="Preview points (e.g., passing_yards=300)")
    parser.add_argument("--standings", metavar="LEAGUE_ID", help="Fetch league standings")
    parser.add_argument("--leaderboard", metavar="MATCH_ID", nargs="?", const="", help="Fetch a match or the global leaderboard")
    parser.add_argument("--get-settlement", metavar="SETTLEMENT_ID", help="Fetch a settlement record")
    args = parser.parse_args()

    with httpx.Client(base_url=args.base_url) as client:
        if args.points:
            resp = client.post("/points", json={"stat": parse_stats(args.points), "scoring": args.scoring})
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))
        if args.settle:
            payload = {"simulate_missing": args.simulate_missing, "seed": args.seed, "scoring": args.scoring}
            resp = client.post(f"/matches/{args.settle}/settle", json=payload)
            if resp.status_code == 404:
                raise SystemExit(f"match {args.settle} not found")
            resp.raise_for_status()
            report = resp.json()
            print("Settlement report:", json.dumps(report, indent=2))
        if args.standings:
            resp = client.get(f"/leagues/{args.standings}/standings")
            if resp.status_code == 404:
                raise SystemExit(f"league {args.standings} not found")
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))
        if args.leaderboard is not None:
            path = f"/matches/{args.leaderboard}/leaderboard" if args.leaderboard else "/leaderboard"
            resp = client.get(path)
            if resp.status_code == 404:
                raise SystemExit(f"match {args.leaderboard} not found")
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))
        if args.get_settlement:
            resp = client.get(f"/settlements/{args.get_settlement}")
            if resp.status_code == 404:
                raise SystemExit(f"settlement {args.get_settlement} not found")
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    main()
