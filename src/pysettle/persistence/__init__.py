"""Persistence layer for matches, rosters, leagues and the credit ledger."""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple
from uuid import uuid4

from pysettle.models import STAT_FIELDS, LeagueConfig, PrizeEntry, StatLine


logger = logging.getLogger(__name__)

_ZERO = Decimal("0")


@dataclass
class PlayerRecord:
    player_id: str
    name: str
    team: str
    position: str


@dataclass
class MatchRecord:
    match_id: str
    home_team: str
    away_team: str
    home_score: Optional[int]
    away_score: Optional[int]
    status: str
    created_at: datetime


@dataclass
class UserRecord:
    user_id: str
    username: str
    credits: Decimal
    total_points: Decimal
    rank: Optional[int]
    ordinal: int
    created_at: datetime


@dataclass
class StatRecord:
    player_id: str
    match_id: str
    stat: StatLine
    fantasy_points: Optional[Decimal]
    source: str
    updated_at: datetime


@dataclass(frozen=True)
class RosterSlot:
    slot: str
    player_id: str


@dataclass
class RosterRecord:
    roster_id: str
    user_id: str
    match_id: str
    name: str
    total_cost: Decimal
    total_points: Decimal
    rank: Optional[int]
    ordinal: int
    slots: Tuple[RosterSlot, ...]
    created_at: datetime


@dataclass
class LeagueRecord:
    league_id: str
    match_id: str
    name: str
    entry_fee: Decimal
    max_members: int
    base_prize_pool: Decimal
    prize_distribution: List[PrizeEntry]
    created_at: datetime


@dataclass
class MembershipRecord:
    membership_id: str
    league_id: str
    user_id: str
    roster_id: Optional[str]
    points: int
    rank: Optional[int]
    prizes_won: Decimal
    ordinal: int
    joined_at: datetime


@dataclass
class PayoutRecord:
    league_id: str
    membership_id: str
    user_id: str
    delta: Decimal
    paid_total: Decimal


@dataclass
class SettlementRecord:
    settlement_id: str
    match_id: str
    state: str
    message: Optional[str]
    report: dict
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _dec(value: object) -> Decimal:
    if value is None or value == "":
        return _ZERO
    return Decimal(str(value))


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SettlementStore:
    """SQLite-backed store shared by every settlement step.

    The store opens exactly the path it is given; ``PYSETTLE_DB_PATH`` is
    resolved by :func:`pysettle.config.load_settings`.
    """

    def __init__(self, db_path: Path | str):
        self._use_uri = False
        if isinstance(db_path, str) and db_path.startswith("file:"):
            self.db_path: Path | str = db_path
            self._use_uri = True
        else:
            self.db_path = Path(db_path)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path)
        else:
            conn = sqlite3.connect(self.db_path, uri=self._use_uri)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Group writes into one all-or-nothing unit."""

        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            self._create_schema(conn)

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        stat_columns = ",\n".join(f"{name} INTEGER NOT NULL DEFAULT 0" for name in STAT_FIELDS)
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                username TEXT NOT NULL,
                credits TEXT NOT NULL DEFAULT '0',
                total_points TEXT NOT NULL DEFAULT '0',
                rank INTEGER,
                ordinal INTEGER NOT NULL,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS players (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                team TEXT NOT NULL,
                position TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS matches (
                id TEXT PRIMARY KEY,
                home_team TEXT NOT NULL,
                away_team TEXT NOT NULL,
                home_score INTEGER,
                away_score INTEGER,
                status TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS player_stats (
                player_id TEXT NOT NULL,
                match_id TEXT NOT NULL REFERENCES matches(id),
                {stat_columns},
                fantasy_points TEXT,
                source TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (player_id, match_id)
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS rosters (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL REFERENCES users(id),
                match_id TEXT NOT NULL REFERENCES matches(id),
                name TEXT NOT NULL,
                total_cost TEXT NOT NULL DEFAULT '0',
                total_points TEXT NOT NULL DEFAULT '0',
                rank INTEGER,
                ordinal INTEGER NOT NULL,
                slots_json TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS leagues (
                id TEXT PRIMARY KEY,
                match_id TEXT NOT NULL REFERENCES matches(id),
                name TEXT NOT NULL,
                entry_fee TEXT NOT NULL,
                max_members INTEGER NOT NULL,
                base_prize_pool TEXT NOT NULL,
                prize_json TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS league_members (
                id TEXT PRIMARY KEY,
                league_id TEXT NOT NULL REFERENCES leagues(id),
                user_id TEXT NOT NULL,
                roster_id TEXT,
                points INTEGER NOT NULL DEFAULT 0,
                rank INTEGER,
                prizes_won TEXT NOT NULL DEFAULT '0',
                ordinal INTEGER NOT NULL,
                joined_at TEXT NOT NULL,
                UNIQUE (league_id, user_id)
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS prize_payouts (
                league_id TEXT NOT NULL,
                membership_id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                amount TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (league_id, membership_id)
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS settlements (
                id TEXT PRIMARY KEY,
                match_id TEXT NOT NULL,
                state TEXT NOT NULL,
                message TEXT,
                report_json TEXT NOT NULL DEFAULT '{}',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                completed_at TEXT
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS ix_rosters_match ON rosters(match_id)")
        conn.execute("CREATE INDEX IF NOT EXISTS ix_rosters_user ON rosters(user_id)")
        conn.execute("CREATE INDEX IF NOT EXISTS ix_leagues_match ON leagues(match_id)")
        conn.commit()

    # Users -----------------------------------------------------------------

    def add_user(
        self,
        username: str,
        *,
        credits: Decimal | int = 0,
        user_id: Optional[str] = None,
    ) -> UserRecord:
        user_id = user_id or uuid4().hex
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO users (id, username, credits, total_points, rank, ordinal, created_at)
                VALUES (?, ?, ?, '0', NULL, (SELECT COALESCE(MAX(ordinal), 0) + 1 FROM users), ?)
                """,
                (user_id, username, str(_dec(credits)), _now()),
            )
            conn.commit()
        user = self.get_user(user_id)
        if user is None:  # pragma: no cover
            raise KeyError(f"User {user_id} not found after insert")
        return user

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            if row is None:
                return None
            return self._row_to_user(row)

    def list_users(self) -> List[UserRecord]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM users ORDER BY ordinal").fetchall()
        return [self._row_to_user(row) for row in rows]

    def set_user_total(self, user_id: str, total_points: Decimal) -> None:
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE users SET total_points = ? WHERE id = ?",
                (str(total_points), user_id),
            )
            conn.commit()
        if cursor.rowcount == 0:
            raise KeyError(f"User {user_id} not found")

    def save_user_ranks(self, ranks: Iterable[Tuple[str, int]]) -> None:
        with self._connect() as conn:
            conn.executemany(
                "UPDATE users SET rank = ? WHERE id = ?",
                [(rank, user_id) for user_id, rank in ranks],
            )
            conn.commit()

    # Players and matches ---------------------------------------------------

    def add_player(
        self,
        name: str,
        team: str,
        position: str,
        *,
        player_id: Optional[str] = None,
    ) -> PlayerRecord:
        player_id = player_id or uuid4().hex
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO players (id, name, team, position) VALUES (?, ?, ?, ?)",
                (player_id, name, team.upper(), position.upper()),
            )
            conn.commit()
        return PlayerRecord(player_id=player_id, name=name, team=team.upper(), position=position.upper())

    def get_player(self, player_id: str) -> Optional[PlayerRecord]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM players WHERE id = ?", (player_id,)).fetchone()
            if row is None:
                return None
            return self._row_to_player(row)

    def list_team_players(self, teams: Sequence[str]) -> List[PlayerRecord]:
        if not teams:
            return []
        placeholders = ", ".join("?" for _ in teams)
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM players WHERE team IN ({placeholders}) ORDER BY team, id",
                tuple(team.upper() for team in teams),
            ).fetchall()
        return [self._row_to_player(row) for row in rows]

    def add_match(
        self,
        home_team: str,
        away_team: str,
        *,
        home_score: Optional[int] = None,
        away_score: Optional[int] = None,
        status: str = "FINAL",
        match_id: Optional[str] = None,
    ) -> MatchRecord:
        match_id = match_id or uuid4().hex
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO matches (id, home_team, away_team, home_score, away_score, status, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (match_id, home_team.upper(), away_team.upper(), home_score, away_score, status, _now()),
            )
            conn.commit()
        match = self.get_match(match_id)
        if match is None:  # pragma: no cover
            raise KeyError(f"Match {match_id} not found after insert")
        return match

    def get_match(self, match_id: str) -> Optional[MatchRecord]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM matches WHERE id = ?", (match_id,)).fetchone()
            if row is None:
                return None
            return MatchRecord(
                match_id=row["id"],
                home_team=row["home_team"],
                away_team=row["away_team"],
                home_score=row["home_score"],
                away_score=row["away_score"],
                status=row["status"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )

    # Stat lines ------------------------------------------------------------

    def save_stat_line(
        self,
        player_id: str,
        match_id: str,
        stat: StatLine,
        *,
        fantasy_points: Optional[Decimal] = None,
        source: str = "provider",
    ) -> None:
        columns = ", ".join(STAT_FIELDS)
        placeholders = ", ".join("?" for _ in STAT_FIELDS)
        updates = ", ".join(f"{name} = excluded.{name}" for name in STAT_FIELDS)
        values = [getattr(stat, name) for name in STAT_FIELDS]
        with self._connect() as conn:
            conn.execute(
                f"""
                INSERT INTO player_stats (
                    player_id, match_id, {columns}, fantasy_points, source, updated_at
                ) VALUES (?, ?, {placeholders}, ?, ?, ?)
                ON CONFLICT (player_id, match_id) DO UPDATE SET
                    {updates},
                    fantasy_points = excluded.fantasy_points,
                    source = excluded.source,
                    updated_at = excluded.updated_at
                """,
                (
                    player_id,
                    match_id,
                    *values,
                    str(fantasy_points) if fantasy_points is not None else None,
                    source,
                    _now(),
                ),
            )
            conn.commit()

    def get_stat_line(self, player_id: str, match_id: str) -> Optional[StatRecord]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM player_stats WHERE player_id = ? AND match_id = ?",
                (player_id, match_id),
            ).fetchone()
            if row is None:
                return None
            return self._row_to_stat(row)

    def list_stat_lines(self, match_id: str) -> List[StatRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM player_stats WHERE match_id = ? ORDER BY player_id",
                (match_id,),
            ).fetchall()
        return [self._row_to_stat(row) for row in rows]

    def save_fantasy_points(self, match_id: str, values: Iterable[Tuple[str, Decimal]]) -> None:
        now = _now()
        with self._connect() as conn:
            conn.executemany(
                """
                UPDATE player_stats SET fantasy_points = ?, updated_at = ?
                WHERE player_id = ? AND match_id = ?
                """,
                [(str(value), now, player_id, match_id) for player_id, value in values],
            )
            conn.commit()

    # Rosters ---------------------------------------------------------------

    def add_roster(
        self,
        user_id: str,
        match_id: str,
        slots: Iterable[RosterSlot | Tuple[str, str]],
        *,
        name: str = "",
        total_cost: Decimal | int = 0,
        roster_id: Optional[str] = None,
    ) -> RosterRecord:
        roster_id = roster_id or uuid4().hex
        slot_payload = [
            {"slot": slot.slot, "player_id": slot.player_id}
            if isinstance(slot, RosterSlot)
            else {"slot": slot[0], "player_id": slot[1]}
            for slot in slots
        ]
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO rosters (
                    id, user_id, match_id, name, total_cost, total_points, rank,
                    ordinal, slots_json, created_at
                ) VALUES (?, ?, ?, ?, ?, '0', NULL,
                    (SELECT COALESCE(MAX(ordinal), 0) + 1 FROM rosters), ?, ?)
                """,
                (
                    roster_id,
                    user_id,
                    match_id,
                    name,
                    str(_dec(total_cost)),
                    json.dumps(slot_payload),
                    _now(),
                ),
            )
            conn.commit()
        roster = self.get_roster(roster_id)
        if roster is None:  # pragma: no cover
            raise KeyError(f"Roster {roster_id} not found after insert")
        return roster

    def get_roster(self, roster_id: str) -> Optional[RosterRecord]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM rosters WHERE id = ?", (roster_id,)).fetchone()
            if row is None:
                return None
            return self._row_to_roster(row)

    def list_rosters(self, match_id: str) -> List[RosterRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM rosters WHERE match_id = ? ORDER BY ordinal",
                (match_id,),
            ).fetchall()
        return [self._row_to_roster(row) for row in rows]

    def list_user_rosters(self, user_id: str) -> List[RosterRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM rosters WHERE user_id = ? ORDER BY ordinal",
                (user_id,),
            ).fetchall()
        return [self._row_to_roster(row) for row in rows]

    def save_roster_standings(self, standings: Iterable[Tuple[str, Decimal, int]]) -> None:
        with self._connect() as conn:
            conn.executemany(
                "UPDATE rosters SET total_points = ?, rank = ? WHERE id = ?",
                [(str(total), rank, roster_id) for roster_id, total, rank in standings],
            )
            conn.commit()

    # Leagues ---------------------------------------------------------------

    def add_league(self, config: LeagueConfig, *, league_id: Optional[str] = None) -> LeagueRecord:
        """Persist a validated league configuration."""

        league_id = league_id or uuid4().hex
        prize_payload = [
            {"rank": entry.rank, "amount": str(entry.amount)} for entry in config.prize_distribution
        ]
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO leagues (
                    id, match_id, name, entry_fee, max_members, base_prize_pool,
                    prize_json, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    league_id,
                    config.match_id,
                    config.name,
                    str(config.entry_fee),
                    config.max_members,
                    str(config.base_prize_pool),
                    json.dumps(prize_payload),
                    _now(),
                ),
            )
            conn.commit()
        league = self.get_league(league_id)
        if league is None:  # pragma: no cover
            raise KeyError(f"League {league_id} not found after insert")
        return league

    def get_league(self, league_id: str) -> Optional[LeagueRecord]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM leagues WHERE id = ?", (league_id,)).fetchone()
            if row is None:
                return None
            return self._row_to_league(row)

    def list_leagues(self, match_id: str) -> List[LeagueRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM leagues WHERE match_id = ? ORDER BY rowid",
                (match_id,),
            ).fetchall()
        return [self._row_to_league(row) for row in rows]

    def add_membership(
        self,
        league_id: str,
        user_id: str,
        *,
        roster_id: Optional[str] = None,
        membership_id: Optional[str] = None,
    ) -> MembershipRecord:
        membership_id = membership_id or uuid4().hex
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO league_members (
                    id, league_id, user_id, roster_id, points, rank, prizes_won,
                    ordinal, joined_at
                ) VALUES (?, ?, ?, ?, 0, NULL, '0',
                    (SELECT COALESCE(MAX(ordinal), 0) + 1 FROM league_members), ?)
                """,
                (membership_id, league_id, user_id, roster_id, _now()),
            )
            conn.commit()
        membership = self.get_membership(membership_id)
        if membership is None:  # pragma: no cover
            raise KeyError(f"Membership {membership_id} not found after insert")
        return membership

    def get_membership(self, membership_id: str) -> Optional[MembershipRecord]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM league_members WHERE id = ?", (membership_id,)).fetchone()
            if row is None:
                return None
            return self._row_to_membership(row)

    def list_memberships(self, league_id: str) -> List[MembershipRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM league_members WHERE league_id = ? ORDER BY ordinal",
                (league_id,),
            ).fetchall()
        return [self._row_to_membership(row) for row in rows]

    def save_membership_standings(self, standings: Iterable[Tuple[str, int, int]]) -> None:
        with self._connect() as conn:
            conn.executemany(
                "UPDATE league_members SET points = ?, rank = ? WHERE id = ?",
                [(points, rank, membership_id) for membership_id, points, rank in standings],
            )
            conn.commit()

    def apply_league_payouts(
        self,
        league_id: str,
        targets: Mapping[str, Decimal],
    ) -> List[PayoutRecord]:
        """Bring every membership of a league to its target prize, atomically.

        ``targets`` maps membership id to the total prize it should hold for
        this league. Only the difference from the ledger is credited, so
        applying the same targets twice moves no credits the second time.
        """

        applied: List[PayoutRecord] = []
        with self.transaction() as conn:
            paid = {
                row["membership_id"]: _dec(row["amount"])
                for row in conn.execute(
                    "SELECT membership_id, amount FROM prize_payouts WHERE league_id = ?",
                    (league_id,),
                )
            }
            members = conn.execute(
                "SELECT * FROM league_members WHERE league_id = ? ORDER BY ordinal",
                (league_id,),
            ).fetchall()
            known = {row["id"] for row in members}
            missing = set(targets) - known
            if missing:
                raise KeyError(f"Memberships {sorted(missing)} not in league {league_id}")
            now = _now()
            for row in members:
                membership_id = row["id"]
                target = _dec(targets.get(membership_id, _ZERO))
                already = paid.get(membership_id, _ZERO)
                delta = target - already
                if delta == 0:
                    continue
                self._credit_user(conn, row["user_id"], delta)
                conn.execute(
                    "UPDATE league_members SET prizes_won = ? WHERE id = ?",
                    (str(_dec(row["prizes_won"]) + delta), membership_id),
                )
                conn.execute(
                    """
                    INSERT INTO prize_payouts (league_id, membership_id, user_id, amount, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT (league_id, membership_id) DO UPDATE SET
                        amount = excluded.amount,
                        updated_at = excluded.updated_at
                    """,
                    (league_id, membership_id, row["user_id"], str(target), now),
                )
                applied.append(
                    PayoutRecord(
                        league_id=league_id,
                        membership_id=membership_id,
                        user_id=row["user_id"],
                        delta=delta,
                        paid_total=target,
                    )
                )
        return applied

    def _credit_user(self, conn: sqlite3.Connection, user_id: str, delta: Decimal) -> None:
        row = conn.execute("SELECT credits FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            raise KeyError(f"User {user_id} not found")
        conn.execute(
            "UPDATE users SET credits = ? WHERE id = ?",
            (str(_dec(row["credits"]) + delta), user_id),
        )

    # Settlement history ----------------------------------------------------

    def create_settlement(self, match_id: str, *, settlement_id: Optional[str] = None) -> SettlementRecord:
        settlement_id = settlement_id or uuid4().hex
        now = _now()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO settlements (id, match_id, state, message, report_json, created_at, updated_at)
                VALUES (?, ?, 'running', NULL, '{}', ?, ?)
                """,
                (settlement_id, match_id, now, now),
            )
            conn.commit()
        settlement = self.get_settlement(settlement_id)
        if settlement is None:  # pragma: no cover
            raise KeyError(f"Settlement {settlement_id} not found after insert")
        return settlement

    def update_settlement(
        self,
        settlement_id: str,
        *,
        state: str,
        message: Optional[str] = None,
        report: Optional[dict] = None,
    ) -> SettlementRecord:
        existing = self.get_settlement(settlement_id)
        if existing is None:
            raise KeyError(f"Settlement {settlement_id} not found")
        now = _now()
        completed_at = now if state in {"completed", "failed"} else None
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE settlements
                SET state = ?, message = ?, report_json = ?, updated_at = ?, completed_at = ?
                WHERE id = ?
                """,
                (
                    state,
                    message if message is not None else existing.message,
                    json.dumps(report if report is not None else existing.report),
                    now,
                    completed_at,
                    settlement_id,
                ),
            )
            conn.commit()
        updated = self.get_settlement(settlement_id)
        if updated is None:  # pragma: no cover
            raise KeyError(f"Settlement {settlement_id} not found after update")
        return updated

    def get_settlement(self, settlement_id: str) -> Optional[SettlementRecord]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM settlements WHERE id = ?", (settlement_id,)).fetchone()
            if row is None:
                return None
            return self._row_to_settlement(row)

    def list_settlements(self, match_id: Optional[str] = None, limit: int = 50) -> List[SettlementRecord]:
        query = "SELECT * FROM settlements"
        params: list[str | int] = []
        if match_id:
            query += " WHERE match_id = ?"
            params.append(match_id)
        query += " ORDER BY datetime(created_at) DESC, rowid DESC LIMIT ?"
        params.append(limit)
        with self._connect() as conn:
            rows = conn.execute(query, tuple(params)).fetchall()
        return [self._row_to_settlement(row) for row in rows]

    # Row mapping -----------------------------------------------------------

    def _row_to_user(self, row: sqlite3.Row) -> UserRecord:
        return UserRecord(
            user_id=row["id"],
            username=row["username"],
            credits=_dec(row["credits"]),
            total_points=_dec(row["total_points"]),
            rank=row["rank"],
            ordinal=row["ordinal"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_player(self, row: sqlite3.Row) -> PlayerRecord:
        return PlayerRecord(
            player_id=row["id"],
            name=row["name"],
            team=row["team"],
            position=row["position"],
        )

    def _row_to_stat(self, row: sqlite3.Row) -> StatRecord:
        return StatRecord(
            player_id=row["player_id"],
            match_id=row["match_id"],
            stat=StatLine(**{name: row[name] for name in STAT_FIELDS}),
            fantasy_points=_dec(row["fantasy_points"]) if row["fantasy_points"] is not None else None,
            source=row["source"],
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _row_to_roster(self, row: sqlite3.Row) -> RosterRecord:
        slots = tuple(
            RosterSlot(slot=item["slot"], player_id=item["player_id"])
            for item in json.loads(row["slots_json"])
        )
        return RosterRecord(
            roster_id=row["id"],
            user_id=row["user_id"],
            match_id=row["match_id"],
            name=row["name"],
            total_cost=_dec(row["total_cost"]),
            total_points=_dec(row["total_points"]),
            rank=row["rank"],
            ordinal=row["ordinal"],
            slots=slots,
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_league(self, row: sqlite3.Row) -> LeagueRecord:
        # Unvalidated; settlement re-checks stored prize tables.
        prizes = [
            PrizeEntry.model_construct(rank=int(item["rank"]), amount=_dec(item["amount"]))
            for item in json.loads(row["prize_json"] or "[]")
        ]
        prizes.sort(key=lambda entry: entry.rank)
        return LeagueRecord(
            league_id=row["id"],
            match_id=row["match_id"],
            name=row["name"],
            entry_fee=_dec(row["entry_fee"]),
            max_members=row["max_members"],
            base_prize_pool=_dec(row["base_prize_pool"]),
            prize_distribution=prizes,
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_membership(self, row: sqlite3.Row) -> MembershipRecord:
        return MembershipRecord(
            membership_id=row["id"],
            league_id=row["league_id"],
            user_id=row["user_id"],
            roster_id=row["roster_id"],
            points=row["points"],
            rank=row["rank"],
            prizes_won=_dec(row["prizes_won"]),
            ordinal=row["ordinal"],
            joined_at=datetime.fromisoformat(row["joined_at"]),
        )

    def _row_to_settlement(self, row: sqlite3.Row) -> SettlementRecord:
        return SettlementRecord(
            settlement_id=row["id"],
            match_id=row["match_id"],
            state=row["state"],
            message=row["message"],
            report=json.loads(row["report_json"] or "{}"),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            completed_at=_parse_ts(row["completed_at"]),
        )
