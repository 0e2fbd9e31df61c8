"""REST API exposing scoring previews, simulation and match settlement."""

from __future__ import annotations

import logging
import random
from typing import Optional

from fastapi import FastAPI, HTTPException, Query

from pysettle.api.schemas import (
    FailureResponse,
    GlobalLeaderboardResponse,
    LeagueOutcomeResponse,
    LeagueStandingEntry,
    LeagueStandingsResponse,
    MatchLeaderboardResponse,
    PayoutResponse,
    PointsRequest,
    PointsResponse,
    RosterLeaderboardEntry,
    SettleRequest,
    SettlementRecordResponse,
    SettlementResponse,
    SimulateRequest,
    SimulateResponse,
    UserLeaderboardEntry,
)
from pysettle.config import Settings, get_scoring_rules, load_settings
from pysettle.config.scoring import ScoringRules
from pysettle.models import Position
from pysettle.persistence import SettlementRecord, SettlementStore
from pysettle.scoring import points
from pysettle.settlement import MatchNotFoundError, SettlementAborted, SettlementReport, settle
from pysettle.simulation import performance_bonus, simulate


logger = logging.getLogger(__name__)


def _resolve_rules(name: str | None, default: ScoringRules) -> ScoringRules:
    if not name:
        return default
    try:
        return get_scoring_rules(name)
    except KeyError as exc:
        raise HTTPException(status_code=400, detail=str(exc).strip("'\"")) from exc


def report_to_response(report: SettlementReport) -> SettlementResponse:
    return SettlementResponse(
        settlement_id=report.settlement_id,
        match_id=report.match_id,
        users_updated=report.users_updated,
        stats_simulated=report.stats_simulated,
        stats_scored=report.stats_scored,
        rosters_ranked=report.rosters_ranked,
        leagues_settled=report.leagues_settled,
        leagues=[
            LeagueOutcomeResponse(
                league_id=outcome.league_id,
                settled=outcome.settled,
                payouts=[
                    PayoutResponse(
                        membership_id=payout.membership_id,
                        user_id=payout.user_id,
                        delta=payout.delta,
                        paid_total=payout.paid_total,
                    )
                    for payout in outcome.payouts
                ],
            )
            for outcome in report.leagues
        ],
        failures=[FailureResponse(**failure.to_dict()) for failure in report.all_failures()],
    )


def settlement_to_response(record: SettlementRecord) -> SettlementRecordResponse:
    return SettlementRecordResponse(
        settlement_id=record.settlement_id,
        match_id=record.match_id,
        state=record.state,
        message=record.message,
        report=record.report,
        created_at=record.created_at,
        updated_at=record.updated_at,
        completed_at=record.completed_at,
    )


def create_app(store: Optional[SettlementStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    app = FastAPI(title="pysettle settlement engine")
    store = store or SettlementStore(settings.db_path)
    app.state.store = store
    app.state.settings = settings

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/points", response_model=PointsResponse)
    async def preview_points(payload: PointsRequest) -> PointsResponse:
        rules = _resolve_rules(payload.scoring, settings.scoring)
        return PointsResponse(fantasy_points=points(payload.stat, rules), scoring=rules.name)

    @app.post("/simulate", response_model=SimulateResponse)
    async def simulate_stats(payload: SimulateRequest) -> SimulateResponse:
        rules = _resolve_rules(payload.scoring, settings.scoring)
        rng = random.Random(payload.seed) if payload.seed is not None else random.Random()
        stat = simulate(payload.position, payload.team_score, payload.opponent_score, rng=rng)
        return SimulateResponse(
            position=Position.parse(payload.position).value,
            performance_bonus=performance_bonus(payload.team_score, payload.opponent_score),
            stat=stat,
            fantasy_points=points(stat, rules),
        )

    @app.post("/matches/{match_id}/settle", response_model=SettlementResponse)
    def settle_match(match_id: str, payload: SettleRequest | None = None) -> SettlementResponse:
        payload = payload or SettleRequest()
        rules = _resolve_rules(payload.scoring, settings.scoring)
        simulate_missing = (
            payload.simulate_missing if payload.simulate_missing is not None else settings.simulate_missing
        )
        rng = random.Random(payload.seed) if payload.seed is not None else None
        try:
            report = settle(
                store,
                match_id,
                rules=rules,
                simulate_missing=simulate_missing,
                rng=rng,
            )
        except MatchNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Match not found") from exc
        except SettlementAborted as exc:
            raise HTTPException(
                status_code=500,
                detail={"message": "Settlement failed", "step": exc.step, "settlement_id": exc.report.settlement_id},
            ) from exc
        return report_to_response(report)

    @app.get("/matches/{match_id}/leaderboard", response_model=MatchLeaderboardResponse)
    def match_leaderboard(match_id: str, limit: int = Query(50, ge=1, le=500)) -> MatchLeaderboardResponse:
        if store.get_match(match_id) is None:
            raise HTTPException(status_code=404, detail="Match not found")
        rosters = store.list_rosters(match_id)
        rosters.sort(key=lambda roster: (roster.rank is None, roster.rank or 0, roster.ordinal))
        usernames = {user.user_id: user.username for user in store.list_users()}
        return MatchLeaderboardResponse(
            match_id=match_id,
            leaderboard=[
                RosterLeaderboardEntry(
                    rank=roster.rank,
                    roster_id=roster.roster_id,
                    user_id=roster.user_id,
                    username=usernames.get(roster.user_id),
                    name=roster.name,
                    points=roster.total_points,
                )
                for roster in rosters[:limit]
            ],
        )

    @app.get("/leagues/{league_id}/standings", response_model=LeagueStandingsResponse)
    def league_standings(league_id: str, limit: int = Query(50, ge=1, le=500)) -> LeagueStandingsResponse:
        league = store.get_league(league_id)
        if league is None:
            raise HTTPException(status_code=404, detail="League not found")
        memberships = store.list_memberships(league_id)
        memberships.sort(key=lambda member: (member.rank is None, member.rank or 0, member.ordinal))
        usernames = {user.user_id: user.username for user in store.list_users()}
        return LeagueStandingsResponse(
            league_id=league_id,
            match_id=league.match_id,
            standings=[
                LeagueStandingEntry(
                    rank=member.rank,
                    membership_id=member.membership_id,
                    user_id=member.user_id,
                    username=usernames.get(member.user_id),
                    points=member.points,
                    prizes_won=member.prizes_won,
                )
                for member in memberships[:limit]
            ],
        )

    @app.get("/leaderboard", response_model=GlobalLeaderboardResponse)
    def global_leaderboard(limit: int = Query(50, ge=1, le=500)) -> GlobalLeaderboardResponse:
        users = [user for user in store.list_users() if user.total_points > 0]
        users.sort(key=lambda user: (user.rank is None, user.rank or 0, user.ordinal))
        return GlobalLeaderboardResponse(
            leaderboard=[
                UserLeaderboardEntry(
                    rank=user.rank,
                    user_id=user.user_id,
                    username=user.username,
                    points=user.total_points,
                )
                for user in users[:limit]
            ]
        )

    @app.get("/settlements/{settlement_id}", response_model=SettlementRecordResponse)
    def get_settlement(settlement_id: str) -> SettlementRecordResponse:
        record = store.get_settlement(settlement_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Settlement not found")
        return settlement_to_response(record)

    return app
