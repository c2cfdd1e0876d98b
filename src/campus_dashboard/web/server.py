from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from campus_dashboard import __version__
from campus_dashboard.auth import SessionStore, StaticAuthContext
from campus_dashboard.config import SETTINGS, ensure_directories
from campus_dashboard.data_models import AVAILABILITY_CATEGORIES, Category, Destination, Record, User
from campus_dashboard.db.snapshot_store import SqliteSnapshotStore
from campus_dashboard.ingestion.rest_source import RestSnapshotSource
from campus_dashboard.llm import Responder, build_responder
from campus_dashboard.nlp.router import IntentRouter
from campus_dashboard.polling.hub import SnapshotHub
from campus_dashboard.polling.scheduler import SnapshotSource
from campus_dashboard.recommend.availability import AvailabilityAggregator, summarize_category, valid_records
from campus_dashboard.recommend.commute import congested, quickest, traffic_badge
from campus_dashboard.recommend.elevators import (
    ElevatorRankingEngine,
    find_destination,
    occupancy_band,
    score_band,
    search_destinations,
)
from campus_dashboard.utils.io import rows_from_payload
from campus_dashboard.utils.logging import configure_logging

logger = logging.getLogger(__name__)

SESSION_COOKIE = "dashboard_session"
SESSION_TTL_SECONDS = 60 * 60 * 10

app = FastAPI(title="Campus Dashboard", version=__version__)


@dataclass
class RuntimeState:
    source: SnapshotSource | None = None
    hub: SnapshotHub | None = None
    responder: Responder | None = None
    sessions: SessionStore = field(default_factory=lambda: SessionStore(SESSION_TTL_SECONDS))
    ranking: ElevatorRankingEngine = field(default_factory=ElevatorRankingEngine)


STATE = RuntimeState()


class LoginRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=200)
    scope: Optional[str] = Field(default=None, max_length=200)
    access_token: str = Field(min_length=1, max_length=500)


class CommandRequest(BaseModel):
    utterance: str = Field(min_length=1, max_length=2000)


class AdminRecordsRequest(BaseModel):
    admin_token: str
    category: Category
    payload_json: str
    scope: Optional[str] = None


# Schedulers live on the event loop, so every endpoint that touches the hub is
# declared async and does its blocking reads through the threadpool.


@app.on_event("startup")
async def startup() -> None:
    configure_logging()
    ensure_directories()
    if STATE.source is None:
        STATE.source = _build_source()
    if isinstance(STATE.source, SqliteSnapshotStore):
        STATE.source.init()
    STATE.hub = SnapshotHub(
        STATE.source,
        SETTINGS.poll_interval_ms,
        loop=asyncio.get_running_loop(),
        idle_seconds=SETTINGS.poller_idle_seconds,
    )
    STATE.responder = build_responder()
    logger.info("Dashboard started with %s", type(STATE.source).__name__)


@app.on_event("shutdown")
async def shutdown() -> None:
    if STATE.hub is not None:
        STATE.hub.close()
        STATE.hub = None


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/api/session/login")
def login(payload: LoginRequest, response: Response) -> dict[str, Any]:
    if payload.access_token != SETTINGS.dashboard_access_token:
        raise HTTPException(status_code=403, detail="Invalid access token")
    user = User(user_id=payload.user_id, scope=payload.scope or SETTINGS.default_scope)
    session_id = STATE.sessions.create(user)
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session_id,
        httponly=True,
        samesite="lax",
        max_age=SESSION_TTL_SECONDS,
    )
    return {"ok": True, "user_id": user.user_id, "scope": user.scope}


@app.post("/api/session/logout")
def logout(request: Request, response: Response) -> dict[str, Any]:
    STATE.sessions.delete(request.cookies.get(SESSION_COOKIE))
    response.delete_cookie(SESSION_COOKIE)
    return {"ok": True}


@app.get("/api/dashboard/overview")
async def dashboard_overview(request: Request) -> dict[str, Any]:
    user = _require_user(request)
    cards = []
    for category in AVAILABILITY_CATEGORIES:
        records = valid_records(await _read(category, user.scope))
        cards.append(summarize_category(category, records).to_dict())
    return {"scope": user.scope, "categories": cards}


@app.get("/api/dashboard/{category}")
async def dashboard_category(category: str, request: Request) -> dict[str, Any]:
    user = _require_user(request)
    resolved = _availability_category(category)
    aggregator = AvailabilityAggregator(resolved)
    records = valid_records(await _read(resolved, user.scope))
    best = aggregator.best_pick(records)

    items = []
    for record in records:
        item = record.to_dict()
        item["occupancy_percent"] = round(record.occupancy_percent, 1)
        item["tier"] = aggregator.tier(record).value
        item["tier_label"] = aggregator.tier_label(record)
        items.append(item)

    return {
        "scope": user.scope,
        "category": resolved.value,
        "records": items,
        "best_pick": best.to_dict() if best else None,
    }


@app.get("/api/traffic")
async def traffic(request: Request) -> dict[str, Any]:
    user = _require_user(request)
    readings = await _read(Category.TRAFFIC, user.scope)
    fastest = quickest(readings)
    return {
        "scope": user.scope,
        "readings": [{**reading.to_dict(), "badge": traffic_badge(reading)} for reading in readings],
        "quickest": fastest.to_dict() if fastest else None,
        "congested": [reading.name for reading in congested(readings)],
    }


@app.get("/api/elevators")
async def elevators(request: Request) -> dict[str, Any]:
    user = _require_user(request)
    usable = [elevator for elevator in await _read(Category.ELEVATOR, user.scope) if elevator.is_valid]
    return {
        "scope": user.scope,
        "elevators": [{**elevator.to_dict(), "occupancy_band": occupancy_band(elevator)} for elevator in usable],
    }


@app.get("/api/elevators/rank")
async def rank_elevators(
    request: Request,
    destination: str = Query(min_length=1, max_length=100),
    current_floor: Optional[int] = None,
) -> dict[str, Any]:
    user = _require_user(request)
    catalog = await _destinations(user.scope)
    target = find_destination(catalog, destination)
    if target is None:
        raise HTTPException(status_code=404, detail=f"Unknown destination: {destination}")

    floor = SETTINGS.default_current_floor if current_floor is None else current_floor
    ranked = STATE.ranking.rank_in_building(await _read(Category.ELEVATOR, user.scope), target, floor)
    return {
        "destination": target.to_dict(),
        "current_floor": floor,
        "ranked": [{**item.to_dict(), "band": score_band(item.score)} for item in ranked],
    }


@app.get("/api/destinations/search")
async def destination_search(
    request: Request,
    q: str = Query(default="", max_length=100),
    limit: int = Query(default=5, ge=1, le=50),
) -> dict[str, Any]:
    user = _require_user(request)
    matches = search_destinations(await _destinations(user.scope), q, limit=limit)
    return {"query": q, "results": [destination.to_dict() for destination in matches]}


@app.post("/api/assistant/command")
async def assistant_command(payload: CommandRequest, request: Request) -> dict[str, Any]:
    router = IntentRouter(_hub(), StaticAuthContext(_session_user(request)), STATE.responder)
    result = await run_in_threadpool(router.handle, payload.utterance)
    return result.to_dict()


@app.post("/api/admin/records")
async def admin_records(payload: AdminRecordsRequest) -> dict[str, Any]:
    _authorize_admin(payload.admin_token)
    store = STATE.source
    if not isinstance(store, SqliteSnapshotStore):
        raise HTTPException(status_code=409, detail="Record imports need the local sqlite store.")

    rows = _rows_from_manual_payload(payload.payload_json)
    if not rows:
        raise HTTPException(status_code=400, detail="payload_json does not contain any rows")

    try:
        upserted = await run_in_threadpool(store.upsert, payload.category, rows, payload.scope)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return {"ok": True, "category": payload.category.value, "upserted": upserted}


@app.get("/api/status")
async def status(request: Request) -> dict[str, Any]:
    user = _require_user(request)
    counts = None
    if isinstance(STATE.source, SqliteSnapshotStore):
        counts = await run_in_threadpool(STATE.source.counts, user.scope)
    return {
        "scope": user.scope,
        "source": type(STATE.source).__name__,
        "db_counts": counts,
        "pollers": _hub().status(user.scope),
        "assistant_configured": STATE.responder is not None,
    }


def _build_source() -> SnapshotSource:
    if SETTINGS.snapshot_rest_url:
        return RestSnapshotSource(SETTINGS.snapshot_rest_url, api_key=SETTINGS.snapshot_rest_key)
    return SqliteSnapshotStore(SETTINGS.db_path)


def _hub() -> SnapshotHub:
    if STATE.hub is None:
        raise HTTPException(status_code=503, detail="Dashboard is still starting.")
    return STATE.hub


async def _read(category: Category, scope: str) -> list[Record]:
    hub = _hub()
    snapshot = hub.latest(category, scope)
    if snapshot is not None:
        return list(snapshot.records)
    try:
        return await run_in_threadpool(hub.source.fetch, category, scope)
    except Exception as exc:
        logger.warning("First read of %s for scope=%s failed: %s", category.value, scope, exc)
        raise HTTPException(status_code=503, detail="Live data is unavailable right now.")


async def _destinations(scope: str) -> list[Destination]:
    return [item for item in await _read(Category.CLASSROOM, scope) if isinstance(item, Destination)]


def _availability_category(raw: str) -> Category:
    try:
        category = Category(raw)
    except ValueError:
        category = None
    if category not in AVAILABILITY_CATEGORIES:
        raise HTTPException(status_code=404, detail=f"Unknown dashboard category: {raw}")
    return category


def _session_user(request: Request) -> User | None:
    return STATE.sessions.get(request.cookies.get(SESSION_COOKIE))


def _require_user(request: Request) -> User:
    user = _session_user(request)
    if user is None:
        raise HTTPException(status_code=401, detail="Please sign in to see live campus data.")
    return user


def _authorize_admin(admin_token: str) -> None:
    if admin_token != SETTINGS.admin_api_token:
        raise HTTPException(status_code=403, detail="Invalid admin token")


def _rows_from_manual_payload(payload_json: str) -> list[dict[str, Any]]:
    try:
        parsed = json.loads(payload_json)
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid JSON payload: {exc.msg}")
    try:
        return rows_from_payload(parsed)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
