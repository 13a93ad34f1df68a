from __future__ import annotations

from datetime import datetime, timezone
import logging
import time

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.middleware.base import BaseHTTPMiddleware

from screenfinder.db import get_db
from screenfinder.log_buffer import buffer_handler, install_buffer_handler
from screenfinder.schemas import BarOut, Game, GameScreeningsResponse, SettingsOut, SettingsUpdate
from screenfinder.screenings import queries
from screenfinder.screenings.proximity import NearbyBar, coordinate
from screenfinder.settings import (
    SettingsSnapshot,
    encrypt_api_key,
    get_or_create_settings,
    snapshot_settings,
)
from screenfinder.sports.cache import MemoryResultCache
from screenfinder.sports.client import InvalidDateError, SportsApiClient, UpstreamError, UpstreamUnavailableError
from screenfinder.sports.registry import UnsupportedSportError, resolve_sport
from screenfinder.sports.service import SportsDataService

app = FastAPI(title="Screen Finder")
logger = logging.getLogger(__name__)
_http_client: httpx.AsyncClient | None = None
_result_cache: MemoryResultCache | None = None


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        t0 = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            logger.info(
                "ACCESS %s %s q=%s -> %s in %.1fms",
                request.method,
                request.url.path,
                request.url.query,
                status,
                (time.perf_counter() - t0) * 1000,
            )


app.add_middleware(AccessLogMiddleware)


@app.exception_handler(Exception)
async def _unhandled(request: Request, exc: Exception):
    logger.exception("UNHANDLED ERROR: %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "internal_error"})


@app.on_event("startup")
async def start_services() -> None:
    global _http_client, _result_cache
    install_buffer_handler()
    logger.info("App starting up, creating upstream HTTP client and result cache")
    _http_client = httpx.AsyncClient(follow_redirects=True)
    _result_cache = MemoryResultCache()


@app.on_event("shutdown")
async def stop_services() -> None:
    global _http_client, _result_cache
    if _http_client:
        await _http_client.aclose()
    _http_client = None
    _result_cache = None


def get_http_client() -> httpx.AsyncClient:
    global _http_client
    if _http_client is None:
        _http_client = httpx.AsyncClient(follow_redirects=True)
    return _http_client


def get_result_cache() -> MemoryResultCache:
    global _result_cache
    if _result_cache is None:
        _result_cache = MemoryResultCache()
    return _result_cache


def get_settings_snapshot(db: Session = Depends(get_db)) -> SettingsSnapshot:
    return snapshot_settings(get_or_create_settings(db))


def get_sports_service(
    settings: SettingsSnapshot = Depends(get_settings_snapshot),
) -> SportsDataService:
    client = SportsApiClient(
        get_http_client(),
        settings.api_key(),
        timeout_seconds=settings.request_timeout_seconds,
    )
    return SportsDataService(client, settings, cache=get_result_cache())


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/games/search", response_model=list[Game])
async def search_games(
    sport: str | None = None,
    team: str | None = None,
    league: str | None = None,
    date: str | None = None,
    service: SportsDataService = Depends(get_sports_service),
):
    try:
        return await service.search_games(sport, team=team, league=league, date=date)
    except UnsupportedSportError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except InvalidDateError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid date: {exc}") from exc
    except UpstreamUnavailableError as exc:
        logger.error("Game search failed sport=%s: %s", sport, exc)
        raise HTTPException(status_code=502, detail="Error searching for games") from exc


@app.get("/games", response_model=list[Game])
async def upcoming_games(
    sport: str | None = None,
    settings: SettingsSnapshot = Depends(get_settings_snapshot),
    service: SportsDataService = Depends(get_sports_service),
):
    try:
        return await service.search_games(sport or settings.default_sport)
    except UnsupportedSportError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except UpstreamUnavailableError as exc:
        logger.error("Upcoming games failed sport=%s: %s", sport, exc)
        raise HTTPException(status_code=502, detail="Error fetching games data") from exc


@app.get("/games/{game_id}", response_model=Game)
async def get_game(game_id: str, service: SportsDataService = Depends(get_sports_service)):
    game = await _game_details_or_error(service, game_id)
    return game


@app.get("/screenings")
async def list_screenings(
    db: Session = Depends(get_db),
    service: SportsDataService = Depends(get_sports_service),
):
    screenings = queries.list_screenings(db)
    if not screenings:
        return []
    return await service.enrich_screenings(screenings)


@app.get("/screenings/upcoming")
async def upcoming_screenings(
    db: Session = Depends(get_db),
    service: SportsDataService = Depends(get_sports_service),
):
    screenings = queries.upcoming_screenings(db, datetime.now(timezone.utc))
    if not screenings:
        return []
    return await service.enrich_screenings(screenings)


@app.get("/screenings/bar/{bar_id}")
async def bar_screenings(
    bar_id: int,
    db: Session = Depends(get_db),
    service: SportsDataService = Depends(get_sports_service),
):
    screenings = queries.screenings_for_bar(db, bar_id)
    if not screenings:
        return []
    return await service.enrich_screenings(screenings)


@app.get("/screenings/game/{game_id}", response_model=GameScreeningsResponse)
async def game_screenings(
    game_id: str,
    db: Session = Depends(get_db),
    service: SportsDataService = Depends(get_sports_service),
):
    game = await _game_details_or_error(service, game_id)
    return {
        "game": game,
        "screenings": queries.screenings_for_game(db, game_id),
    }


@app.get("/screenings/game/{game_id}/bars", response_model=list[BarOut])
def bars_for_game(
    game_id: str,
    lat: str | None = None,
    lon: str | None = None,
    radius: str | None = None,
    db: Session = Depends(get_db),
    settings: SettingsSnapshot = Depends(get_settings_snapshot),
):
    nearby = queries.bars_for_game(
        db,
        game_id,
        coordinate(lat),
        coordinate(lon),
        coordinate(radius),
        default_radius_km=settings.default_radius_km,
    )
    return [_bar_out(item) for item in nearby]


@app.get("/bars", response_model=list[BarOut])
def list_bars(db: Session = Depends(get_db)):
    return [BarOut.model_validate(bar) for bar in queries.list_bars(db)]


@app.get("/bars/{bar_id}", response_model=BarOut)
def get_bar(bar_id: int, db: Session = Depends(get_db)):
    bar = queries.get_bar(db, bar_id)
    if not bar:
        raise HTTPException(status_code=404, detail="Bar not found")
    return BarOut.model_validate(bar)


@app.get("/api/settings", response_model=SettingsOut)
def read_settings(db: Session = Depends(get_db)):
    return _settings_out(get_or_create_settings(db))


@app.put("/api/settings", response_model=SettingsOut)
def update_settings(payload: SettingsUpdate, db: Session = Depends(get_db)):
    settings = get_or_create_settings(db)

    if payload.default_sport is not None:
        try:
            settings.default_sport = resolve_sport(payload.default_sport).sport_key
        except UnsupportedSportError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
    api_key = (payload.sports_api_key or "").strip()
    if api_key:
        settings.sports_api_key_enc = encrypt_api_key(api_key)
    if payload.cache_ttl_hours is not None:
        settings.cache_ttl_hours = payload.cache_ttl_hours
    if payload.fetch_window_days is not None:
        settings.fetch_window_days = payload.fetch_window_days
    if payload.default_radius_km is not None:
        settings.default_radius_km = payload.default_radius_km
    if payload.request_timeout_seconds is not None:
        settings.request_timeout_seconds = payload.request_timeout_seconds
    if payload.cache_enabled is not None:
        settings.cache_enabled = payload.cache_enabled
    settings.updated_at_utc = datetime.now(timezone.utc)
    db.commit()
    logger.info("Settings updated (api key changed=%s)", bool(api_key))

    return _settings_out(settings)


@app.get("/api/cache")
def api_cache():
    return get_result_cache().stats()


@app.get("/api/logs")
def api_logs(limit: int = 100):
    return {"entries": buffer_handler.entries(limit=limit)}


async def _game_details_or_error(service: SportsDataService, game_id: str) -> Game:
    try:
        game = await service.get_game_details(game_id)
    except UpstreamError as exc:
        logger.error("Game details failed game_id=%s: %s", game_id, exc)
        raise HTTPException(status_code=502, detail="Error fetching game details") from exc
    if game is None:
        raise HTTPException(status_code=404, detail=f"Game with ID {game_id} not found.")
    return game


def _bar_out(item: NearbyBar) -> BarOut:
    bar = BarOut.model_validate(item.bar)
    if item.distance is None:
        return bar
    return bar.model_copy(update={"distance": item.distance})


def _settings_out(settings) -> SettingsOut:
    return SettingsOut(
        default_sport=settings.default_sport,
        cache_ttl_hours=settings.cache_ttl_hours,
        fetch_window_days=settings.fetch_window_days,
        default_radius_km=settings.default_radius_km,
        request_timeout_seconds=settings.request_timeout_seconds,
        cache_enabled=settings.cache_enabled,
        has_api_key=bool(settings.sports_api_key_enc),
        updated_at_utc=settings.updated_at_utc,
    )
