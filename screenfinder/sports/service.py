"""Game search and lookup across the configured sports."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Mapping, Sequence

from screenfinder.schemas import Game
from screenfinder.screenings.enrichment import enrich_screenings
from screenfinder.settings import SettingsSnapshot
from screenfinder.sports.cache import ResultCache
from screenfinder.sports.client import SportsApiClient, normalize_date, utc_today
from screenfinder.sports.filters import filter_events
from screenfinder.sports.normalizer import normalize_events, normalize_with
from screenfinder.sports.orchestrator import fetch_window
from screenfinder.sports.registry import (
    SportConfig,
    UnsupportedSportError,
    resolve_sport,
    split_game_id,
)

logger = logging.getLogger(__name__)


class SportsDataService:
    def __init__(
        self,
        client: SportsApiClient,
        settings: SettingsSnapshot,
        cache: ResultCache | None = None,
        today: Callable[[], date] = utc_today,
    ) -> None:
        self._client = client
        self._settings = settings
        self._cache = cache if settings.cache_enabled else None
        self._today = today

    async def search_games(
        self,
        sport: str | None,
        team: str | None = None,
        league: str | None = None,
        date: str | None = None,
    ) -> list[Game]:
        """Games for a sport over the fetch window, narrowed by the given criteria.

        Raises UnsupportedSportError before any I/O for an unknown sport and
        UpstreamUnavailableError when no day could be fetched. The date may be
        YYYY-MM-DD, YYYYMMDD or "today"; anything else raises ValueError.
        """

        config = resolve_sport(sport)
        today = self._today()
        day = normalize_date(date, today=today)
        window = await fetch_window(
            config,
            self._settings.fetch_window_days,
            self._client.fetch_events,
            cache=self._cache,
            ttl_seconds=self._settings.cache_ttl_seconds,
            today=today,
        )
        day_prefix = day.isoformat() if day else None
        matching = filter_events(config, window.events, league=league, team=team, date=day_prefix)
        games = normalize_events(config, matching)
        logger.info(
            "Search sport=%s team=%s league=%s date=%s -> %s games (%s raw, cache=%s)",
            config.sport_key,
            team,
            league,
            date,
            len(games),
            len(window.events),
            window.from_cache,
        )
        return games

    def _detail_target(self, game_id: str) -> tuple[SportConfig, str] | None:
        sport_key, upstream_id = split_game_id(game_id)
        if sport_key is None:
            return resolve_sport(self._settings.default_sport), game_id
        try:
            return resolve_sport(sport_key), upstream_id
        except UnsupportedSportError:
            logger.warning("Unknown sport prefix in game_id=%s", game_id)
            return None

    async def get_game_details(self, game_id: str | None) -> Game | None:
        """Single game by id, or None when the upstream has no usable record.

        Transport failures raise UpstreamError.
        """

        if not game_id or not game_id.strip():
            return None
        try:
            target = self._detail_target(game_id.strip())
        except UnsupportedSportError:
            logger.error("Default sport %r is not configured", self._settings.default_sport)
            return None
        if target is None:
            return None

        config, upstream_id = target
        raw = await self._client.fetch_event(config, upstream_id)
        if raw is None:
            logger.info("No upstream event for game_id=%s", game_id)
            return None
        return normalize_with(config, raw)

    async def enrich_screenings(self, screenings: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
        return await enrich_screenings(screenings, self.get_game_details)
