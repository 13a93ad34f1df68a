"""Concurrent multi-day fetch with per-day failure isolation."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Awaitable, Callable

from screenfinder.sports.cache import CACHE_MISS, DEFAULT_TTL_SECONDS, ResultCache, cache_get, cache_set
from screenfinder.sports.client import UpstreamUnavailableError, utc_today
from screenfinder.sports.registry import SportConfig

logger = logging.getLogger(__name__)

FetchDay = Callable[[SportConfig, date], Awaitable[list]]


@dataclass
class WindowResult:
    events: list = field(default_factory=list)
    succeeded: int = 0
    failed: int = 0
    from_cache: bool = False


def window_dates(days: int, today: date | None = None) -> list[date]:
    start = today or utc_today()
    return [start + timedelta(days=offset) for offset in range(max(days, 1))]


def cache_key(config: SportConfig) -> str:
    return config.sport_key


async def gather_window(config: SportConfig, dates: list[date], fetch_day: FetchDay) -> WindowResult:
    """Fetch every date concurrently; a failed date contributes nothing."""

    outcomes = await asyncio.gather(
        *(fetch_day(config, day) for day in dates),
        return_exceptions=True,
    )
    result = WindowResult()
    for day, outcome in zip(dates, outcomes):
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, BaseException):
            result.failed += 1
            logger.warning(
                "Fetch failed sport=%s date=%s error=%s",
                config.sport_key,
                day,
                outcome,
            )
            continue
        result.succeeded += 1
        events = list(outcome or [])
        logger.debug("Fetched %s events sport=%s date=%s", len(events), config.sport_key, day)
        result.events.extend(events)
    return result


async def fetch_window(
    config: SportConfig,
    days: int,
    fetch_day: FetchDay,
    *,
    cache: ResultCache | None = None,
    ttl_seconds: float = DEFAULT_TTL_SECONDS,
    today: date | None = None,
) -> WindowResult:
    """Raw events for `days` calendar days starting today, cache first.

    Raises UpstreamUnavailableError when every per-day request failed; that
    outcome is never cached.
    """

    key = cache_key(config)
    cached = cache_get(cache, key)
    if cached is not CACHE_MISS:
        logger.info("Cache hit sport=%s events=%s", config.sport_key, len(cached))
        return WindowResult(events=list(cached), from_cache=True)

    dates = window_dates(days, today)
    logger.info(
        "Cache miss sport=%s; fetching %s days from %s",
        config.sport_key,
        len(dates),
        dates[0],
    )
    result = await gather_window(config, dates, fetch_day)

    if result.succeeded == 0:
        logger.error(
            "All %s fetches failed sport=%s",
            result.failed,
            config.sport_key,
        )
        raise UpstreamUnavailableError(
            f"no upstream data for {config.sport_key}",
            sport=config.sport_key,
        )

    cache_set(cache, key, result.events, ttl_seconds)
    logger.info(
        "Fetched sport=%s events=%s ok_days=%s failed_days=%s",
        config.sport_key,
        len(result.events),
        result.succeeded,
        result.failed,
    )
    return result
