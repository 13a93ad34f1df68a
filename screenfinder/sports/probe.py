"""Quick probe for upstream event availability for one sport and day."""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import date

import httpx

from screenfinder.settings import default_snapshot
from screenfinder.sports.client import SportsApiClient, UpstreamError, normalize_date
from screenfinder.sports.normalizer import normalize_events
from screenfinder.sports.registry import SPORT_CONFIGS, SportConfig, UnsupportedSportError, resolve_sport


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Probe the upstream sports API for a sport/date and print event counts.",
    )
    parser.add_argument(
        "--sport",
        type=str,
        default="soccer",
        help=f"Sport key ({', '.join(sorted(SPORT_CONFIGS))}).",
    )
    parser.add_argument(
        "--date",
        type=str,
        default="today",
        help="Date in YYYY-MM-DD or YYYYMMDD format (default: today).",
    )
    return parser.parse_args()


def _resolve(raw_sport: str, raw_date: str) -> tuple[SportConfig, date]:
    try:
        config = resolve_sport(raw_sport)
    except UnsupportedSportError as exc:
        raise SystemExit(str(exc)) from exc
    try:
        day = normalize_date(raw_date)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc
    if day is None:
        raise SystemExit("A date is required.")
    return config, day


async def _probe(config: SportConfig, day: date) -> tuple[int, int]:
    settings = default_snapshot()
    async with httpx.AsyncClient(follow_redirects=True) as http:
        client = SportsApiClient(http, settings.api_key(), settings.request_timeout_seconds)
        events = await client.fetch_events(config, day)
    return len(events), len(normalize_events(config, events))


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    args = _parse_args()
    config, day = _resolve(args.sport, args.date)

    try:
        raw_count, game_count = asyncio.run(_probe(config, day))
    except UpstreamError as exc:
        logging.error("Upstream error: %s", exc)
        raise SystemExit(1) from exc

    logging.info(
        "Fetched %s events (%s normalized) for sport=%s date=%s",
        raw_count,
        game_count,
        config.sport_key,
        day,
    )


if __name__ == "__main__":
    main()
