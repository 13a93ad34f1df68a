"""Attach game details to screening records."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping, Sequence

from screenfinder.schemas import Game, GamePlaceholder

logger = logging.getLogger(__name__)

FetchDetail = Callable[[str], Awaitable["Game | None"]]
GAME_ID_FIELD = "external_game_id"


def distinct_game_ids(screenings: Sequence[Mapping[str, Any]]) -> list[str]:
    seen: set[str] = set()
    ids: list[str] = []
    for screening in screenings:
        game_id = screening.get(GAME_ID_FIELD)
        if game_id is None or game_id in seen:
            continue
        seen.add(game_id)
        ids.append(game_id)
    return ids


async def fetch_details(game_ids: Sequence[str], fetch_detail: FetchDetail) -> dict[str, Game | GamePlaceholder]:
    """One concurrent lookup per id; a failed or empty lookup becomes a placeholder."""

    outcomes = await asyncio.gather(
        *(fetch_detail(game_id) for game_id in game_ids),
        return_exceptions=True,
    )
    details: dict[str, Game | GamePlaceholder] = {}
    for game_id, outcome in zip(game_ids, outcomes):
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, BaseException):
            logger.warning("Detail lookup failed game_id=%s error=%s", game_id, outcome)
            details[game_id] = GamePlaceholder(id=game_id)
        elif outcome is None:
            logger.warning("No details found for game_id=%s", game_id)
            details[game_id] = GamePlaceholder(id=game_id)
        else:
            details[game_id] = outcome
    return details


async def enrich_screenings(
    screenings: Sequence[Mapping[str, Any]],
    fetch_detail: FetchDetail,
) -> list[dict[str, Any]]:
    """Return one record per screening, in input order, each with a 'game' key."""

    game_ids = distinct_game_ids(screenings)
    details = await fetch_details(game_ids, fetch_detail) if game_ids else {}
    logger.info(
        "Enriched %s screenings using %s distinct games",
        len(screenings),
        len(game_ids),
    )

    enriched: list[dict[str, Any]] = []
    for screening in screenings:
        game_id = screening.get(GAME_ID_FIELD)
        game = details.get(game_id) if game_id is not None else None
        if game is None:
            game = GamePlaceholder(id=game_id)
        enriched.append({**screening, "game": game})
    return enriched
