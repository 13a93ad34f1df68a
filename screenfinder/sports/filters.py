"""Post-fetch filtering of raw events by league, team and date."""

from __future__ import annotations

from typing import Any, Iterable

from screenfinder.sports.normalizer import extract_fields
from screenfinder.sports.registry import SportConfig


def _criterion(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def _contains(haystack: str | None, needle: str) -> bool:
    return bool(haystack) and needle.lower() in haystack.lower()


def filter_events(
    config: SportConfig,
    events: Iterable[Any],
    *,
    league: str | None = None,
    team: str | None = None,
    date: str | None = None,
) -> list[Any]:
    """Keep the raw events matching every supplied criterion.

    League and team are case-insensitive substring matches (team matches
    home or away); date is a prefix match on the event's own date string.
    """

    league = _criterion(league)
    team = _criterion(team)
    date = _criterion(date)

    filtered = list(events)
    if league:
        filtered = [
            event for event in filtered
            if _contains(extract_fields(config, event).league, league)
        ]
    if team:
        filtered = [
            event for event in filtered
            if _contains(extract_fields(config, event).home_team, team)
            or _contains(extract_fields(config, event).away_team, team)
        ]
    if date:
        filtered = [
            event for event in filtered
            if extract_fields(config, event).date_text.startswith(date)
        ]
    return filtered
