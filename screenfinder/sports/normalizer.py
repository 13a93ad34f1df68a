"""Normalizers for the per-sport upstream event payloads.

Every upstream shape gets a field extractor that pulls the same handful of
values out of a raw record; a single builder then turns those values into a
canonical Game. Extractors never index blindly: a missing or mistyped nested
object reads as None.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Mapping

from screenfinder.schemas import Game
from screenfinder.sports.registry import SportConfig, qualify_game_id, resolve_sport

logger = logging.getLogger(__name__)

DEFAULT_TEAM = "TBD"
DEFAULT_LEAGUE = "Unknown League"
DEFAULT_SPORT = "Unknown Sport"
DEFAULT_STATUS = "Scheduled"


@dataclass(frozen=True)
class EventFields:
    event_id: str | None = None
    league_id: str | None = None
    home_id: str | None = None
    away_id: str | None = None
    league: str | None = None
    home_team: str | None = None
    away_team: str | None = None
    date_part: str | None = None
    time_part: str | None = None
    status: str | None = None
    venue: str | None = None
    sport: str | None = None

    @property
    def date_text(self) -> str:
        return self.date_part or ""


@dataclass(frozen=True)
class NormalizationResult:
    game: Game | None = None
    error: str | None = None
    warning: str | None = None

    @property
    def ok(self) -> bool:
        return self.game is not None


@dataclass(frozen=True)
class EventSchema:
    name: str
    extract: Callable[[Mapping[str, Any]], EventFields]
    required: tuple[str, ...] = ("event_id", "league_id", "home_id", "away_id")


def _dig(obj: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(obj, Mapping):
            return None
        obj = obj.get(key)
    return obj


def _text(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        cleaned = value.strip()
        return cleaned or None
    return None


def _ident(value: Any) -> str | None:
    if isinstance(value, float):
        return None
    return _text(value)


def _name(value: Any) -> str | None:
    """Venue-like fields come either as a plain string or as {'name': ...}."""
    if isinstance(value, Mapping):
        return _text(value.get("name"))
    return _text(value)


# ---------------------------------------------------------------------------
# Date/time reconstruction
# ---------------------------------------------------------------------------


def _parse_datetime(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_utc(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def combine_start_time(date_part: str | None, time_part: str | None) -> tuple[str | None, str | None]:
    """Return (iso_utc, warning).

    A date carrying its own time is parsed as-is; a separate time part is
    appended and read as UTC unless it carries an offset; a bare date means
    UTC midnight.
    """

    if not date_part:
        return None, "missing date"
    try:
        if "T" in date_part or " " in date_part.strip():
            return format_utc(_parse_datetime(date_part.strip())), None
        day = date.fromisoformat(date_part.strip())
        if time_part:
            return format_utc(_parse_datetime(f"{day.isoformat()}T{time_part.strip()}")), None
        return format_utc(datetime.combine(day, datetime.min.time(), tzinfo=timezone.utc)), None
    except (ValueError, OverflowError) as exc:
        return None, f"unparseable date={date_part!r} time={time_part!r}: {exc}"


# ---------------------------------------------------------------------------
# Field extractors, one per upstream shape
# ---------------------------------------------------------------------------


def _fixture_fields(raw: Mapping[str, Any]) -> EventFields:
    """API-Football fixtures: {'fixture': {...}, 'league': {...}, 'teams': {...}}."""
    fixture = _dig(raw, "fixture")
    return EventFields(
        event_id=_ident(_dig(fixture, "id")),
        league_id=_ident(_dig(raw, "league", "id")),
        home_id=_ident(_dig(raw, "teams", "home", "id")),
        away_id=_ident(_dig(raw, "teams", "away", "id")),
        league=_text(_dig(raw, "league", "name")),
        home_team=_text(_dig(raw, "teams", "home", "name")),
        away_team=_text(_dig(raw, "teams", "away", "name")),
        date_part=_text(_dig(fixture, "date")),
        status=_text(_dig(fixture, "status", "long")),
        venue=_name(_dig(fixture, "venue")),
    )


def _game_fields(raw: Mapping[str, Any]) -> EventFields:
    """API-Sports games.

    Basketball/hockey put the game at the top level with an ISO 'date';
    american football nests it under 'game' with date/time split apart.
    """
    game = _dig(raw, "game")
    if not isinstance(game, Mapping):
        game = raw

    date_value = _dig(game, "date")
    if isinstance(date_value, Mapping):
        date_part = _text(date_value.get("date"))
        time_part = _text(date_value.get("time"))
    else:
        date_part = _text(date_value)
        time_part = _text(_dig(game, "time")) if date_part and "T" not in date_part else None

    return EventFields(
        event_id=_ident(_dig(game, "id")),
        league_id=_ident(_dig(raw, "league", "id")),
        home_id=_ident(_dig(raw, "teams", "home", "id")),
        away_id=_ident(_dig(raw, "teams", "away", "id")),
        league=_text(_dig(raw, "league", "name")),
        home_team=_text(_dig(raw, "teams", "home", "name")),
        away_team=_text(_dig(raw, "teams", "away", "name")),
        date_part=date_part,
        time_part=time_part,
        status=_text(_dig(game, "status", "long")),
        venue=_name(_dig(game, "venue")),
    )


def _fight_fields(raw: Mapping[str, Any]) -> EventFields:
    """API-Sports MMA fights; fighters stand in for home/away teams."""
    league = _text(_dig(raw, "slug")) or _text(_dig(raw, "category"))
    date_part = _text(_dig(raw, "date"))
    return EventFields(
        event_id=_ident(_dig(raw, "id")),
        home_id=_ident(_dig(raw, "fighters", "first", "id")),
        away_id=_ident(_dig(raw, "fighters", "second", "id")),
        league=league,
        home_team=_text(_dig(raw, "fighters", "first", "name")),
        away_team=_text(_dig(raw, "fighters", "second", "name")),
        date_part=date_part,
        time_part=_text(_dig(raw, "time")) if date_part and "T" not in date_part else None,
        status=_text(_dig(raw, "status", "long")),
        venue=_name(_dig(raw, "venue")),
    )


def _sportsdb_fields(raw: Mapping[str, Any]) -> EventFields:
    """TheSportsDB events: flat 'idEvent'/'dateEvent'/'strTime' records."""
    return EventFields(
        event_id=_ident(raw.get("idEvent")),
        league_id=_ident(raw.get("idLeague")),
        home_id=_ident(raw.get("idHomeTeam")),
        away_id=_ident(raw.get("idAwayTeam")),
        league=_text(raw.get("strLeague")),
        home_team=_text(raw.get("strHomeTeam")),
        away_team=_text(raw.get("strAwayTeam")),
        date_part=_text(raw.get("dateEvent")),
        time_part=_text(raw.get("strTime")),
        status=_text(raw.get("strStatus")),
        venue=_text(raw.get("strVenue")),
        sport=_text(raw.get("strSport")),
    )


SCHEMAS: Mapping[str, EventSchema] = {
    "fixture": EventSchema("fixture", _fixture_fields),
    "game": EventSchema("game", _game_fields),
    "fight": EventSchema("fight", _fight_fields, required=("event_id", "home_id", "away_id")),
    "sportsdb": EventSchema("sportsdb", _sportsdb_fields),
}


def schema_for(config: SportConfig) -> EventSchema:
    return SCHEMAS[config.schema]


def extract_fields(config: SportConfig, raw: Any) -> EventFields:
    """Field view of a raw record; empty for anything that is not an object."""
    if not isinstance(raw, Mapping):
        return EventFields()
    try:
        return schema_for(config).extract(raw)
    except (AttributeError, TypeError, ValueError) as exc:
        logger.warning("Field extraction failed sport=%s: %s", config.sport_key, exc)
        return EventFields()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize_event(config: SportConfig, raw: Any) -> NormalizationResult:
    """Build a canonical Game from one raw upstream record."""

    if not isinstance(raw, Mapping):
        return NormalizationResult(error=f"expected an object, got {type(raw).__name__}")

    schema = schema_for(config)
    fields = extract_fields(config, raw)
    missing = [name for name in schema.required if getattr(fields, name) is None]
    if missing:
        return NormalizationResult(error=f"missing required ids: {', '.join(missing)}")

    start_time, warning = combine_start_time(fields.date_part, fields.time_part)
    if warning:
        logger.warning(
            "Unparseable start time sport=%s event_id=%s: %s",
            config.sport_key,
            fields.event_id,
            warning,
        )

    game = Game(
        id=qualify_game_id(config, fields.event_id),
        sport=fields.sport or config.display_name or DEFAULT_SPORT,
        league=fields.league or DEFAULT_LEAGUE,
        home_team=fields.home_team or DEFAULT_TEAM,
        away_team=fields.away_team or DEFAULT_TEAM,
        start_time=start_time,
        status=fields.status or DEFAULT_STATUS,
        venue=fields.venue,
        api_source=config.api_source,
    )
    return NormalizationResult(game=game, warning=warning)


def normalize_with(config: SportConfig, raw: Any) -> Game | None:
    result = normalize_event(config, raw)
    if result.error:
        logger.warning("Dropped %s event: %s", config.sport_key, result.error)
    return result.game


def normalize(sport_key: str, raw: Any) -> Game | None:
    """Normalize one raw event for a sport key; None when it is unusable.

    Raises UnsupportedSportError for an unknown sport key.
    """

    return normalize_with(resolve_sport(sport_key), raw)


def normalize_events(config: SportConfig, events: list[Any]) -> list[Game]:
    games: list[Game] = []
    for raw in events:
        game = normalize_with(config, raw)
        if game is not None:
            games.append(game)
    return games
