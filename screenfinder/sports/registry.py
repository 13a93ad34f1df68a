"""Supported sports and the upstream each one is fetched from.

One SportConfig per sport key. The table is built at import time and never
mutated; adding a sport means adding an entry here and, if its payload shape
is new, a field extractor in screenfinder.sports.normalizer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

API_SPORTS_KEY_HEADER = "x-apisports-key"
SPORTSDB_BASE_URL = "https://www.thesportsdb.com/api/v1/json/{api_key}"


class UnsupportedSportError(ValueError):
    pass


@dataclass(frozen=True)
class SportConfig:
    sport_key: str
    display_name: str
    upstream_base: str
    events_endpoint: str
    detail_endpoint: str
    schema: str
    api_source: str
    date_param: str = "date"
    detail_param: str = "id"
    extra_params: Mapping[str, str] = field(default_factory=dict)
    # None means the key travels in the base URL instead of a header
    auth_header: str | None = API_SPORTS_KEY_HEADER

    def base_url(self, api_key: str | None) -> str:
        if "{api_key}" in self.upstream_base:
            return self.upstream_base.format(api_key=api_key or "")
        return self.upstream_base


_CONFIGS: tuple[SportConfig, ...] = (
    SportConfig(
        sport_key="soccer",
        display_name="Soccer",
        upstream_base="https://v3.football.api-sports.io",
        events_endpoint="/fixtures",
        detail_endpoint="/fixtures",
        schema="fixture",
        api_source="api-football",
    ),
    SportConfig(
        sport_key="basketball",
        display_name="Basketball",
        upstream_base="https://v1.basketball.api-sports.io",
        events_endpoint="/games",
        detail_endpoint="/games",
        schema="game",
        api_source="api-basketball",
    ),
    SportConfig(
        sport_key="american-football",
        display_name="American Football",
        upstream_base="https://v1.american-football.api-sports.io",
        events_endpoint="/games",
        detail_endpoint="/games",
        schema="game",
        api_source="api-american-football",
    ),
    SportConfig(
        sport_key="hockey",
        display_name="Ice Hockey",
        upstream_base="https://v1.hockey.api-sports.io",
        events_endpoint="/games",
        detail_endpoint="/games",
        schema="game",
        api_source="api-hockey",
    ),
    SportConfig(
        sport_key="mma",
        display_name="MMA",
        upstream_base="https://v1.mma.api-sports.io",
        events_endpoint="/fights",
        detail_endpoint="/fights",
        schema="fight",
        api_source="api-mma",
    ),
    SportConfig(
        sport_key="rugby",
        display_name="Rugby",
        upstream_base=SPORTSDB_BASE_URL,
        events_endpoint="/eventsday.php",
        detail_endpoint="/lookupevent.php",
        schema="sportsdb",
        api_source="thesportsdb",
        date_param="d",
        extra_params={"s": "Rugby"},
        auth_header=None,
    ),
)

SPORT_CONFIGS: Mapping[str, SportConfig] = MappingProxyType(
    {config.sport_key: config for config in _CONFIGS}
)

SPORT_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "football": "american-football",
        "american football": "american-football",
        "nfl": "american-football",
        "ice hockey": "hockey",
        "ice-hockey": "hockey",
    }
)

GAME_ID_SEPARATOR = ":"


def resolve_sport(sport_key: str | None) -> SportConfig:
    """Return the SportConfig for a sport key (e.g., ' Soccer ').

    Raises UnsupportedSportError when the key is missing or unknown.
    """

    if not isinstance(sport_key, str) or not sport_key.strip():
        raise UnsupportedSportError("A sport is required.")
    cleaned = sport_key.strip().lower()
    cleaned = SPORT_ALIASES.get(cleaned, cleaned)
    config = SPORT_CONFIGS.get(cleaned)
    if config is None:
        supported = ", ".join(sorted(SPORT_CONFIGS))
        raise UnsupportedSportError(
            f"Unsupported sport: {sport_key.strip()}. Supported: {supported}"
        )
    return config


def qualify_game_id(config: SportConfig, upstream_id: str) -> str:
    return f"{config.sport_key}{GAME_ID_SEPARATOR}{upstream_id}"


def split_game_id(game_id: str) -> tuple[str | None, str]:
    """Split 'soccer:1035037' into ('soccer', '1035037').

    Unqualified ids come back with a None sport key.
    """

    prefix, sep, rest = game_id.partition(GAME_ID_SEPARATOR)
    if sep and prefix and rest:
        return prefix, rest
    return None, game_id
