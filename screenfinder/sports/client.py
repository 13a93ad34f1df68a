"""Async HTTP client for the per-sport upstream event APIs."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timezone
from typing import Any

import httpx

from screenfinder.sports.registry import SportConfig

logger = logging.getLogger(__name__)
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_USER_AGENT = "screenfinder/1.0 (+https://example.local)"
MAX_BODY_SNIPPET = 300

# Providers disagree on where the event array lives. Checked in this order;
# the first key holding a list is authoritative.
EVENT_ARRAY_KEYS: tuple[str, ...] = ("events", "response", "event")


class UpstreamError(RuntimeError):
    def __init__(self, message: str, *, status: int | None = None, sport: str | None = None):
        super().__init__(message)
        self.status = status
        self.sport = sport


class UpstreamUnavailableError(UpstreamError):
    """Every request for an operation failed; nothing usable came back."""


class InvalidDateError(ValueError):
    pass


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def normalize_date(value: str | date | None, today: date | None = None) -> date | None:
    if value is None:
        return None
    if isinstance(value, date):
        return value
    cleaned = value.strip()
    if not cleaned:
        return None
    if cleaned.lower() == "today":
        return today or utc_today()
    try:
        if re.fullmatch(r"\d{8}", cleaned):
            return datetime.strptime(cleaned, "%Y%m%d").date()
        if re.fullmatch(r"\d{4}-\d{2}-\d{2}", cleaned):
            return date.fromisoformat(cleaned)
    except ValueError as exc:
        raise InvalidDateError(f"invalid calendar date {cleaned!r}") from exc
    raise InvalidDateError("date must be YYYY-MM-DD or YYYYMMDD")


def unwrap_events(payload: Any) -> list | None:
    """Return the event array from a provider envelope, or None if absent."""
    if not isinstance(payload, dict):
        return None
    for key in EVENT_ARRAY_KEYS:
        value = payload.get(key)
        if isinstance(value, list):
            return value
    return None


def envelope_errors(payload: Any) -> str | None:
    """API-Sports reports auth and rate-limit failures inside a 200 response."""
    if not isinstance(payload, dict):
        return None
    errors = payload.get("errors")
    if isinstance(errors, dict) and errors:
        return "; ".join(f"{key}={value}" for key, value in errors.items())
    if isinstance(errors, list) and errors:
        return "; ".join(str(item) for item in errors)
    return None


class SportsApiClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str | None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._http = http
        self._api_key = api_key
        self._timeout = httpx.Timeout(timeout_seconds)

    def _headers(self, config: SportConfig) -> dict[str, str]:
        headers = {
            "User-Agent": DEFAULT_USER_AGENT,
            "Accept": "application/json",
        }
        if config.auth_header and self._api_key:
            headers[config.auth_header] = self._api_key
        return headers

    def _url(self, config: SportConfig, endpoint: str) -> str:
        return f"{config.base_url(self._api_key).rstrip('/')}{endpoint}"

    async def _get_json(self, config: SportConfig, endpoint: str, params: dict[str, str]) -> Any:
        if not self._api_key:
            raise UpstreamError("Sports API key is not configured", sport=config.sport_key)

        try:
            response = await self._http.get(
                self._url(config, endpoint),
                params=params,
                headers=self._headers(config),
                timeout=self._timeout,
            )
        except httpx.TimeoutException as exc:
            raise UpstreamError(f"timeout calling {endpoint}: {exc!r}", sport=config.sport_key) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"transport error calling {endpoint}: {exc!r}", sport=config.sport_key) from exc

        if response.status_code != 200:
            logger.error(
                "Upstream non-200 sport=%s endpoint=%s status=%s body=%s",
                config.sport_key,
                endpoint,
                response.status_code,
                response.text[:MAX_BODY_SNIPPET],
            )
            raise UpstreamError(
                f"{endpoint} returned {response.status_code}",
                status=response.status_code,
                sport=config.sport_key,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError(f"{endpoint} returned invalid JSON", sport=config.sport_key) from exc

        errors = envelope_errors(payload)
        if errors:
            raise UpstreamError(f"{endpoint} reported errors: {errors}", sport=config.sport_key)
        return payload

    async def fetch_events(self, config: SportConfig, day: date) -> list:
        """Raw events for one sport and one calendar day.

        An envelope without any event array means no games that day.
        """

        params = {config.date_param: day.isoformat(), **config.extra_params}
        payload = await self._get_json(config, config.events_endpoint, params)
        events = unwrap_events(payload)
        if events is None:
            logger.debug(
                "No event array in response sport=%s date=%s keys=%s",
                config.sport_key,
                day,
                sorted(payload) if isinstance(payload, dict) else type(payload).__name__,
            )
            return []
        return events

    async def fetch_event(self, config: SportConfig, upstream_id: str) -> Any | None:
        """Raw record for a single event, or None when the upstream has no match."""
        params = {config.detail_param: upstream_id}
        payload = await self._get_json(config, config.detail_endpoint, params)
        events = unwrap_events(payload)
        if not events:
            return None
        return events[0]
