from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone

from cryptography.fernet import Fernet, InvalidToken

from screenfinder.models import AppSettings

logger = logging.getLogger(__name__)
_FERNET: Fernet | None = None


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


@dataclass(frozen=True)
class SettingsSnapshot:
    id: int
    sports_api_key_enc: str | None
    default_sport: str
    cache_ttl_hours: int
    fetch_window_days: int
    default_radius_km: float
    request_timeout_seconds: float
    cache_enabled: bool

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_hours * 3600

    def api_key(self) -> str | None:
        """Stored key wins; SPORTS_API_KEY is the deployment-wide fallback."""
        return decrypt_api_key(self.sports_api_key_enc) or (
            os.getenv("SPORTS_API_KEY") or ""
        ).strip() or None


def _default_settings() -> AppSettings:
    return AppSettings(
        id=1,
        sports_api_key_enc=None,
        default_sport=(os.getenv("DEFAULT_SPORT") or "soccer").strip().lower(),
        cache_ttl_hours=_env_int("CACHE_TTL_HOURS", 24),
        fetch_window_days=_env_int("FETCH_WINDOW_DAYS", 7),
        default_radius_km=_env_float("DEFAULT_RADIUS_KM", 10.0),
        request_timeout_seconds=_env_float("REQUEST_TIMEOUT_SECONDS", 10.0),
        cache_enabled=True,
        updated_at_utc=datetime.now(timezone.utc),
    )


def default_snapshot() -> SettingsSnapshot:
    """Settings built from the environment alone, for CLI use without a database."""
    return snapshot_settings(_default_settings())


def get_or_create_settings(db) -> AppSettings:
    settings = db.query(AppSettings).filter(AppSettings.id == 1).one_or_none()
    if settings:
        return settings
    settings = _default_settings()
    db.add(settings)
    db.commit()
    db.refresh(settings)
    return settings


def snapshot_settings(settings: AppSettings) -> SettingsSnapshot:
    return SettingsSnapshot(
        id=settings.id,
        sports_api_key_enc=settings.sports_api_key_enc,
        default_sport=settings.default_sport,
        cache_ttl_hours=settings.cache_ttl_hours,
        fetch_window_days=settings.fetch_window_days,
        default_radius_km=settings.default_radius_km,
        request_timeout_seconds=settings.request_timeout_seconds,
        cache_enabled=settings.cache_enabled,
    )


def get_fernet() -> Fernet:
    global _FERNET
    if _FERNET is not None:
        return _FERNET
    secret = (os.getenv("APP_SECRET_KEY") or "").strip()
    if not secret:
        secret = Fernet.generate_key().decode("utf-8")
        logger.warning(
            "APP_SECRET_KEY missing. Generated a temporary key: %s. "
            "Set APP_SECRET_KEY to this value to persist decryption.",
            secret,
        )
    _FERNET = Fernet(secret.encode("utf-8"))
    return _FERNET


def encrypt_api_key(api_key: str | None) -> str | None:
    if not api_key:
        return None
    fernet = get_fernet()
    return fernet.encrypt(api_key.encode("utf-8")).decode("utf-8")


def decrypt_api_key(encrypted: str | None) -> str | None:
    if not encrypted:
        return None
    fernet = get_fernet()
    try:
        return fernet.decrypt(encrypted.encode("utf-8")).decode("utf-8")
    except InvalidToken:
        logger.error("Failed to decrypt sports API key. Check APP_SECRET_KEY.")
        return None
