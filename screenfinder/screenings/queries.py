"""Read-side queries for screenings and bars."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from screenfinder.models import Bar, Screening
from screenfinder.screenings.proximity import DEFAULT_RADIUS_KM, NearbyBar, filter_by_distance

logger = logging.getLogger(__name__)


def _bar_summary(bar: Bar) -> dict[str, Any]:
    return {
        "id": bar.id,
        "name": bar.name,
        "address": bar.address,
    }


def list_screenings(db: Session) -> list[dict[str, Any]]:
    rows = (
        db.query(Screening, Bar)
        .join(Bar, Screening.bar_id == Bar.id)
        .order_by(Screening.screening_time.asc(), Screening.id.asc())
        .all()
    )
    return [
        {
            "screening_id": screening.id,
            "screening_time": screening.screening_time,
            "external_game_id": screening.external_game_id,
            "bar_id": bar.id,
            "bar_name": bar.name,
            "address": bar.address,
            "description": bar.description,
        }
        for screening, bar in rows
    ]


def upcoming_screenings(db: Session, now: datetime | None = None) -> list[dict[str, Any]]:
    now_utc = now or datetime.now(timezone.utc)
    rows = (
        db.query(Screening, Bar)
        .join(Bar, Screening.bar_id == Bar.id)
        .filter(Screening.screening_time > now_utc)
        .order_by(Screening.screening_time.asc(), Screening.id.asc())
        .all()
    )
    return [
        {
            "screening_id": screening.id,
            "screening_time": screening.screening_time,
            "external_game_id": screening.external_game_id,
            "bar": _bar_summary(bar),
        }
        for screening, bar in rows
    ]


def screenings_for_bar(db: Session, bar_id: int) -> list[dict[str, Any]]:
    screenings = (
        db.query(Screening)
        .filter(Screening.bar_id == bar_id)
        .order_by(Screening.screening_time.asc(), Screening.id.asc())
        .all()
    )
    return [
        {
            "screening_id": screening.id,
            "screening_time": screening.screening_time,
            "external_game_id": screening.external_game_id,
        }
        for screening in screenings
    ]


def screenings_for_game(db: Session, game_id: str) -> list[dict[str, Any]]:
    rows = (
        db.query(Screening, Bar)
        .join(Bar, Screening.bar_id == Bar.id)
        .filter(Screening.external_game_id == game_id)
        .order_by(Screening.screening_time.asc(), Screening.id.asc())
        .all()
    )
    return [
        {
            "screening_id": screening.id,
            "screening_time": screening.screening_time,
            "bar": _bar_summary(bar),
        }
        for screening, bar in rows
    ]


def bars_showing_game(db: Session, game_id: str) -> list[Bar]:
    return (
        db.query(Bar)
        .join(Screening, Screening.bar_id == Bar.id)
        .filter(Screening.external_game_id == game_id)
        .distinct()
        .order_by(Bar.id.asc())
        .all()
    )


def bars_for_game(
    db: Session,
    game_id: str,
    lat: float | None = None,
    lon: float | None = None,
    radius_km: float | None = None,
    default_radius_km: float = DEFAULT_RADIUS_KM,
) -> list[NearbyBar]:
    """Bars screening a game, nearest first when a user location is given."""

    bars = bars_showing_game(db, game_id)
    nearby = filter_by_distance(bars, lat, lon, radius_km, default_radius_km)
    logger.info(
        "Found %s of %s bars showing game_id=%s (location=%s radius_km=%s)",
        len(nearby),
        len(bars),
        game_id,
        "yes" if lat is not None and lon is not None else "no",
        radius_km,
    )
    return nearby


def list_bars(db: Session) -> list[Bar]:
    return db.query(Bar).order_by(Bar.created_at.desc(), Bar.id.desc()).all()


def get_bar(db: Session, bar_id: int) -> Bar | None:
    return db.query(Bar).filter(Bar.id == bar_id).one_or_none()
