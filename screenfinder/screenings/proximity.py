"""Great-circle distance filtering for bars.

All distances and radii are in kilometers.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable

EARTH_RADIUS_KM = 6371.0
DEFAULT_RADIUS_KM = 10.0


@dataclass(frozen=True)
class NearbyBar:
    bar: Any
    distance: float | None = None


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def coordinate(value: Any) -> float | None:
    """Finite float or None; bools and non-numeric strings are rejected."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _bar_coordinates(bar: Any) -> tuple[float, float] | None:
    if isinstance(bar, dict):
        lat, lon = bar.get("latitude"), bar.get("longitude")
    else:
        lat, lon = getattr(bar, "latitude", None), getattr(bar, "longitude", None)
    lat, lon = coordinate(lat), coordinate(lon)
    if lat is None or lon is None:
        return None
    return lat, lon


def filter_by_distance(
    bars: Iterable[Any],
    user_lat: Any,
    user_lon: Any,
    radius_km: Any = None,
    default_radius_km: float = DEFAULT_RADIUS_KM,
) -> list[NearbyBar]:
    """Bars within radius_km of the user, nearest first, distance attached.

    A missing, non-numeric or non-positive radius means default_radius_km.
    Without a usable user location every bar is returned as given, with no
    distance.
    """

    lat, lon = coordinate(user_lat), coordinate(user_lon)
    if lat is None or lon is None:
        return [NearbyBar(bar=bar) for bar in bars]

    radius = coordinate(radius_km)
    if radius is None or radius <= 0:
        radius = default_radius_km

    nearby: list[NearbyBar] = []
    for bar in bars:
        coords = _bar_coordinates(bar)
        if coords is None:
            continue
        distance = haversine_km(lat, lon, coords[0], coords[1])
        if distance <= radius:
            nearby.append(NearbyBar(bar=bar, distance=distance))

    nearby.sort(key=lambda item: item.distance)
    return nearby
