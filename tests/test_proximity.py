from __future__ import annotations

import math
import unittest
from datetime import datetime, timezone
from types import SimpleNamespace

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from screenfinder.db import Base
from screenfinder.models import Bar, Screening
from screenfinder.screenings.proximity import (
    EARTH_RADIUS_KM,
    coordinate,
    filter_by_distance,
    haversine_km,
)
from screenfinder.screenings.queries import bars_for_game

USER_LAT, USER_LON = 40.0, -73.0
KM_PER_DEGREE_LAT = EARTH_RADIUS_KM * math.pi / 180


def _bar(name: str, km_north: float | None, bar_id: int = 0):
    if km_north is None:
        return SimpleNamespace(id=bar_id, name=name, latitude=None, longitude=None)
    return SimpleNamespace(
        id=bar_id,
        name=name,
        latitude=USER_LAT + km_north / KM_PER_DEGREE_LAT,
        longitude=USER_LON,
    )


class HaversineTests(unittest.TestCase):
    def test_same_point_is_zero(self) -> None:
        self.assertEqual(0.0, haversine_km(51.5, -0.12, 51.5, -0.12))

    def test_known_distance_london_paris(self) -> None:
        distance = haversine_km(51.5074, -0.1278, 48.8566, 2.3522)

        self.assertAlmostEqual(343.5, distance, delta=1.0)

    def test_one_degree_of_latitude(self) -> None:
        self.assertAlmostEqual(KM_PER_DEGREE_LAT, haversine_km(0, 0, 1, 0), places=9)


class CoordinateTests(unittest.TestCase):
    def test_numbers_and_numeric_strings_are_accepted(self) -> None:
        self.assertEqual(40.5, coordinate("40.5"))
        self.assertEqual(-73.0, coordinate(-73))

    def test_non_numeric_values_are_rejected(self) -> None:
        for value in (None, "", "abc", float("nan"), float("inf"), True):
            with self.subTest(value=value):
                self.assertIsNone(coordinate(value))


class FilterByDistanceTests(unittest.TestCase):
    def test_only_bars_within_radius_are_kept_with_distance(self) -> None:
        bars = [_bar("B", 8.0), _bar("A", 2.0)]

        nearby = filter_by_distance(bars, USER_LAT, USER_LON, 5)

        self.assertEqual(["A"], [item.bar.name for item in nearby])
        self.assertAlmostEqual(2.0, nearby[0].distance, places=6)

    def test_distance_matches_haversine_exactly(self) -> None:
        bars = [_bar("A", 3.3), _bar("B", 0.4)]

        for item in filter_by_distance(bars, USER_LAT, USER_LON, 10):
            expected = haversine_km(USER_LAT, USER_LON, item.bar.latitude, item.bar.longitude)
            self.assertEqual(expected, item.distance)

    def test_results_are_sorted_nearest_first(self) -> None:
        bars = [_bar(str(km), km) for km in (7.5, 0.1, 4.2, 9.9, 2.0, 4.2)]

        distances = [item.distance for item in filter_by_distance(bars, USER_LAT, USER_LON, 10)]

        self.assertEqual(6, len(distances))
        self.assertEqual(sorted(distances), distances)

    def test_bar_exactly_on_radius_is_included(self) -> None:
        bar = _bar("edge", 5.0)
        radius = haversine_km(USER_LAT, USER_LON, bar.latitude, bar.longitude)

        self.assertEqual(1, len(filter_by_distance([bar], USER_LAT, USER_LON, radius)))

    def test_bars_without_coordinates_are_excluded_when_filtering(self) -> None:
        bars = [_bar("nowhere", None), _bar("near", 1.0)]

        nearby = filter_by_distance(bars, USER_LAT, USER_LON, 10)

        self.assertEqual(["near"], [item.bar.name for item in nearby])

    def test_missing_location_returns_everything_unsorted(self) -> None:
        bars = [_bar("far", 50.0), _bar("nowhere", None), _bar("near", 1.0)]

        for lat, lon in ((None, USER_LON), (USER_LAT, None), ("abc", USER_LON), (None, None)):
            with self.subTest(lat=lat, lon=lon):
                result = filter_by_distance(bars, lat, lon, 5)
                self.assertEqual(["far", "nowhere", "near"], [item.bar.name for item in result])
                self.assertTrue(all(item.distance is None for item in result))

    def test_default_radius_applies_when_unspecified(self) -> None:
        bars = [_bar("inside", 9.0), _bar("outside", 11.0)]

        nearby = filter_by_distance(bars, USER_LAT, USER_LON)

        self.assertEqual(["inside"], [item.bar.name for item in nearby])

    def test_non_positive_or_non_numeric_radius_uses_default(self) -> None:
        bars = [_bar("inside", 9.0), _bar("outside", 11.0)]

        for radius in (0, -3, "abc", float("nan")):
            with self.subTest(radius=radius):
                nearby = filter_by_distance(bars, USER_LAT, USER_LON, radius)
                self.assertEqual(["inside"], [item.bar.name for item in nearby])

    def test_caller_default_radius_is_honoured(self) -> None:
        bars = [_bar("inside", 9.0), _bar("outside", 11.0)]

        nearby = filter_by_distance(bars, USER_LAT, USER_LON, 0, default_radius_km=20)

        self.assertEqual(["inside", "outside"], [item.bar.name for item in nearby])

    def test_dict_bars_are_supported(self) -> None:
        bars = [{"name": "dict bar", "latitude": USER_LAT, "longitude": USER_LON}]

        nearby = filter_by_distance(bars, USER_LAT, USER_LON, 1)

        self.assertEqual(0.0, nearby[0].distance)


class BarsForGameQueryTests(unittest.TestCase):
    def setUp(self) -> None:
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(bind=engine)
        self.db = sessionmaker(bind=engine)()
        self.addCleanup(self.db.close)

        kickoff = datetime(2024, 5, 1, 19, 0, tzinfo=timezone.utc)
        near = _bar("A", 2.0)
        far = _bar("B", 8.0)
        self.db.add_all(
            [
                Bar(id=1, name="A", address="1 Main St", latitude=near.latitude, longitude=near.longitude),
                Bar(id=2, name="B", address="2 Main St", latitude=far.latitude, longitude=far.longitude),
                Bar(id=3, name="No Geo", address="3 Main St"),
                Bar(id=4, name="Other Game", address="4 Main St", latitude=USER_LAT, longitude=USER_LON),
            ]
        )
        self.db.add_all(
            [
                Screening(bar_id=1, external_game_id="evt123", screening_time=kickoff),
                Screening(bar_id=2, external_game_id="evt123", screening_time=kickoff),
                Screening(bar_id=3, external_game_id="evt123", screening_time=kickoff),
                Screening(bar_id=1, external_game_id="evt123", screening_time=kickoff.replace(hour=21)),
                Screening(bar_id=4, external_game_id="evt999", screening_time=kickoff),
            ]
        )
        self.db.commit()

    def test_location_filters_to_nearby_bars(self) -> None:
        nearby = bars_for_game(self.db, "evt123", USER_LAT, USER_LON, 5)

        self.assertEqual(["A"], [item.bar.name for item in nearby])
        self.assertAlmostEqual(2.0, nearby[0].distance, places=6)

    def test_without_location_every_bar_showing_the_game_is_returned_once(self) -> None:
        bars = bars_for_game(self.db, "evt123")

        self.assertEqual(["A", "B", "No Geo"], [item.bar.name for item in bars])
        self.assertTrue(all(item.distance is None for item in bars))

    def test_unknown_game_has_no_bars(self) -> None:
        self.assertEqual([], bars_for_game(self.db, "nope", USER_LAT, USER_LON, 5))


if __name__ == "__main__":
    unittest.main()
