from __future__ import annotations

import asyncio
import unittest

from screenfinder.schemas import Game, GamePlaceholder
from screenfinder.screenings.enrichment import distinct_game_ids, enrich_screenings
from screenfinder.sports.client import UpstreamError


def _game(game_id: str) -> Game:
    return Game(id=game_id, home_team="Home", away_team="Away", api_source="stub")


class _StubDetails:
    def __init__(self, failing: set[str] = frozenset(), missing: set[str] = frozenset()):
        self.failing = failing
        self.missing = missing
        self.calls: list[str] = []

    async def __call__(self, game_id: str):
        self.calls.append(game_id)
        await asyncio.sleep(0)
        if game_id in self.failing:
            raise UpstreamError(f"detail lookup failed for {game_id}")
        if game_id in self.missing:
            return None
        return _game(game_id)


class DistinctGameIdsTests(unittest.TestCase):
    def test_ids_are_unique_and_nulls_skipped(self) -> None:
        screenings = [
            {"external_game_id": "x"},
            {"external_game_id": None},
            {"external_game_id": "y"},
            {"external_game_id": "x"},
            {},
        ]

        self.assertEqual(["x", "y"], distinct_game_ids(screenings))


class EnrichScreeningsTests(unittest.IsolatedAsyncioTestCase):
    async def test_duplicate_ids_are_fetched_once_and_failures_get_placeholders(self) -> None:
        fetch = _StubDetails(failing={"y"})
        screenings = [
            {"screening_id": 1, "external_game_id": "x"},
            {"screening_id": 2, "external_game_id": "x"},
            {"screening_id": 3, "external_game_id": "y"},
        ]

        enriched = await enrich_screenings(screenings, fetch)

        self.assertCountEqual(["x", "y"], fetch.calls)
        self.assertEqual(3, len(enriched))
        self.assertEqual([1, 2, 3], [item["screening_id"] for item in enriched])
        self.assertIsInstance(enriched[0]["game"], Game)
        self.assertEqual("x", enriched[1]["game"].id)
        self.assertEqual(GamePlaceholder(id="y", error="Details not available"), enriched[2]["game"])

    async def test_missing_details_and_null_ids_get_placeholders(self) -> None:
        fetch = _StubDetails(missing={"gone"})
        screenings = [
            {"screening_id": 1, "external_game_id": None},
            {"screening_id": 2, "external_game_id": "gone"},
            {"screening_id": 3, "external_game_id": "ok"},
        ]

        enriched = await enrich_screenings(screenings, fetch)

        self.assertEqual(["gone", "ok"], sorted(fetch.calls))
        self.assertEqual(GamePlaceholder(id=None), enriched[0]["game"])
        self.assertEqual(GamePlaceholder(id="gone"), enriched[1]["game"])
        self.assertEqual("ok", enriched[2]["game"].id)

    async def test_screening_fields_are_preserved(self) -> None:
        screening = {"screening_id": 9, "external_game_id": "x", "bar": {"id": 4, "name": "The Local"}}

        enriched = await enrich_screenings([screening], _StubDetails())

        self.assertEqual(9, enriched[0]["screening_id"])
        self.assertEqual({"id": 4, "name": "The Local"}, enriched[0]["bar"])
        self.assertNotIn("game", screening)

    async def test_empty_input_makes_no_calls(self) -> None:
        fetch = _StubDetails()

        self.assertEqual([], await enrich_screenings([], fetch))
        self.assertEqual([], fetch.calls)


if __name__ == "__main__":
    unittest.main()
