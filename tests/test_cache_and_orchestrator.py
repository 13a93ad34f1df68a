from __future__ import annotations

import unittest
from datetime import date

from screenfinder.sports.cache import CACHE_MISS, MemoryResultCache, cache_get, cache_set
from screenfinder.sports.client import UpstreamError, UpstreamUnavailableError
from screenfinder.sports.orchestrator import fetch_window, window_dates
from screenfinder.sports.registry import resolve_sport


class _FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class _BrokenCache:
    def get(self, key):
        raise ConnectionError("cache down")

    def set(self, key, payload, ttl_seconds):
        raise ConnectionError("cache down")


class _StubFetcher:
    """Returns canned events per date; dates in `failing` raise."""

    def __init__(self, events_by_date: dict[date, list], failing: set[date] | None = None):
        self.events_by_date = events_by_date
        self.failing = failing or set()
        self.calls: list[date] = []

    async def __call__(self, config, day):
        self.calls.append(day)
        if day in self.failing:
            raise UpstreamError(f"boom {day}")
        return list(self.events_by_date.get(day, []))


class MemoryResultCacheTests(unittest.TestCase):
    def test_set_then_get_returns_same_payload(self) -> None:
        cache = MemoryResultCache(clock=_FakeClock())
        payload = [{"id": 1}, {"id": 2}]

        cache.set("soccer", payload, ttl_seconds=60)

        self.assertEqual(tuple(payload), cache.get("soccer"))

    def test_entry_expires_after_ttl(self) -> None:
        clock = _FakeClock()
        cache = MemoryResultCache(clock=clock)
        cache.set("soccer", [{"id": 1}], ttl_seconds=60)

        clock.now += 60
        self.assertNotEqual(CACHE_MISS, cache.get("soccer"))
        clock.now += 0.001
        self.assertIs(CACHE_MISS, cache.get("soccer"))

    def test_empty_payload_is_a_hit_not_a_miss(self) -> None:
        cache = MemoryResultCache(clock=_FakeClock())
        cache.set("mma", [], ttl_seconds=60)

        self.assertEqual((), cache.get("mma"))
        self.assertIsNot(CACHE_MISS, cache.get("mma"))

    def test_last_writer_wins(self) -> None:
        cache = MemoryResultCache(clock=_FakeClock())
        cache.set("soccer", [{"id": 1}], ttl_seconds=60)
        cache.set("soccer", [{"id": 2}], ttl_seconds=60)

        self.assertEqual(({"id": 2},), cache.get("soccer"))

    def test_unknown_key_is_a_miss(self) -> None:
        self.assertIs(CACHE_MISS, MemoryResultCache().get("hockey"))

    def test_broken_cache_reads_as_miss(self) -> None:
        self.assertIs(CACHE_MISS, cache_get(_BrokenCache(), "soccer"))
        cache_set(_BrokenCache(), "soccer", [], 60)
        self.assertIs(CACHE_MISS, cache_get(None, "soccer"))


class WindowDatesTests(unittest.TestCase):
    def test_window_starts_today_and_is_consecutive(self) -> None:
        dates = window_dates(3, today=date(2024, 12, 31))

        self.assertEqual([date(2024, 12, 31), date(2025, 1, 1), date(2025, 1, 2)], dates)


class FetchWindowTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.config = resolve_sport("soccer")
        self.today = date(2024, 5, 1)
        self.days = window_dates(4, today=self.today)

    async def test_one_failed_day_keeps_the_others(self) -> None:
        fetcher = _StubFetcher(
            {day: [{"day": day.isoformat(), "n": n} for n in range(2)] for day in self.days},
            failing={self.days[1]},
        )

        result = await fetch_window(self.config, 4, fetcher, today=self.today)

        expected = [
            {"day": day.isoformat(), "n": n}
            for day in self.days
            if day != self.days[1]
            for n in range(2)
        ]
        self.assertCountEqual(expected, result.events)
        self.assertEqual(3, result.succeeded)
        self.assertEqual(1, result.failed)
        self.assertEqual(sorted(self.days), sorted(fetcher.calls))

    async def test_fresh_cache_skips_network(self) -> None:
        cache = MemoryResultCache(clock=_FakeClock())
        cache.set("soccer", [{"cached": True}], ttl_seconds=60)
        fetcher = _StubFetcher({})

        result = await fetch_window(self.config, 4, fetcher, cache=cache, today=self.today)

        self.assertTrue(result.from_cache)
        self.assertEqual([{"cached": True}], result.events)
        self.assertEqual([], fetcher.calls)

    async def test_successful_fetch_populates_cache(self) -> None:
        cache = MemoryResultCache(clock=_FakeClock())
        fetcher = _StubFetcher({self.today: [{"id": 1}]})

        await fetch_window(self.config, 2, fetcher, cache=cache, ttl_seconds=60, today=self.today)

        self.assertEqual(({"id": 1},), cache.get("soccer"))

    async def test_empty_result_is_cached(self) -> None:
        cache = MemoryResultCache(clock=_FakeClock())
        fetcher = _StubFetcher({})

        result = await fetch_window(self.config, 2, fetcher, cache=cache, today=self.today)
        second = await fetch_window(self.config, 2, fetcher, cache=cache, today=self.today)

        self.assertEqual([], result.events)
        self.assertTrue(second.from_cache)
        self.assertEqual(2, len(fetcher.calls))

    async def test_all_days_failing_raises_and_is_not_cached(self) -> None:
        cache = MemoryResultCache(clock=_FakeClock())
        fetcher = _StubFetcher({}, failing=set(self.days))

        with self.assertRaises(UpstreamUnavailableError):
            await fetch_window(self.config, 4, fetcher, cache=cache, today=self.today)

        self.assertIs(CACHE_MISS, cache.get("soccer"))

    async def test_broken_cache_falls_back_to_live_fetch(self) -> None:
        fetcher = _StubFetcher({self.today: [{"id": 1}]})

        result = await fetch_window(self.config, 1, fetcher, cache=_BrokenCache(), today=self.today)

        self.assertEqual([{"id": 1}], result.events)


if __name__ == "__main__":
    unittest.main()
