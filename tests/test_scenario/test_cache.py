# tests/test_scenario/test_cache.py

"""
Tests for WarmStartCache.

Tests cover:
- TTL expiry against an injected clock
- Overwrite and snapshot semantics
- Statistics, invalidation and closing
- Concurrent access
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from scgep.interfaces.solution import Solution
from scgep.scenario.cache import WarmStartCache


@pytest.fixture
def solution(simple_config):
    s = Solution.empty(simple_config)
    s.objective_value = 42.0
    return s


# =============================================================================
# Expiry Tests
# =============================================================================

class TestExpiry:
    """Test TTL handling."""

    def test_hit_before_ttl(self, cache, fake_clock, solution):
        cache.put("baseline", solution)
        fake_clock.now = 59 * 60
        entry = cache.get("baseline")
        assert entry is not None
        assert entry.objective == 42.0
        assert entry.age(fake_clock.now) == pytest.approx(59 * 60)

    def test_miss_after_ttl(self, cache, fake_clock, solution):
        cache.put("baseline", solution)
        fake_clock.now = 61 * 60
        assert cache.get("baseline") is None
        assert len(cache) == 0
        assert cache.stats()["evictions"] == 1

    def test_expiry_is_per_entry(self, cache, fake_clock, solution):
        cache.put("baseline", solution)
        fake_clock.now = 1800.0
        cache.put("high_demand", solution)
        fake_clock.now = 3700.0
        assert cache.get("baseline") is None
        assert cache.get("high_demand") is not None

    def test_invalid_ttl(self):
        with pytest.raises(ValueError):
            WarmStartCache(ttl=0)


# =============================================================================
# Storage Tests
# =============================================================================

class TestStorage:
    """Test put semantics."""

    def test_put_overwrites(self, cache, fake_clock, solution):
        cache.put("baseline", solution)
        fake_clock.now = 3000.0
        better = solution.copy()
        better.objective_value = 10.0
        cache.put("baseline", better)
        fake_clock.now = 3700.0
        entry = cache.get("baseline")
        assert entry.objective == 10.0
        assert entry.timestamp == 3000.0

    def test_snapshot_is_independent(self, cache, solution):
        cache.put("baseline", solution)
        solution.investment[0, 0, 0] = 99.0
        assert cache.get("baseline").solution.investment[0, 0, 0] == 0.0

    def test_unknown_key_is_miss(self, cache):
        assert cache.get("nothing") is None
        assert cache.stats()["misses"] == 1

    def test_invalidate_and_clear(self, cache, solution):
        cache.put("a", solution)
        cache.put("b", solution)
        assert cache.invalidate("a")
        assert not cache.invalidate("a")
        cache.clear()
        assert len(cache) == 0


# =============================================================================
# Lifecycle Tests
# =============================================================================

class TestLifecycle:
    """Test statistics, close and concurrent use."""

    def test_stats(self, cache, solution):
        cache.put("baseline", solution)
        cache.get("baseline")
        cache.get("baseline")
        cache.get("other")
        stats = cache.stats()
        assert stats["hits"] == 2
        assert stats["misses"] == 1
        assert stats["size"] == 1
        assert stats["hit_rate"] == pytest.approx(2 / 3)

    def test_closed_cache_rejects_use(self, fake_clock, solution):
        cache = WarmStartCache(clock=fake_clock)
        cache.put("baseline", solution)
        cache.close()
        assert len(cache) == 0
        with pytest.raises(RuntimeError):
            cache.get("baseline")
        with pytest.raises(RuntimeError):
            cache.put("baseline", solution)

    def test_context_manager_closes(self, solution):
        with WarmStartCache() as cache:
            cache.put("baseline", solution)
        with pytest.raises(RuntimeError):
            cache.get("baseline")

    def test_concurrent_puts_and_gets(self, cache, solution):
        keys = [f"scenario_{i % 4}" for i in range(40)]

        def work(key):
            cache.put(key, solution)
            return cache.get(key) is not None

        with ThreadPoolExecutor(max_workers=8) as executor:
            assert all(executor.map(work, keys))
        assert len(cache) == 4
        assert cache.stats()["hits"] == 40
