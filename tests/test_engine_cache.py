"""Tests for the per-user engine cache."""

import random
from datetime import timedelta

import pytest

from src.rune_game.engine_cache import EngineCache
from src.rune_game.game_engine import GameEngine


@pytest.fixture
def saved():
    """Record of (user_id, engine) pairs passed to the save callback."""
    return []


@pytest.fixture
def cache(saved):
    return EngineCache(lambda user_id, engine: saved.append((user_id, engine)),
                       idle_timeout=timedelta(minutes=30))


@pytest.fixture
def build(now):
    def _build(name='Tester'):
        profile = GameEngine.new_profile(name, now, random.Random(3))
        return GameEngine(profile, rng=random.Random(3), clock=lambda: now)

    return _build


class TestLookup:
    """Test cache hits and misses."""

    def test_miss_creates_once(self, cache, build, now):
        first = cache.get(1, now, build)
        second = cache.get(1, now, lambda: pytest.fail("engine rebuilt on a hit"))

        assert first is second
        assert len(cache) == 1
        assert 1 in cache

    def test_failed_create_caches_nothing(self, cache, now):
        def broken():
            raise RuntimeError("database is locked")

        with pytest.raises(RuntimeError):
            cache.get(1, now, broken)
        assert 1 not in cache


class TestEviction:
    """Test idle eviction and config reload eviction."""

    def test_idle_engines_are_saved_then_dropped(self, cache, build, saved, now):
        idle = cache.get(1, now, build)
        cache.get(2, now + timedelta(minutes=20), build)

        assert cache.evict_idle(now + timedelta(minutes=35)) == [1]
        assert saved == [(1, idle)]
        assert 1 not in cache
        assert 2 in cache

    def test_touch_keeps_an_engine_alive(self, cache, build, now):
        cache.get(1, now, build)
        cache.touch(1, now + timedelta(minutes=25))

        assert cache.evict_idle(now + timedelta(minutes=40)) == []
        assert 1 in cache

    def test_failed_save_keeps_the_engine(self, build, now):
        def broken_save(user_id, engine):
            raise RuntimeError("disk full")

        cache = EngineCache(broken_save, idle_timeout=timedelta(minutes=30))
        cache.get(1, now, build)

        assert cache.evict_idle(now + timedelta(hours=1)) == []
        assert 1 in cache

    def test_inactive_eviction_spares_live_sessions(self, cache, build, saved, now):
        busy = cache.get(1, now, build)
        busy.start_encounter(now)
        cache.get(2, now, build)

        assert cache.evict_inactive() == [2]
        assert 1 in cache
        assert [user_id for user_id, _ in saved] == [2]

    def test_save_all(self, cache, build, saved, now):
        cache.get(1, now, build)
        cache.get(2, now, build)

        cache.save_all()
        assert sorted(user_id for user_id, _ in saved) == [1, 2]
        assert len(cache) == 2
