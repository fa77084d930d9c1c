"""Pytest configuration and fixtures for the rune game tests."""

import random
from datetime import datetime

import pytest

from src.database.connection import DatabaseManager
from src.database.models import OwnedRune, RuneStats
from src.database.setup import DatabaseSetup
from src.rune_game.config import EngineConfig
from src.rune_game.game_engine import GameEngine

# A Monday, so the boss of the day is the fire boss
NOW = datetime(2026, 3, 2, 12, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def seeded_rng():
    """Provide a deterministic RNG for tests."""
    return random.Random(42)


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def steady_config():
    """Config without battle jitter so round outcomes are exact."""
    return EngineConfig(jitter_min=1.0, jitter_max=1.0)


@pytest.fixture
def profile(now):
    return GameEngine.new_profile('Tester', now, random.Random(7))


@pytest.fixture
def engine(profile, config, seeded_rng, now):
    return GameEngine(profile, config=config, rng=seeded_rng, clock=lambda: now)


@pytest.fixture
def steady_engine(profile, steady_config, seeded_rng, now):
    return GameEngine(profile, config=steady_config, rng=seeded_rng, clock=lambda: now)


@pytest.fixture
def make_rune():
    """Build a rune with fixed stats; species 19 (Glyph, arcane) is element-neutral."""
    counter = {'next': 0}

    def _make(species_id=19, power=50, rarity='common', rune_id=None):
        counter['next'] += 1
        return OwnedRune(
            rune_id=rune_id or f"rune_test{counter['next']:04d}",
            species_id=species_id,
            rarity=rarity,
            stats=RuneStats(power, 40, 40),
        )

    return _make


@pytest.fixture
def give_runes(make_rune):
    """Add runes straight into an engine's collection and return their IDs."""

    def _give(engine, *entries):
        ids = []
        for entry in entries:
            rune = make_rune(**entry) if isinstance(entry, dict) else make_rune(power=entry)
            engine.collection.add_rune(rune)
            ids.append(rune.rune_id)
        return ids

    return _give


@pytest.fixture
def db(tmp_path):
    """A fresh, initialized SQLite database."""
    manager = DatabaseManager(database_url='', sqlite_path=str(tmp_path / 'test.db'))
    DatabaseSetup(manager).initialize_database()
    return manager
