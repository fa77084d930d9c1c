"""Tests for engine configuration and database overrides."""

from src.database.setup import DatabaseSetup
from src.rune_game.config import EngineConfig
from src.rune_game.game_engine import GameEngine


class TestConfigRows:
    """Test the key/value representation."""

    def test_defaults(self):
        config = EngineConfig()
        assert config.max_energy == 5
        assert config.energy_regen_interval.total_seconds() == 600
        assert config.fusion_cost == 50
        assert config.release_refunds['legendary'] == 100

    def test_rows_flatten_tables(self):
        rows = EngineConfig().to_config_rows()
        assert rows['fusion_cost'] == '50'
        assert rows['release_refunds.epic'] == '40'
        assert rows['tie_margin'] == '5.0'

    def test_rows_round_trip(self):
        config = EngineConfig(max_energy=7, tie_margin=2.5)
        config.release_refunds['common'] = 9
        assert EngineConfig.from_config_rows(config.to_config_rows()) == config

    def test_bad_and_unknown_values_are_ignored(self):
        config = EngineConfig.from_config_rows({
            'max_energy': 'lots',
            'release_refunds.rare': 'x',
            'no_such_key': '1',
            'fusion_cost': '80',
        })
        assert config.max_energy == 5
        assert config.release_refunds['rare'] == 15
        assert config.fusion_cost == 80


class TestDatabaseConfig:
    """Test overrides from the config table."""

    def test_seeded_defaults_load_back(self, db):
        assert EngineConfig.from_database(db) == EngineConfig()

    def test_override_changes_engine(self, db, profile, seeded_rng, give_runes, now):
        setup = DatabaseSetup(db)
        setup.set_config('fusion_cost', '75')
        assert setup.get_config('fusion_cost') == '75'

        engine = GameEngine(profile, config=EngineConfig.from_database(db), rng=seeded_rng, clock=lambda: now)
        a, b = give_runes(engine, {'species_id': 1}, {'species_id': 1})
        assert engine.fuse(a, b) is None

        engine.profile.sage = 75
        assert engine.fuse(a, b) is not None
        assert engine.profile.sage == 0

    def test_initialize_keeps_existing_overrides(self, db):
        setup = DatabaseSetup(db)
        setup.set_config('max_energy', '9')
        setup.initialize_database()
        assert EngineConfig.from_database(db).max_energy == 9
