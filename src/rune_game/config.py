"""
Engine Configuration
Economy and battle tunables, with overrides from the database config table
"""
import logging
from dataclasses import dataclass, field, fields
from datetime import timedelta
from typing import Dict, Any

logger = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    """Tunable numbers for the economy and battle engine"""

    # Energy
    max_energy: int = 5
    energy_regen_minutes: int = 10
    max_boss_energy: int = 1

    # Encounters
    base_form_chance: float = 0.7
    base_catch_difficulty: float = 0.4
    evolved_catch_difficulty: float = 0.6
    perfect_score: int = 85

    # Collection
    release_refunds: Dict[str, int] = field(default_factory=lambda: {
        'common': 5, 'rare': 15, 'epic': 40, 'legendary': 100,
    })

    # Fusion
    fusion_cost: int = 50
    fusion_rarity_weights: Dict[str, int] = field(default_factory=lambda: {
        'common': 40, 'rare': 30, 'epic': 30,
    })

    # Battles
    advantage_multiplier: float = 1.25
    disadvantage_multiplier: float = 1.0
    jitter_min: float = 0.9
    jitter_max: float = 1.1
    tie_margin: float = 5.0
    opponent_power_blend: float = 0.4
    battle_win_sage: int = 25
    battle_loss_sage: int = 5

    # Bosses
    boss_first_clear_bonus: int = 50
    boss_loss_sage: int = 20

    @property
    def energy_regen_interval(self) -> timedelta:
        return timedelta(minutes=self.energy_regen_minutes)

    def to_config_rows(self) -> Dict[str, str]:
        """Scalar settings as config table key/value strings"""
        rows = {}
        for config_field in fields(self):
            value = getattr(self, config_field.name)
            if isinstance(value, dict):
                for key, amount in value.items():
                    rows[f"{config_field.name}.{key}"] = str(amount)
            else:
                rows[config_field.name] = str(value)
        return rows

    @classmethod
    def from_config_rows(cls, rows: Dict[str, Any]) -> "EngineConfig":
        """Build a config from key/value strings, ignoring unknown or malformed keys"""
        config = cls()
        for config_field in fields(config):
            current = getattr(config, config_field.name)

            if isinstance(current, dict):
                for key in list(current):
                    raw = rows.get(f"{config_field.name}.{key}")
                    if raw is not None:
                        try:
                            current[key] = int(raw)
                        except (TypeError, ValueError):
                            logger.warning("[CONFIG] Ignoring bad value for %s.%s: %r", config_field.name, key, raw)
                continue

            raw = rows.get(config_field.name)
            if raw is None:
                continue
            try:
                setattr(config, config_field.name, type(current)(raw))
            except (TypeError, ValueError):
                logger.warning("[CONFIG] Ignoring bad value for %s: %r", config_field.name, raw)

        return config

    @classmethod
    def from_database(cls, db) -> "EngineConfig":
        """Load overrides from the config table of a DatabaseManager"""
        rows = {}
        for key, value in db.fetch_all('SELECT key, value FROM config'):
            rows[key] = value
        return cls.from_config_rows(rows)
