"""
Boss System
Handles the once-a-day boss fight and its rewards
"""
import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any, Optional, Sequence

from ..database.models import PlayerProfile
from .battle_system import BattleSession, BattlePhase, pick_team, resolve_rounds
from .boss_library import Boss, BOSS_REWARD_RARITY_WEIGHTS, get_todays_boss, generate_boss_team
from .collection_manager import CollectionManager
from .config import EngineConfig
from .daily_challenges import DailyChallenges
from .resource_ledger import ResourceLedger
from .rune_library import RuneLibrary

logger = logging.getLogger(__name__)


@dataclass
class BossEncounter(BattleSession):
    """A battle session against the boss of the day"""
    boss: Optional[Boss] = None

    def to_dict(self) -> Dict[str, Any]:
        state = super().to_dict()
        state['boss_id'] = self.boss.boss_id if self.boss else None
        state['boss_name'] = self.boss.name if self.boss else None
        return state


class BossSystem:
    """Manages boss energy spending, boss battles and boss rewards"""

    def __init__(self, profile: PlayerProfile, ledger: ResourceLedger, collection: CollectionManager,
                 daily: DailyChallenges, library: RuneLibrary, config: EngineConfig, rng: random.Random):
        self.profile = profile
        self.ledger = ledger
        self.collection = collection
        self.daily = daily
        self.library = library
        self.config = config
        self.rng = rng

        self.active_encounter: Optional[BossEncounter] = None

    def get_todays_boss(self, now: datetime) -> Boss:
        return get_todays_boss(now.date())

    def is_first_clear(self, boss: Boss) -> bool:
        return boss.boss_id not in self.profile.bosses_defeated

    def start_boss_fight(self, team_ids: Sequence[str], now: datetime) -> Optional[BossEncounter]:
        """Spend the boss energy and face today's boss with three owned runes"""
        if self.active_encounter is not None:
            return None

        team = pick_team(self.collection, team_ids)
        if team is None:
            logger.info("[BOSS] Rejected team %s", list(team_ids))
            return None

        if not self.ledger.spend_boss_energy():
            return None

        boss = self.get_todays_boss(now)
        self.active_encounter = BossEncounter(
            player_team=team,
            enemy_team=generate_boss_team(boss, now.date(), self.library),
            started_at=now,
            boss=boss,
        )
        logger.info("[BOSS] Fight started against %s", boss.name)
        return self.active_encounter

    def resolve_boss_fight(self, now: datetime) -> Optional[BossEncounter]:
        """Play the three rounds against the boss team"""
        encounter = self.active_encounter
        if encounter is None or encounter.phase == BattlePhase.RESOLVED:
            return None

        encounter.rounds = resolve_rounds(encounter.player_team, encounter.enemy_team,
                                          self.library, self.config, self.rng)
        encounter.phase = BattlePhase.RESOLVED
        encounter.resolved_at = now
        return encounter

    def complete_boss_fight(self, now: datetime) -> Optional[Dict[str, Any]]:
        """Pay out a resolved boss fight and discard it"""
        encounter = self.active_encounter
        if encounter is None or encounter.phase != BattlePhase.RESOLVED:
            return None

        self.active_encounter = None
        boss = encounter.boss

        if not encounter.player_won:
            self.ledger.credit_sage(self.config.boss_loss_sage)
            logger.info("[BOSS] Lost to %s", boss.name)
            return {'won': False, 'sage': self.config.boss_loss_sage, 'first_clear': False,
                    'reward_rune': None, 'boss_id': boss.boss_id}

        first_clear = self.is_first_clear(boss)
        sage = boss.reward_sage + boss.bonus_sage
        if first_clear:
            sage += self.config.boss_first_clear_bonus

        self.ledger.credit_sage(sage)
        reward_rune = self.generate_boss_reward(boss, now)
        self.collection.add_rune(reward_rune)
        self.profile.bosses_defeated.add(boss.boss_id)
        self.daily.update_challenge_progress('battle', 1)

        logger.info("[BOSS] Defeated %s (first clear: %s)", boss.name, first_clear)
        return {'won': True, 'sage': sage, 'first_clear': first_clear,
                'reward_rune': reward_rune, 'boss_id': boss.boss_id}

    def generate_boss_reward(self, boss: Boss, now: datetime):
        """Mint the reward rune: the boss element's final form"""
        species = self.library.get_final_form(boss.element)
        rarity = boss.guaranteed_rarity or self.library.roll_rarity(self.rng, BOSS_REWARD_RARITY_WEIGHTS)
        variant = boss.variant if self.rng.random() * 100 < boss.variant_chance else 'normal'
        return self.collection.create_rune(species.species_id, rarity, now, variant=variant)

    def cancel_boss_fight(self) -> bool:
        """Discard the boss fight, the boss energy is not refunded"""
        if self.active_encounter is None:
            return False
        self.active_encounter = None
        return True
