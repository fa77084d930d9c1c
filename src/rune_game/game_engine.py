"""
Game Engine
Owns one player profile and routes every player action through the game systems
"""
import logging
import random
from datetime import datetime
from typing import Callable, Dict, Any, List, Optional, Sequence

from ..database.models import PlayerProfile, OwnedRune
from .battle_system import BattleSystem, BattleSession
from .boss_library import Boss
from .boss_system import BossSystem, BossEncounter
from .collection_manager import CollectionManager
from .config import EngineConfig
from .daily_challenges import DailyChallenges, generate_daily_challenges
from .encounter_system import EncounterSystem, EncounterCard
from .fusion_system import FusionSystem
from .resource_ledger import ResourceLedger
from .rune_library import RuneLibrary, Species, rune_library

logger = logging.getLogger(__name__)


class GameEngine:
    """Single entry point for one player's game state"""

    def __init__(self, profile: PlayerProfile, config: Optional[EngineConfig] = None,
                 rng: Optional[random.Random] = None, clock: Callable[[], datetime] = datetime.now,
                 library: RuneLibrary = rune_library):
        self.profile = profile
        self.config = config or EngineConfig()
        self.rng = rng or random.Random()
        self.clock = clock
        self.library = library

        self.ledger = ResourceLedger(profile, self.config)
        self.daily = DailyChallenges(profile, self.ledger, self.config, self.rng)
        self.collection = CollectionManager(profile, self.ledger, library, self.config, self.rng)
        self.encounters = EncounterSystem(profile, self.ledger, self.collection, self.daily,
                                          library, self.config, self.rng)
        self.fusion = FusionSystem(self.ledger, self.collection, library, self.config, self.rng)
        self.battles = BattleSystem(profile, self.ledger, self.collection, self.daily,
                                    library, self.config, self.rng)
        self.bosses = BossSystem(profile, self.ledger, self.collection, self.daily,
                                 library, self.config, self.rng)

    @staticmethod
    def new_profile(username: str, now: datetime, rng: Optional[random.Random] = None,
                    config: Optional[EngineConfig] = None) -> PlayerProfile:
        """Fresh profile with stamped timers and today's challenges"""
        config = config or EngineConfig()
        return PlayerProfile(
            username=username,
            energy=config.max_energy,
            last_energy_regen=now,
            boss_energy=config.max_boss_energy,
            last_boss_reset=now,
            daily_challenges=generate_daily_challenges(rng or random.Random()),
            last_daily_reset=now,
        )

    def _begin(self, now: Optional[datetime]) -> datetime:
        """Resolve the action time and run the day rollover before anything else"""
        now = now or self.clock()
        if self.daily.check_daily_reset(now):
            # Yesterday's boss fight does not carry into a new day
            self.bosses.cancel_boss_fight()
        return now

    def refresh(self, now: Optional[datetime] = None) -> datetime:
        """Apply the day rollover and energy regeneration"""
        now = self._begin(now)
        self.ledger.reconcile_energy(now)
        return now

    def check_daily_reset(self, now: Optional[datetime] = None) -> bool:
        now = now or self.clock()
        rolled_over = self.daily.check_daily_reset(now)
        if rolled_over:
            self.bosses.cancel_boss_fight()
        return rolled_over

    # Encounters

    def start_encounter(self, now: Optional[datetime] = None) -> Optional[List[EncounterCard]]:
        now = self._begin(now)
        return self.encounters.start_encounter(now)

    def select_candidate(self, card: EncounterCard, now: Optional[datetime] = None) -> bool:
        self._begin(now)
        return self.encounters.select_candidate(card)

    def resolve_catch(self, success: bool, score: Optional[float] = None,
                      now: Optional[datetime] = None) -> Optional[OwnedRune]:
        now = self._begin(now)
        return self.encounters.resolve_catch(success, score, now)

    def clear_encounter(self, now: Optional[datetime] = None):
        self._begin(now)
        self.encounters.clear_encounter()

    # Collection

    def release_rune(self, rune_id: str, now: Optional[datetime] = None) -> int:
        self._begin(now)
        return self.collection.release_rune(rune_id)

    def fusion_candidates(self, rune_a_id: str, rune_b_id: str) -> List[Species]:
        return self.fusion.fusion_candidates(rune_a_id, rune_b_id)

    def fuse(self, rune_a_id: str, rune_b_id: str, now: Optional[datetime] = None) -> Optional[OwnedRune]:
        now = self._begin(now)
        return self.fusion.fuse(rune_a_id, rune_b_id, now)

    # Battles

    def start_battle(self, team_ids: Sequence[str], now: Optional[datetime] = None) -> Optional[BattleSession]:
        now = self._begin(now)
        return self.battles.start_battle(team_ids, now)

    def reveal_battle(self, now: Optional[datetime] = None) -> bool:
        self._begin(now)
        return self.battles.reveal_battle()

    def resolve_battle(self, now: Optional[datetime] = None) -> Optional[BattleSession]:
        now = self._begin(now)
        return self.battles.resolve_battle(now)

    def end_battle(self, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
        now = self._begin(now)
        return self.battles.end_battle(now)

    def cancel_battle(self, now: Optional[datetime] = None) -> bool:
        self._begin(now)
        return self.battles.cancel_battle()

    # Bosses

    def get_todays_boss(self, now: Optional[datetime] = None) -> Boss:
        return self.bosses.get_todays_boss(now or self.clock())

    def start_boss_fight(self, team_ids: Sequence[str], now: Optional[datetime] = None) -> Optional[BossEncounter]:
        now = self._begin(now)
        return self.bosses.start_boss_fight(team_ids, now)

    def resolve_boss_fight(self, now: Optional[datetime] = None) -> Optional[BossEncounter]:
        now = self._begin(now)
        return self.bosses.resolve_boss_fight(now)

    def complete_boss_fight(self, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
        now = self._begin(now)
        return self.bosses.complete_boss_fight(now)

    def cancel_boss_fight(self, now: Optional[datetime] = None) -> bool:
        self._begin(now)
        return self.bosses.cancel_boss_fight()

    # Daily challenges

    def claim_challenge_reward(self, challenge_id: str, now: Optional[datetime] = None) -> int:
        self._begin(now)
        return self.daily.claim_challenge_reward(challenge_id)

    def claim_all_challenge_rewards(self, now: Optional[datetime] = None) -> int:
        self._begin(now)
        return self.daily.claim_all_challenge_rewards()

    def claim_streak_reward(self, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
        self._begin(now)
        return self.daily.claim_streak_reward()

    # Snapshots

    def get_profile_snapshot(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Read-only profile summary, energy projected to now; call refresh() to apply the rollover"""
        now = now or self.clock()
        profile = self.profile
        next_energy = self.ledger.time_until_next_energy(now)

        return {
            'username': profile.username,
            'sage': profile.sage,
            'energy': self.ledger.projected_energy(now),
            'max_energy': self.config.max_energy,
            'next_energy_in': next_energy,
            'boss_energy': profile.boss_energy,
            'wins': profile.wins,
            'losses': profile.losses,
            'daily_streak': profile.daily_streak,
            'bosses_defeated': sorted(profile.bosses_defeated),
            'collection': self.collection.get_collection_stats(),
        }

    def get_collection_snapshot(self) -> List[Dict[str, Any]]:
        """Owned runes with their species, best first"""
        snapshot = []
        for rune in self.collection.get_sorted_runes():
            species = self.library.get_species(rune.species_id)
            snapshot.append({
                'rune_id': rune.rune_id,
                'species_id': species.species_id,
                'name': rune.nickname or species.name,
                'element': species.element,
                'rarity': rune.rarity,
                'variant': rune.variant,
                'power': rune.stats.power,
                'guard': rune.stats.guard,
                'speed': rune.stats.speed,
                'wins': rune.wins,
            })
        return snapshot

    def get_challenges_snapshot(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or self.clock()
        return {
            'challenges': [
                {
                    'challenge_id': c.challenge_id,
                    'type': c.challenge_type,
                    'description': c.description,
                    'current': c.current,
                    'target': c.target,
                    'reward': c.reward,
                    'completed': c.completed,
                    'claimed': c.claimed,
                }
                for c in self.profile.daily_challenges
            ],
            'all_completed': self.daily.all_challenges_completed(),
            'unclaimed_rewards': self.daily.get_unclaimed_rewards(),
            'daily_streak': self.profile.daily_streak,
            'streak_reward_claimed': self.profile.streak_reward_claimed,
            'next_milestone': self.daily.get_next_streak_milestone(),
            'resets_in': self.daily.time_until_daily_reset(now),
        }

    def get_active_session_snapshot(self) -> Optional[Dict[str, Any]]:
        """Whichever ephemeral session is live, or None"""
        if self.bosses.active_encounter is not None:
            return {'kind': 'boss', **self.bosses.active_encounter.to_dict()}
        if self.battles.active_session is not None:
            return {'kind': 'battle', **self.battles.active_session.to_dict()}
        if self.encounters.catching_card is not None:
            card = self.encounters.catching_card
            return {'kind': 'catch', 'species_id': card.species_id, 'catch_difficulty': card.catch_difficulty}
        if self.encounters.current_encounters:
            return {
                'kind': 'encounter',
                'cards': [{'species_id': c.species_id, 'catch_difficulty': c.catch_difficulty}
                          for c in self.encounters.current_encounters],
            }
        return None

    def get_dex_snapshot(self) -> List[Dict[str, Any]]:
        """Every species with its seen/caught status"""
        return [
            {
                'species_id': species.species_id,
                'name': species.name,
                'element': species.element,
                'seen': species.species_id in self.profile.seen_species,
                'caught': species.species_id in self.profile.caught_species,
            }
            for species in self.library.get_all_species()
        ]
