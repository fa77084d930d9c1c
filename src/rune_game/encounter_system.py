"""
Encounter System
Turns energy into encounter cards and catch outcomes into new runes
"""
import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from ..database.models import PlayerProfile, OwnedRune
from .collection_manager import CollectionManager
from .config import EngineConfig
from .daily_challenges import DailyChallenges
from .resource_ledger import ResourceLedger
from .rune_library import RuneLibrary

logger = logging.getLogger(__name__)

CARDS_PER_ENCOUNTER = 3


@dataclass(frozen=True)
class EncounterCard:
    """A wild rune offered in an encounter"""
    species_id: int
    catch_difficulty: float  # 0-1, lower is easier


class EncounterSystem:
    """Manages the encounter batch and the catch loop"""

    def __init__(self, profile: PlayerProfile, ledger: ResourceLedger, collection: CollectionManager,
                 daily: DailyChallenges, library: RuneLibrary, config: EngineConfig, rng: random.Random):
        self.profile = profile
        self.ledger = ledger
        self.collection = collection
        self.daily = daily
        self.library = library
        self.config = config
        self.rng = rng

        self.current_encounters: Optional[List[EncounterCard]] = None
        self.catching_card: Optional[EncounterCard] = None

    def start_encounter(self, now: datetime) -> Optional[List[EncounterCard]]:
        """Spend one energy and draw three wild runes"""
        if not self.ledger.spend_energy(now):
            return None

        base_species = self.library.get_base_species()
        evolved_species = self.library.get_evolved_species()

        encounters = []
        for _ in range(CARDS_PER_ENCOUNTER):
            # Weighted towards base forms, evolved forms are rarer and harder
            if self.rng.random() < self.config.base_form_chance:
                species = self.rng.choice(base_species)
                difficulty = self.config.base_catch_difficulty
            else:
                species = self.rng.choice(evolved_species)
                difficulty = self.config.evolved_catch_difficulty
            encounters.append(EncounterCard(species.species_id, difficulty))

        self.collection.mark_seen(card.species_id for card in encounters)
        self.current_encounters = encounters
        self.catching_card = None

        logger.info("[ENCOUNTER] Drew species %s", [card.species_id for card in encounters])
        return list(encounters)

    def select_candidate(self, card: EncounterCard) -> bool:
        """Choose which of the three cards to attempt, discarding the rest"""
        if not self.current_encounters or card not in self.current_encounters:
            return False

        self.catching_card = card
        self.current_encounters = None
        return True

    def resolve_catch(self, success: bool, score: Optional[float] = None,
                      now: Optional[datetime] = None) -> Optional[OwnedRune]:
        """Apply a minigame outcome to the selected card"""
        card = self.catching_card
        if card is None:
            return None

        # Every attempt counts as a played minigame
        self.catching_card = None
        self.daily.update_challenge_progress('minigame', 1)
        if score is not None and score >= self.config.perfect_score:
            self.daily.update_challenge_progress('perfect', 1)

        if not success:
            logger.info("[ENCOUNTER] Species %s escaped", card.species_id)
            return None

        species = self.library.get_species(card.species_id)
        rarity = self.library.roll_rarity(self.rng)
        rune = self.collection.create_rune(species.species_id, rarity, now)
        self.collection.add_rune(rune)

        self.daily.update_challenge_progress('catch', 1)
        self.daily.update_challenge_progress('element', 1, species.element)

        logger.info("[ENCOUNTER] Caught %s %s (%s)", rarity, species.name, rune.rune_id)
        return rune

    def clear_encounter(self):
        """Abandon the current encounter, the energy is not refunded"""
        self.current_encounters = None
        self.catching_card = None
