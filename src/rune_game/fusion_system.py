"""
Fusion System
Combines two owned runes into a new one for a sage fee
"""
import logging
import random
from datetime import datetime
from typing import List, Optional

from .collection_manager import CollectionManager
from .config import EngineConfig
from .resource_ledger import ResourceLedger
from .rune_library import RuneLibrary, Species
from ..database.models import OwnedRune

logger = logging.getLogger(__name__)


class FusionSystem:
    """Handles rune fusion"""

    def __init__(self, ledger: ResourceLedger, collection: CollectionManager, library: RuneLibrary,
                 config: EngineConfig, rng: random.Random):
        self.ledger = ledger
        self.collection = collection
        self.library = library
        self.config = config
        self.rng = rng

    def fusion_candidates(self, rune_a_id: str, rune_b_id: str) -> List[Species]:
        """Species a fusion of the two runes can produce, empty if the pair is invalid"""
        if rune_a_id == rune_b_id:
            return []

        rune_a = self.collection.get_rune(rune_a_id)
        rune_b = self.collection.get_rune(rune_b_id)
        if rune_a is None or rune_b is None:
            return []

        species_a = self.library.get_species(rune_a.species_id)
        species_b = self.library.get_species(rune_b.species_id)

        # Same species evolves into its successor
        if species_a.species_id == species_b.species_id and species_a.evolves_to is not None:
            return [self.library.get_species(species_a.evolves_to)]

        # Same element stays within the element
        if species_a.element == species_b.element:
            return self.library.get_species_by_element(species_a.element)

        # Mixed elements can land on either element or arcane
        candidates = []
        for element in (species_a.element, species_b.element, 'arcane'):
            for species in self.library.get_species_by_element(element):
                if species not in candidates:
                    candidates.append(species)
        return candidates

    def fuse(self, rune_a_id: str, rune_b_id: str, now: Optional[datetime] = None) -> Optional[OwnedRune]:
        """Consume two runes and the fusion fee to create a new rune"""
        candidates = self.fusion_candidates(rune_a_id, rune_b_id)
        if not candidates:
            logger.info("[FUSION] Rejected fusion of %s and %s", rune_a_id, rune_b_id)
            return None

        if not self.ledger.debit_sage(self.config.fusion_cost):
            return None

        species = self.rng.choice(candidates)
        rarity = self.library.roll_rarity(self.rng, self.config.fusion_rarity_weights)

        self.collection.remove_rune(rune_a_id)
        self.collection.remove_rune(rune_b_id)

        rune = self.collection.create_rune(species.species_id, rarity, now)
        self.collection.add_rune(rune)

        logger.info("[FUSION] Fused %s + %s into %s %s", rune_a_id, rune_b_id, rarity, species.name)
        return rune
