"""
Collection Manager
Handles owned runes and the seen/caught dex
"""
import logging
import random
import uuid
from datetime import datetime
from typing import List, Dict, Iterable, Optional

from ..database.models import PlayerProfile, OwnedRune
from .config import EngineConfig
from .resource_ledger import ResourceLedger
from .rune_library import RuneLibrary

logger = logging.getLogger(__name__)


class CollectionManager:
    """The only writer of a profile's runes and dex sets"""

    def __init__(self, profile: PlayerProfile, ledger: ResourceLedger, library: RuneLibrary,
                 config: EngineConfig, rng: random.Random):
        self.profile = profile
        self.ledger = ledger
        self.library = library
        self.config = config
        self.rng = rng

    def get_rune(self, rune_id: str) -> Optional[OwnedRune]:
        """Get an owned rune by instance ID"""
        for rune in self.profile.owned_runes:
            if rune.rune_id == rune_id:
                return rune
        return None

    def has_rune(self, rune_id: str) -> bool:
        return self.get_rune(rune_id) is not None

    def mark_seen(self, species_ids: Iterable[int]):
        self.profile.seen_species.update(species_ids)

    def mark_caught(self, species_id: int):
        """Record a species as caught, which implies seen"""
        self.profile.seen_species.add(species_id)
        self.profile.caught_species.add(species_id)

    def new_rune_id(self) -> str:
        """Fresh instance ID that is not used in the collection"""
        while True:
            rune_id = f"rune_{uuid.UUID(int=self.rng.getrandbits(128), version=4).hex[:12]}"
            if not self.has_rune(rune_id):
                return rune_id

    def create_rune(self, species_id: int, rarity: str, now: Optional[datetime] = None,
                    variant: str = 'normal') -> OwnedRune:
        """Roll a new rune instance without adding it to the collection"""
        species = self.library.get_species(species_id)
        return OwnedRune(
            rune_id=self.new_rune_id(),
            species_id=species.species_id,
            rarity=rarity,
            stats=self.library.roll_stats(species, rarity, self.rng),
            variant=variant,
            caught_at=now,
        )

    def add_rune(self, rune: OwnedRune) -> bool:
        """Append a rune and mark its species caught, rejecting duplicate IDs"""
        if self.has_rune(rune.rune_id):
            logger.warning("[COLLECTION] Refusing duplicate rune id %s", rune.rune_id)
            return False

        self.library.get_species(rune.species_id)
        self.profile.owned_runes.append(rune)
        self.mark_caught(rune.species_id)
        return True

    def remove_rune(self, rune_id: str) -> Optional[OwnedRune]:
        """Remove a rune from the collection and return it"""
        rune = self.get_rune(rune_id)
        if rune is None:
            return None
        self.profile.owned_runes = [r for r in self.profile.owned_runes if r.rune_id != rune_id]
        return rune

    def release_rune(self, rune_id: str) -> int:
        """Release a rune for a rarity-scaled sage refund, returns the refund"""
        rune = self.remove_rune(rune_id)
        if rune is None:
            return 0

        refund = self.config.release_refunds.get(rune.rarity, 0)
        self.ledger.credit_sage(refund)
        logger.info("[COLLECTION] Released %s (%s) for %s sage", rune.rune_id, rune.rarity, refund)
        return refund

    def record_win(self, rune_ids: Iterable[str]):
        """Increment the win counter of each listed rune still in the collection"""
        for rune_id in rune_ids:
            rune = self.get_rune(rune_id)
            if rune is not None:
                rune.wins += 1

    def get_collection_stats(self) -> Dict[str, int]:
        """Get collection statistics"""
        runes = self.profile.owned_runes
        return {
            'total_runes': len(runes),
            'unique_species': len({rune.species_id for rune in runes}),
            'rare_runes': sum(1 for rune in runes if rune.rarity in ['rare', 'epic', 'legendary']),
            'seen_species': len(self.profile.seen_species),
            'caught_species': len(self.profile.caught_species),
            'total_species': len(self.library.get_all_species()),
        }

    def get_rarity_breakdown(self) -> Dict[str, int]:
        """Get breakdown of runes by rarity"""
        rarity_counts = {}
        for rune in self.profile.owned_runes:
            rarity_counts[rune.rarity] = rarity_counts.get(rune.rarity, 0) + 1
        return rarity_counts

    def get_sorted_runes(self) -> List[OwnedRune]:
        """Runes ordered by rarity (highest first), then power"""
        order = {rarity: index for index, rarity in enumerate(self.library.rarities)}
        return sorted(self.profile.owned_runes,
                      key=lambda rune: (-order.get(rune.rarity, 0), -rune.stats.power))
