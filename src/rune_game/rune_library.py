"""
Rune Library
Contains all rune species definitions, elements and rarity tables
"""
import random
from dataclasses import dataclass
from typing import List, Dict, Any, Optional, Tuple

from ..database.models import RuneStats


class CatalogError(LookupError):
    """Raised when an ID has no catalog entry (data-integrity bug)"""


StatRange = Tuple[int, int]


@dataclass(frozen=True)
class Species:
    """Static template for a rune"""
    species_id: int
    name: str
    element: str
    trait: str
    trait_description: str
    signature: str
    power: StatRange
    guard: StatRange
    speed: StatRange
    evolves_from: Optional[int] = None
    evolves_to: Optional[int] = None

    @property
    def is_base_form(self) -> bool:
        return self.evolves_from is None


class RuneLibrary:
    """Manages the complete rune catalog and element mechanics"""

    STAT_CAP = 100

    def __init__(self):
        # Rune elements and their advantages
        self.elements = {
            'fire': {'beats': ['air'], 'color': 0xff4d4d, 'emoji': '🔥'},
            'water': {'beats': ['fire'], 'color': 0x4da6ff, 'emoji': '💧'},
            'earth': {'beats': ['water'], 'color': 0x8b6914, 'emoji': '🌍'},
            'air': {'beats': ['earth'], 'color': 0xb8d4e3, 'emoji': '💨'},
            'light': {'beats': ['void'], 'color': 0xffd700, 'emoji': '✨'},
            'void': {'beats': ['light'], 'color': 0x6b2d8b, 'emoji': '🌑'},
            'arcane': {'beats': [], 'color': 0x00ffaa, 'emoji': '⚡'},
        }

        # Rarity system, drop rates are percentages for a normal catch
        self.rarities = {
            'common': {'color': 0x9e9e9e, 'drop_rate': 60, 'stat_bonus': 0},
            'rare': {'color': 0x2196f3, 'drop_rate': 25, 'stat_bonus': 10},
            'epic': {'color': 0x9c27b0, 'drop_rate': 12, 'stat_bonus': 20},
            'legendary': {'color': 0xff9800, 'drop_rate': 3, 'stat_bonus': 30},
        }

        self._species = self._create_species_library()
        self._species_by_id = {species.species_id: species for species in self._species}

    def get_all_species(self) -> List[Species]:
        """Get all species in the catalog"""
        return list(self._species)

    def get_species(self, species_id: int) -> Species:
        """Get a species by ID, raising CatalogError if it does not exist"""
        species = self._species_by_id.get(species_id)
        if species is None:
            raise CatalogError(f"Unknown species: {species_id}")
        return species

    def get_species_by_name(self, name: str) -> Optional[Species]:
        """Get a species by name (case-insensitive)"""
        for species in self._species:
            if species.name.lower() == name.lower():
                return species
        return None

    def get_species_by_element(self, element: str) -> List[Species]:
        """Get all species of an element"""
        return [species for species in self._species if species.element == element]

    def get_base_species(self) -> List[Species]:
        return [species for species in self._species if species.is_base_form]

    def get_evolved_species(self) -> List[Species]:
        return [species for species in self._species if not species.is_base_form]

    def get_final_form(self, element: str) -> Species:
        """Get the last species in an element's evolution chain"""
        for species in self.get_species_by_element(element):
            if species.evolves_from is not None and species.evolves_to is None:
                return species
        raise CatalogError(f"No final form for element: {element}")

    def get_element_multiplier(self, attacker: str, defender: str, disadvantage: float = 1.0,
                               advantage: float = 1.25) -> float:
        """Damage multiplier for an attacking element against a defending element"""
        if defender in self.elements[attacker]['beats']:
            return advantage
        if attacker in self.elements[defender]['beats']:
            return disadvantage
        return 1.0

    def get_stat_range(self, species: Species, stat: str, rarity: str) -> StatRange:
        """Roll range for a stat at a rarity: base range shifted by the rarity bonus"""
        low, high = getattr(species, stat)
        bonus = self.rarities[rarity]['stat_bonus']
        return min(self.STAT_CAP, low + bonus), min(self.STAT_CAP, high + bonus)

    def roll_stats(self, species: Species, rarity: str, rng: random.Random) -> RuneStats:
        """Roll the three stats uniformly within the species+rarity ranges"""
        rolled = {}
        for stat in ('power', 'guard', 'speed'):
            low, high = self.get_stat_range(species, stat, rarity)
            rolled[stat] = rng.randint(low, high)
        return RuneStats(**rolled)

    def roll_rarity(self, rng: random.Random, weights: Optional[Dict[str, int]] = None) -> str:
        """Roll a rarity from a percentage table (catch drop rates by default)"""
        if weights is None:
            weights = self.get_drop_rates()

        roll = rng.random() * sum(weights.values())
        cumulative = 0
        for rarity, weight in weights.items():
            cumulative += weight
            if roll < cumulative:
                return rarity
        return next(iter(weights))

    def get_drop_rates(self) -> Dict[str, int]:
        """Get the catch drop rates"""
        return {rarity: info['drop_rate'] for rarity, info in self.rarities.items()}

    def describe_species(self, species: Species) -> Dict[str, Any]:
        """Plain dict view of a species for display"""
        return {
            'species_id': species.species_id,
            'name': species.name,
            'element': species.element,
            'emoji': self.elements[species.element]['emoji'],
            'trait': species.trait,
            'trait_description': species.trait_description,
            'signature': species.signature,
            'evolves_from': species.evolves_from,
            'evolves_to': species.evolves_to,
        }

    def _create_species_library(self) -> List[Species]:
        """Create the 21 runes, three per element"""
        return [
            # Fire (1-3)
            Species(1, 'Ember', 'fire', 'Quick Strike', 'First hit deals +20% damage', 'Ignite',
                    (35, 50), (20, 35), (40, 55), evolves_to=2),
            Species(2, 'Blaze', 'fire', 'Burning', 'Deals damage over 2 rounds', 'Wildfire',
                    (50, 70), (30, 45), (45, 60), evolves_from=1, evolves_to=3),
            Species(3, 'Inferno', 'fire', 'Rage', 'Power increases when losing', 'Pyroclasm',
                    (70, 90), (35, 50), (50, 65), evolves_from=2),

            # Water (4-6)
            Species(4, 'Droplet', 'water', 'Adaptive', 'Copies enemy element', 'Splash',
                    (30, 45), (35, 50), (35, 50), evolves_to=5),
            Species(5, 'Tide', 'water', 'Flow', 'Swaps position with ally', 'Wave',
                    (45, 65), (45, 60), (40, 55), evolves_from=4, evolves_to=6),
            Species(6, 'Tsunami', 'water', 'Overwhelming', 'Ignores 50% defense', 'Deluge',
                    (65, 85), (50, 70), (45, 60), evolves_from=5),

            # Earth (7-9)
            Species(7, 'Pebble', 'earth', 'Sturdy', 'Survives one KO hit with 1 HP', 'Tumble',
                    (25, 40), (45, 60), (25, 40), evolves_to=8),
            Species(8, 'Boulder', 'earth', 'Heavy', "Can't be swapped out", 'Crush',
                    (45, 60), (60, 75), (20, 35), evolves_from=7, evolves_to=9),
            Species(9, 'Mountain', 'earth', 'Fortress', '+50% defense, -20% speed', 'Earthquake',
                    (60, 80), (75, 95), (15, 30), evolves_from=8),

            # Air (10-12)
            Species(10, 'Breeze', 'air', 'Evasive', '20% chance to dodge attacks', 'Whisper',
                    (30, 45), (25, 40), (50, 65), evolves_to=11),
            Species(11, 'Gust', 'air', 'Swift', 'Always attacks first', 'Gale',
                    (40, 55), (30, 45), (65, 80), evolves_from=10, evolves_to=12),
            Species(12, 'Tempest', 'air', 'Chaos', 'Randomizes enemy turn order', 'Hurricane',
                    (55, 75), (35, 50), (75, 95), evolves_from=11),

            # Light (13-15)
            Species(13, 'Spark', 'light', 'Illuminate', "Reveals enemy's next pick", 'Flash',
                    (30, 45), (30, 45), (40, 55), evolves_to=14),
            Species(14, 'Radiant', 'light', 'Blessed', 'Heals 10% after each round', 'Beam',
                    (45, 60), (45, 60), (45, 60), evolves_from=13, evolves_to=15),
            Species(15, 'Solar', 'light', 'Judgment', 'Critical hits vs Void runes', 'Sunburst',
                    (65, 85), (55, 75), (50, 65), evolves_from=14),

            # Void (16-18)
            Species(16, 'Shadow', 'void', 'Stealth', 'Hidden until attacks', 'Fade',
                    (35, 50), (25, 40), (45, 60), evolves_to=17),
            Species(17, 'Null', 'void', 'Silence', "Disables enemy's trait", 'Negate',
                    (50, 65), (35, 50), (50, 65), evolves_from=16, evolves_to=18),
            Species(18, 'Abyss', 'void', 'Drain', 'Steals 15% of damage dealt', 'Consume',
                    (70, 90), (40, 55), (55, 70), evolves_from=17),

            # Arcane (19-21)
            Species(19, 'Glyph', 'arcane', 'Inscribed', 'Trait changes each battle', 'Scribe',
                    (35, 55), (35, 55), (35, 55), evolves_to=20),
            Species(20, 'Sigil', 'arcane', 'Sealed', 'Unlocks power after 10 wins', 'Bind',
                    (50, 70), (50, 70), (50, 70), evolves_from=19, evolves_to=21),
            Species(21, 'Relic', 'arcane', 'Ancient', 'Combines two random elements', 'Primordial',
                    (75, 95), (75, 95), (75, 95), evolves_from=20),
        ]


# Global rune library instance
rune_library = RuneLibrary()
