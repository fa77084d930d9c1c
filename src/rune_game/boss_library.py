"""
Boss Library
The seven elemental bosses that rotate by weekday
"""
import random
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Tuple

from ..database.models import OwnedRune, RuneStats
from .rune_library import RuneLibrary, CatalogError


@dataclass(frozen=True)
class Boss:
    """Static definition of a boss"""
    boss_id: str
    name: str
    title: str
    element: str
    species_ids: Tuple[int, int, int]
    stat_multiplier: float
    reward_sage: int
    variant_chance: int  # percent
    variant: str
    description: str
    bonus_sage: int = 0
    guaranteed_rarity: Optional[str] = None


BOSSES: List[Boss] = [
    Boss('boss_fire', 'Inferno Rex', 'The Burning King', 'fire', (3, 3, 2), 1.5,
         150, 25, 'shiny', 'The flames of rage incarnate. His power grows with each blow.'),
    Boss('boss_water', 'Tsunami Lord', 'The Tidal Emperor', 'water', (6, 6, 5), 1.5,
         200, 15, 'shiny', 'The depths bow to his command. His waves ignore all defenses.',
         bonus_sage=50),
    Boss('boss_earth', 'Mountain King', 'The Immovable', 'earth', (9, 9, 8), 1.5,
         150, 30, 'corrupted', 'An ancient fortress given form. Break through his walls if you can.'),
    Boss('boss_air', 'Tempest Queen', 'The Storm Sovereign', 'air', (12, 12, 11), 1.5,
         150, 20, 'shiny', 'Chaos rides on every wind. Her speed defies prediction.'),
    Boss('boss_light', 'Solar Warden', 'The Radiant Judge', 'light', (15, 15, 14), 1.5,
         150, 25, 'purified', 'Divine light that sears the darkness. His judgment is absolute.'),
    Boss('boss_void', 'Abyss Herald', 'The Endless Dark', 'void', (18, 18, 17), 1.5,
         150, 35, 'corrupted', 'From the void, he drains all hope. What he touches fades to nothing.'),
    # Sunday boss is the hardest
    Boss('boss_arcane', 'The Primordial', 'Ancient One', 'arcane', (21, 21, 20), 1.75,
         250, 20, 'shiny', 'Before elements, there was only raw power. Face the origin itself.',
         guaranteed_rarity='legendary'),
]

# date.weekday(): Monday is 0
DAY_TO_BOSS: Dict[int, str] = {
    0: 'boss_fire',
    1: 'boss_water',
    2: 'boss_earth',
    3: 'boss_air',
    4: 'boss_light',
    5: 'boss_void',
    6: 'boss_arcane',
}

# Reward rarity roll when the boss does not guarantee one
BOSS_REWARD_RARITY_WEIGHTS = {'legendary': 10, 'epic': 25, 'rare': 65}


def get_boss(boss_id: str) -> Boss:
    """Get a boss by ID, raising CatalogError if it does not exist"""
    for boss in BOSSES:
        if boss.boss_id == boss_id:
            return boss
    raise CatalogError(f"Unknown boss: {boss_id}")


def get_todays_boss(day: date) -> Boss:
    """The boss for a calendar day"""
    return get_boss(DAY_TO_BOSS[day.weekday()])


def generate_boss_team(boss: Boss, day: date, library: RuneLibrary) -> List[OwnedRune]:
    """Legendary boss runes with multiplied stats, identical for every call on the same day"""
    rng = random.Random(f"{boss.boss_id}:{day.isoformat()}")

    team = []
    for index, species_id in enumerate(boss.species_ids):
        species = library.get_species(species_id)
        stats = library.roll_stats(species, 'legendary', rng)
        team.append(OwnedRune(
            rune_id=f"boss_rune_{boss.boss_id}_{index}",
            species_id=species_id,
            rarity='legendary',
            stats=RuneStats(
                power=int(stats.power * boss.stat_multiplier),
                guard=int(stats.guard * boss.stat_multiplier),
                speed=int(stats.speed * boss.stat_multiplier),
            ),
        ))
    return team
