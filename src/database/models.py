"""
Database Models
Data classes representing the persisted player state
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Set


@dataclass(frozen=True)
class RuneStats:
    """Stats rolled once when a rune is created"""
    power: int
    guard: int
    speed: int


@dataclass
class OwnedRune:
    """A rune instance in a player's collection"""
    rune_id: str
    species_id: int
    rarity: str
    stats: RuneStats
    wins: int = 0
    variant: str = 'normal'
    caught_at: Optional[datetime] = None
    nickname: Optional[str] = None


@dataclass
class DailyChallenge:
    """One of the three live daily challenges"""
    challenge_id: str
    challenge_type: str
    description: str
    target: int
    reward: int
    current: int = 0
    element: Optional[str] = None
    completed: bool = False
    claimed: bool = False


@dataclass
class PlayerProfile:
    """Everything about a player that survives a restart"""
    username: str = 'Seeker'
    sage: int = 100

    # Encounter energy
    energy: int = 5
    last_energy_regen: Optional[datetime] = None

    # Boss encounters
    boss_energy: int = 1
    last_boss_reset: Optional[datetime] = None
    bosses_defeated: Set[str] = field(default_factory=set)

    # Battle record
    wins: int = 0
    losses: int = 0

    # Daily cycle
    daily_challenges: List[DailyChallenge] = field(default_factory=list)
    last_daily_reset: Optional[datetime] = None
    daily_streak: int = 0
    streak_reward_claimed: bool = False

    # Collection
    owned_runes: List[OwnedRune] = field(default_factory=list)
    seen_species: Set[int] = field(default_factory=set)
    caught_species: Set[int] = field(default_factory=set)
