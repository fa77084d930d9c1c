"""
Battle System
Handles 3v3 rune battles against generated opponents
"""
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any, List, Optional, Sequence

from ..database.models import PlayerProfile, OwnedRune, RuneStats
from .collection_manager import CollectionManager
from .config import EngineConfig
from .daily_challenges import DailyChallenges
from .resource_ledger import ResourceLedger
from .rune_library import RuneLibrary

logger = logging.getLogger(__name__)

TEAM_SIZE = 3


class BattlePhase(Enum):
    """Battle phase enumeration"""
    SELECTING = "selecting"
    REVEALED = "revealed"
    RESOLVED = "resolved"


@dataclass
class RoundResult:
    """Outcome of one paired round"""
    round_number: int
    player_rune_id: str
    enemy_rune_id: str
    player_power: float
    enemy_power: float
    winner: str  # 'player', 'enemy' or 'tie'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'round': self.round_number,
            'player_rune_id': self.player_rune_id,
            'enemy_rune_id': self.enemy_rune_id,
            'player_power': round(self.player_power, 1),
            'enemy_power': round(self.enemy_power, 1),
            'winner': self.winner,
        }


@dataclass
class BattleSession:
    """An ephemeral battle, never persisted"""
    player_team: List[OwnedRune]
    enemy_team: List[OwnedRune]
    started_at: datetime
    phase: BattlePhase = BattlePhase.SELECTING
    rounds: List[RoundResult] = field(default_factory=list)
    resolved_at: Optional[datetime] = None

    @property
    def player_round_wins(self) -> int:
        return sum(1 for r in self.rounds if r.winner == 'player')

    @property
    def enemy_round_wins(self) -> int:
        return sum(1 for r in self.rounds if r.winner == 'enemy')

    @property
    def player_won(self) -> bool:
        """A win needs strictly more round wins than the opponent"""
        return self.phase == BattlePhase.RESOLVED and self.player_round_wins > self.enemy_round_wins

    def to_dict(self) -> Dict[str, Any]:
        """Get the current battle state"""
        return {
            'phase': self.phase.value,
            'player_team': [_rune_state(rune) for rune in self.player_team],
            'enemy_team': [_rune_state(rune) for rune in self.enemy_team],
            'rounds': [r.to_dict() for r in self.rounds],
            'player_round_wins': self.player_round_wins,
            'enemy_round_wins': self.enemy_round_wins,
            'player_won': self.player_won,
            'started_at': self.started_at.isoformat(),
            'resolved_at': self.resolved_at.isoformat() if self.resolved_at else None,
        }


def _rune_state(rune: OwnedRune) -> Dict[str, Any]:
    return {
        'rune_id': rune.rune_id,
        'species_id': rune.species_id,
        'rarity': rune.rarity,
        'power': rune.stats.power,
        'guard': rune.stats.guard,
        'speed': rune.stats.speed,
        'variant': rune.variant,
    }


def resolve_rounds(player_team: Sequence[OwnedRune], enemy_team: Sequence[OwnedRune],
                   library: RuneLibrary, config: EngineConfig, rng: random.Random) -> List[RoundResult]:
    """Play the paired rounds: element-adjusted power, jittered, compared with a tie margin"""
    rounds = []
    for index, (player_rune, enemy_rune) in enumerate(zip(player_team, enemy_team), start=1):
        player_element = library.get_species(player_rune.species_id).element
        enemy_element = library.get_species(enemy_rune.species_id).element

        player_power = player_rune.stats.power * library.get_element_multiplier(
            player_element, enemy_element, config.disadvantage_multiplier, config.advantage_multiplier)
        enemy_power = enemy_rune.stats.power * library.get_element_multiplier(
            enemy_element, player_element, config.disadvantage_multiplier, config.advantage_multiplier)

        player_power *= rng.uniform(config.jitter_min, config.jitter_max)
        enemy_power *= rng.uniform(config.jitter_min, config.jitter_max)

        if abs(player_power - enemy_power) < config.tie_margin:
            winner = 'tie'
        elif player_power > enemy_power:
            winner = 'player'
        else:
            winner = 'enemy'

        rounds.append(RoundResult(index, player_rune.rune_id, enemy_rune.rune_id,
                                  player_power, enemy_power, winner))
    return rounds


def pick_team(collection: CollectionManager, team_ids: Sequence[str]) -> Optional[List[OwnedRune]]:
    """Exactly three distinct owned runes, in order, or None"""
    if len(team_ids) != TEAM_SIZE or len(set(team_ids)) != TEAM_SIZE:
        return None

    team = [collection.get_rune(rune_id) for rune_id in team_ids]
    if any(rune is None for rune in team):
        return None
    return team


class BattleSystem:
    """Manages the player's active battle"""

    def __init__(self, profile: PlayerProfile, ledger: ResourceLedger, collection: CollectionManager,
                 daily: DailyChallenges, library: RuneLibrary, config: EngineConfig, rng: random.Random):
        self.profile = profile
        self.ledger = ledger
        self.collection = collection
        self.daily = daily
        self.library = library
        self.config = config
        self.rng = rng

        self.active_session: Optional[BattleSession] = None

    def start_battle(self, team_ids: Sequence[str], now: datetime) -> Optional[BattleSession]:
        """Start a battle with three owned runes against a generated team"""
        if self.active_session is not None:
            return None

        team = pick_team(self.collection, team_ids)
        if team is None:
            logger.info("[BATTLE] Rejected team %s", list(team_ids))
            return None

        self.active_session = BattleSession(
            player_team=team,
            enemy_team=self.generate_opponent_team(team),
            started_at=now,
        )
        return self.active_session

    def generate_opponent_team(self, player_team: Sequence[OwnedRune]) -> List[OwnedRune]:
        """Three random runes with power pulled part way towards the player's average"""
        average_power = sum(rune.stats.power for rune in player_team) / len(player_team)
        blend = self.config.opponent_power_blend
        all_species = self.library.get_all_species()

        enemies = []
        for index in range(TEAM_SIZE):
            species = self.rng.choice(all_species)
            rarity = self.library.roll_rarity(self.rng)
            stats = self.library.roll_stats(species, rarity, self.rng)

            power = stats.power + blend * (average_power - stats.power)
            enemies.append(OwnedRune(
                rune_id=f"enemy_{index}",
                species_id=species.species_id,
                rarity=rarity,
                stats=RuneStats(max(1, int(power)), stats.guard, stats.speed),
            ))
        return enemies

    def reveal_battle(self) -> bool:
        """Show the opponent team before resolving"""
        session = self.active_session
        if session is None or session.phase != BattlePhase.SELECTING:
            return False
        session.phase = BattlePhase.REVEALED
        return True

    def resolve_battle(self, now: datetime) -> Optional[BattleSession]:
        """Play all three rounds"""
        session = self.active_session
        if session is None or session.phase == BattlePhase.RESOLVED:
            return None

        session.rounds = resolve_rounds(session.player_team, session.enemy_team,
                                        self.library, self.config, self.rng)
        session.phase = BattlePhase.RESOLVED
        session.resolved_at = now

        logger.info("[BATTLE] Resolved %s-%s", session.player_round_wins, session.enemy_round_wins)
        return session

    def end_battle(self, now: datetime) -> Optional[Dict[str, Any]]:
        """Pay out a resolved battle and discard the session"""
        session = self.active_session
        if session is None or session.phase != BattlePhase.RESOLVED:
            return None

        self.active_session = None

        if session.player_won:
            sage = self.config.battle_win_sage
            self.profile.wins += 1
            self.collection.record_win(rune.rune_id for rune in session.player_team)
            self.daily.update_challenge_progress('battle', 1)
        else:
            sage = self.config.battle_loss_sage
            self.profile.losses += 1
        self.ledger.credit_sage(sage)

        return {
            'won': session.player_won,
            'sage': sage,
            'player_round_wins': session.player_round_wins,
            'enemy_round_wins': session.enemy_round_wins,
            'rounds': [r.to_dict() for r in session.rounds],
        }

    def cancel_battle(self) -> bool:
        """Discard an unresolved battle with no reward"""
        session = self.active_session
        if session is None or session.phase == BattlePhase.RESOLVED:
            return False
        self.active_session = None
        return True
