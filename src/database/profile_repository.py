"""
Profile Repository
Saves and loads player profiles to the relational tables
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from .connection import DatabaseManager
from .models import PlayerProfile, OwnedRune, RuneStats, DailyChallenge

logger = logging.getLogger(__name__)


def _to_text(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _from_text(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class ProfileRepository:
    """Persists the durable part of a player's game state"""

    def __init__(self, db: DatabaseManager):
        self.db = db

    def save_profile(self, user_id: int, profile: PlayerProfile):
        """Replace everything stored for a user in one transaction"""
        statements = [(query, (user_id,)) for query in (
            'DELETE FROM players WHERE user_id = ?',
            'DELETE FROM player_runes WHERE user_id = ?',
            'DELETE FROM player_dex WHERE user_id = ?',
            'DELETE FROM daily_challenges WHERE user_id = ?',
            'DELETE FROM boss_clears WHERE user_id = ?',
        )]

        statements.append((
            '''INSERT INTO players (user_id, username, sage, energy, last_energy_regen, boss_energy,
                                    last_boss_reset, wins, losses, last_daily_reset, daily_streak,
                                    streak_reward_claimed)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)''',
            (user_id, profile.username, profile.sage, profile.energy, _to_text(profile.last_energy_regen),
             profile.boss_energy, _to_text(profile.last_boss_reset), profile.wins, profile.losses,
             _to_text(profile.last_daily_reset), profile.daily_streak, profile.streak_reward_claimed)
        ))

        for position, rune in enumerate(profile.owned_runes):
            statements.append((
                '''INSERT INTO player_runes (user_id, rune_id, species_id, rarity, power, guard, speed,
                                             wins, variant, caught_at, position, nickname)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)''',
                (user_id, rune.rune_id, rune.species_id, rune.rarity, rune.stats.power, rune.stats.guard,
                 rune.stats.speed, rune.wins, rune.variant, _to_text(rune.caught_at), position, rune.nickname)
            ))

        for species_id in sorted(profile.seen_species | profile.caught_species):
            statements.append((
                'INSERT INTO player_dex (user_id, species_id, caught) VALUES (?, ?, ?)',
                (user_id, species_id, species_id in profile.caught_species)
            ))

        for position, challenge in enumerate(profile.daily_challenges):
            statements.append((
                '''INSERT INTO daily_challenges (user_id, challenge_id, position, challenge_type, description,
                                                 target, reward, current, element, completed, claimed)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)''',
                (user_id, challenge.challenge_id, position, challenge.challenge_type, challenge.description,
                 challenge.target, challenge.reward, challenge.current, challenge.element,
                 challenge.completed, challenge.claimed)
            ))

        for boss_id in sorted(profile.bosses_defeated):
            statements.append(('INSERT INTO boss_clears (user_id, boss_id) VALUES (?, ?)', (user_id, boss_id)))

        self.db.execute_transaction(statements)
        logger.debug("[DATABASE] Saved profile for %s", user_id)

    def load_profile(self, user_id: int) -> Optional[PlayerProfile]:
        """Load a stored profile, None if the user has never played; database errors propagate"""
        rows = self.db.fetch_all(
            '''SELECT username, sage, energy, last_energy_regen, boss_energy, last_boss_reset, wins, losses,
                      last_daily_reset, daily_streak, streak_reward_claimed
               FROM players WHERE user_id = ?''', (user_id,))
        if not rows:
            return None
        row = rows[0]

        profile = PlayerProfile(
            username=row[0],
            sage=row[1],
            energy=row[2],
            last_energy_regen=_from_text(row[3]),
            boss_energy=row[4],
            last_boss_reset=_from_text(row[5]),
            wins=row[6],
            losses=row[7],
            last_daily_reset=_from_text(row[8]),
            daily_streak=row[9],
            streak_reward_claimed=bool(row[10]),
        )

        for rune_row in self.db.fetch_all(
                '''SELECT rune_id, species_id, rarity, power, guard, speed, wins, variant, caught_at, nickname
                   FROM player_runes WHERE user_id = ? ORDER BY position''', (user_id,)):
            profile.owned_runes.append(OwnedRune(
                rune_id=rune_row[0],
                species_id=rune_row[1],
                rarity=rune_row[2],
                stats=RuneStats(rune_row[3], rune_row[4], rune_row[5]),
                wins=rune_row[6],
                variant=rune_row[7],
                caught_at=_from_text(rune_row[8]),
                nickname=rune_row[9],
            ))

        for species_id, caught in self.db.fetch_all(
                'SELECT species_id, caught FROM player_dex WHERE user_id = ?', (user_id,)):
            profile.seen_species.add(species_id)
            if caught:
                profile.caught_species.add(species_id)

        for challenge_row in self.db.fetch_all(
                '''SELECT challenge_id, challenge_type, description, target, reward, current, element,
                          completed, claimed
                   FROM daily_challenges WHERE user_id = ? ORDER BY position''', (user_id,)):
            profile.daily_challenges.append(DailyChallenge(
                challenge_id=challenge_row[0],
                challenge_type=challenge_row[1],
                description=challenge_row[2],
                target=challenge_row[3],
                reward=challenge_row[4],
                current=challenge_row[5],
                element=challenge_row[6],
                completed=bool(challenge_row[7]),
                claimed=bool(challenge_row[8]),
            ))

        for (boss_id,) in self.db.fetch_all('SELECT boss_id FROM boss_clears WHERE user_id = ?', (user_id,)):
            profile.bosses_defeated.add(boss_id)

        return profile

    def delete_profile(self, user_id: int):
        """Remove every row stored for a user"""
        self.db.execute_transaction([(query, (user_id,)) for query in (
            'DELETE FROM players WHERE user_id = ?',
            'DELETE FROM player_runes WHERE user_id = ?',
            'DELETE FROM player_dex WHERE user_id = ?',
            'DELETE FROM daily_challenges WHERE user_id = ?',
            'DELETE FROM boss_clears WHERE user_id = ?',
        )])
        logger.info("[DATABASE] Deleted profile for %s", user_id)

    def list_leaderboard(self, limit: int = 10) -> List[Tuple[int, str, int, int, int]]:
        """Top players by battle wins: (user_id, username, wins, losses, sage)"""
        return self.db.fetch_all(
            '''SELECT user_id, username, wins, losses, sage FROM players
               ORDER BY wins DESC, sage DESC, user_id LIMIT ?''', (limit,))
