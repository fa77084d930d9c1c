"""
Daily Challenges
Handles day rollover, the three daily challenges and streak rewards
"""
import logging
import random
from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional, Set

from ..database.models import PlayerProfile, DailyChallenge
from .config import EngineConfig
from .resource_ledger import ResourceLedger

logger = logging.getLogger(__name__)

CHALLENGES_PER_DAY = 3

# Challenge templates for generation
CHALLENGE_TEMPLATES = [
    {
        'type': 'catch',
        'descriptions': ['Catch {n} rune', 'Catch {n} runes', 'Capture {n} wild runes'],
        'targets': [1, 2, 3],
        'rewards': [25, 40, 60],
    },
    {
        'type': 'battle',
        'descriptions': ['Win {n} battle', 'Win {n} battles', 'Achieve {n} victories'],
        'targets': [1, 2],
        'rewards': [35, 55],
    },
    {
        'type': 'minigame',
        'descriptions': ['Complete {n} mini-games', 'Play {n} mini-games', 'Finish {n} catch games'],
        'targets': [2, 3, 4],
        'rewards': [20, 30, 45],
    },
    {
        'type': 'element',
        'descriptions': ['Catch a {e} rune', 'Capture a wild {e} rune'],
        'targets': [1],
        'rewards': [35, 40],
        'elements': ['fire', 'water', 'earth', 'air', 'light', 'void'],
    },
    {
        'type': 'perfect',
        'descriptions': ['Score 85+ on a mini-game', 'Get a high score (85+)', 'Master a mini-game (85+)'],
        'targets': [1],
        'rewards': [50],
    },
]

# Streak milestone rewards, keyed by streak length
STREAK_REWARDS = {
    1: {'sage': 10, 'description': 'First step!'},
    3: {'sage': 50, 'energy': 2, 'description': '3-day streak!'},
    5: {'sage': 100, 'description': '5-day streak!'},
    7: {'sage': 250, 'energy': 3, 'description': 'Weekly champion!'},
}


def generate_challenge(rng: random.Random, used_types: Set[str]) -> DailyChallenge:
    """Generate one challenge, avoiding types already used today when possible"""
    available = [t for t in CHALLENGE_TEMPLATES if t['type'] not in used_types]
    if not available:
        available = CHALLENGE_TEMPLATES

    template = rng.choice(available)
    target_index = rng.randrange(len(template['targets']))
    target = template['targets'][target_index]
    reward = template['rewards'][min(target_index, len(template['rewards']) - 1)]

    description = rng.choice(template['descriptions']).replace('{n}', str(target))

    element = None
    if 'elements' in template:
        element = rng.choice(template['elements'])
        description = description.replace('{e}', element.title())

    used_types.add(template['type'])

    return DailyChallenge(
        challenge_id=f"challenge_{rng.getrandbits(32):08x}",
        challenge_type=template['type'],
        description=description,
        target=target,
        reward=reward,
        element=element,
    )


def generate_daily_challenges(rng: random.Random) -> List[DailyChallenge]:
    """Generate the three challenges for a day"""
    used_types = set()
    return [generate_challenge(rng, used_types) for _ in range(CHALLENGES_PER_DAY)]


def all_challenges_completed(challenges: List[DailyChallenge]) -> bool:
    return bool(challenges) and all(challenge.completed for challenge in challenges)


def get_streak_reward(streak: int) -> Optional[Dict[str, Any]]:
    """Milestone reward for reaching a streak length, if any"""
    reward = STREAK_REWARDS.get(streak)
    return dict(reward) if reward else None


class DailyChallenges:
    """Tracks the daily cycle: rollover, challenge progress and streaks"""

    def __init__(self, profile: PlayerProfile, ledger: ResourceLedger, config: EngineConfig,
                 rng: random.Random):
        self.profile = profile
        self.ledger = ledger
        self.config = config
        self.rng = rng

    def check_daily_reset(self, now: datetime) -> bool:
        """Run the day rollover if the calendar day changed, returns True if it ran"""
        profile = self.profile

        if profile.last_daily_reset is None:
            # First run, stamp the cycle without judging a previous day
            profile.last_daily_reset = now
            if profile.last_boss_reset is None:
                profile.last_boss_reset = now
            if not profile.daily_challenges:
                profile.daily_challenges = generate_daily_challenges(self.rng)
            return False

        if now.date() == profile.last_daily_reset.date():
            return False

        all_complete = all_challenges_completed(profile.daily_challenges)

        self.ledger.refill_boss_energy(now)
        profile.daily_challenges = generate_daily_challenges(self.rng)
        profile.last_daily_reset = now
        profile.daily_streak = profile.daily_streak + 1 if all_complete else 0
        profile.streak_reward_claimed = False

        logger.info("[DAILY] New day %s, streak now %s", now.date().isoformat(), profile.daily_streak)
        return True

    def update_challenge_progress(self, challenge_type: str, amount: int, element: Optional[str] = None):
        """Route a progress delta to every incomplete matching challenge"""
        for challenge in self.profile.daily_challenges:
            if challenge.completed or challenge.challenge_type != challenge_type:
                continue

            if challenge_type == 'element' and challenge.element != element:
                continue

            challenge.current = min(challenge.current + amount, challenge.target)
            challenge.completed = challenge.current >= challenge.target

            if challenge.completed:
                logger.info("[DAILY] Challenge completed: %s", challenge.description)

    def get_challenge(self, challenge_id: str) -> Optional[DailyChallenge]:
        for challenge in self.profile.daily_challenges:
            if challenge.challenge_id == challenge_id:
                return challenge
        return None

    def claim_challenge_reward(self, challenge_id: str) -> int:
        """Pay a completed, unclaimed challenge, returns the sage paid"""
        challenge = self.get_challenge(challenge_id)
        if not challenge or not challenge.completed or challenge.claimed:
            return 0

        challenge.claimed = True
        self.ledger.credit_sage(challenge.reward)
        return challenge.reward

    def claim_all_challenge_rewards(self) -> int:
        """Pay every completed, unclaimed challenge, returns the total sage paid"""
        total_reward = 0
        for challenge in self.profile.daily_challenges:
            if challenge.completed and not challenge.claimed:
                challenge.claimed = True
                total_reward += challenge.reward

        if total_reward > 0:
            self.ledger.credit_sage(total_reward)
        return total_reward

    def claim_streak_reward(self) -> Optional[Dict[str, Any]]:
        """Claim today's streak milestone once all challenges are complete"""
        profile = self.profile

        if profile.streak_reward_claimed:
            return None
        if not all_challenges_completed(profile.daily_challenges):
            return None

        # The streak itself only advances at the next rollover
        reward = get_streak_reward(profile.daily_streak + 1)
        if not reward:
            return None

        profile.streak_reward_claimed = True
        self.ledger.credit_sage(reward['sage'])
        if reward.get('energy'):
            reward['energy'] = self.ledger.grant_energy(reward['energy'])

        logger.info("[DAILY] Streak reward claimed: %s", reward['description'])
        return reward

    def all_challenges_completed(self) -> bool:
        return all_challenges_completed(self.profile.daily_challenges)

    def get_unclaimed_rewards(self) -> int:
        """Total sage waiting in completed, unclaimed challenges"""
        return sum(c.reward for c in self.profile.daily_challenges if c.completed and not c.claimed)

    def get_next_streak_milestone(self) -> Optional[int]:
        """Next milestone above the current streak"""
        for milestone in sorted(STREAK_REWARDS):
            if milestone > self.profile.daily_streak:
                return milestone
        return None

    @staticmethod
    def time_until_daily_reset(now: datetime) -> timedelta:
        """Time left until local midnight"""
        midnight = datetime.combine(now.date() + timedelta(days=1), datetime.min.time(), tzinfo=now.tzinfo)
        return midnight - now
