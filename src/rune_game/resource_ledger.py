"""
Resource Ledger
Handles the sage balance, encounter energy regeneration and boss energy
"""
import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple

from ..database.models import PlayerProfile
from .config import EngineConfig

logger = logging.getLogger(__name__)


class ResourceLedger:
    """Owns every mutation of sage, energy and boss energy on a profile"""

    def __init__(self, profile: PlayerProfile, config: EngineConfig):
        self.profile = profile
        self.config = config

    # Sage

    def credit_sage(self, amount: int) -> int:
        """Add sage and return the new balance"""
        if amount < 0:
            raise ValueError(f"Cannot credit a negative amount: {amount}")
        self.profile.sage += amount
        return self.profile.sage

    def debit_sage(self, amount: int) -> bool:
        """Remove sage only if the whole amount is available"""
        if amount < 0 or self.profile.sage < amount:
            return False
        self.profile.sage -= amount
        return True

    # Encounter energy

    def reconcile_energy(self, now: datetime) -> int:
        """Apply whole regen intervals elapsed since the checkpoint, returns units gained"""
        profile = self.profile
        interval = self.config.energy_regen_interval

        if profile.last_energy_regen is None or profile.energy >= self.config.max_energy:
            # Nothing banks while full, the timer starts on the next spend
            profile.last_energy_regen = now
            return 0

        elapsed = now - profile.last_energy_regen
        if elapsed < timedelta(0):
            # Clock went backwards, restart the interval from now
            profile.last_energy_regen = now
            return 0

        units = elapsed // interval
        if units <= 0:
            return 0

        gained = min(units, self.config.max_energy - profile.energy)
        profile.energy += gained
        profile.last_energy_regen += interval * units

        if profile.energy >= self.config.max_energy:
            profile.last_energy_regen = now

        logger.debug("[LEDGER] Regenerated %s energy (%s intervals elapsed)", gained, units)
        return gained

    def spend_energy(self, now: datetime) -> bool:
        """Spend one energy after reconciling regeneration"""
        self.reconcile_energy(now)

        if self.profile.energy <= 0:
            return False

        self.profile.energy -= 1
        return True

    def grant_energy(self, amount: int) -> int:
        """Add bonus energy up to the cap, returns the amount actually added"""
        added = max(0, min(amount, self.config.max_energy - self.profile.energy))
        self.profile.energy += added
        return added

    def _pending_intervals(self, now: datetime) -> Tuple[int, timedelta]:
        """Whole intervals banked since the checkpoint and the time into the current one"""
        checkpoint = self.profile.last_energy_regen
        if checkpoint is None or now <= checkpoint:
            return 0, timedelta(0)

        elapsed = now - checkpoint
        interval = self.config.energy_regen_interval
        return elapsed // interval, elapsed % interval

    def projected_energy(self, now: datetime) -> int:
        """Energy the player would have at now, without touching the profile"""
        if self.profile.energy >= self.config.max_energy:
            return self.profile.energy
        units, _ = self._pending_intervals(now)
        return min(self.profile.energy + units, self.config.max_energy)

    def time_until_next_energy(self, now: datetime) -> Optional[timedelta]:
        """Time left until the next energy unit, None when energy is full; read-only"""
        if self.projected_energy(now) >= self.config.max_energy:
            return None

        _, into_interval = self._pending_intervals(now)
        return self.config.energy_regen_interval - into_interval

    # Boss energy

    def has_boss_energy(self) -> bool:
        return self.profile.boss_energy > 0

    def spend_boss_energy(self) -> bool:
        """Spend the daily boss energy unit"""
        if self.profile.boss_energy <= 0:
            return False
        self.profile.boss_energy -= 1
        return True

    def refill_boss_energy(self, now: datetime):
        """Reset boss energy to its cap, called on day rollover"""
        self.profile.boss_energy = self.config.max_boss_energy
        self.profile.last_boss_reset = now
