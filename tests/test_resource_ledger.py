"""Tests for sage and energy bookkeeping."""

from datetime import timedelta

import pytest

from src.database.models import PlayerProfile
from src.rune_game.config import EngineConfig
from src.rune_game.resource_ledger import ResourceLedger


@pytest.fixture
def ledger(now):
    profile = PlayerProfile(energy=5, last_energy_regen=now)
    return ResourceLedger(profile, EngineConfig())


class TestSage:
    """Test sage credits and debits."""

    def test_credit_returns_new_balance(self, ledger):
        assert ledger.credit_sage(25) == 125

    def test_negative_credit_is_an_error(self, ledger):
        with pytest.raises(ValueError):
            ledger.credit_sage(-1)

    def test_debit_requires_full_amount(self, ledger):
        assert ledger.debit_sage(101) is False
        assert ledger.profile.sage == 100
        assert ledger.debit_sage(100) is True
        assert ledger.profile.sage == 0


class TestEnergy:
    """Test energy regeneration."""

    def test_whole_intervals_regenerate_and_remainder_is_kept(self, ledger, now):
        ledger.profile.energy = 2
        ledger.profile.last_energy_regen = now - timedelta(minutes=25)

        assert ledger.reconcile_energy(now) == 2
        assert ledger.profile.energy == 4
        assert ledger.profile.last_energy_regen == now - timedelta(minutes=5)

    def test_regeneration_is_not_applied_twice(self, ledger, now):
        ledger.profile.energy = 1
        ledger.profile.last_energy_regen = now - timedelta(minutes=15)

        ledger.reconcile_energy(now)
        assert ledger.reconcile_energy(now) == 0
        assert ledger.profile.energy == 2

    def test_regeneration_caps_and_rebases(self, ledger, now):
        ledger.profile.energy = 4
        ledger.profile.last_energy_regen = now - timedelta(hours=3)

        assert ledger.reconcile_energy(now) == 1
        assert ledger.profile.energy == 5
        assert ledger.profile.last_energy_regen == now

    def test_full_energy_does_not_bank_time(self, ledger, now):
        later = now + timedelta(hours=2)
        ledger.reconcile_energy(later)
        assert ledger.profile.last_energy_regen == later

        ledger.spend_energy(later)
        ledger.reconcile_energy(later + timedelta(minutes=9))
        assert ledger.profile.energy == 4

    def test_missing_checkpoint_is_stamped(self, ledger, now):
        ledger.profile.energy = 0
        ledger.profile.last_energy_regen = None

        assert ledger.reconcile_energy(now) == 0
        assert ledger.profile.last_energy_regen == now

    def test_clock_going_backwards_regenerates_nothing(self, ledger, now):
        earlier = now - timedelta(hours=1)
        ledger.profile.energy = 0
        assert ledger.reconcile_energy(earlier) == 0
        assert ledger.profile.energy == 0
        assert ledger.profile.last_energy_regen == earlier
        assert ledger.time_until_next_energy(earlier) == timedelta(minutes=10)

    def test_countdown_never_exceeds_one_interval(self, ledger, now):
        ledger.profile.energy = 0
        assert ledger.time_until_next_energy(now - timedelta(hours=1)) == timedelta(minutes=10)

    def test_spend_fails_when_empty(self, ledger, now):
        ledger.profile.energy = 0
        assert ledger.spend_energy(now) is False
        assert ledger.profile.energy == 0

    def test_spend_reconciles_first(self, ledger, now):
        ledger.profile.energy = 0
        ledger.profile.last_energy_regen = now - timedelta(minutes=10)
        assert ledger.spend_energy(now) is True
        assert ledger.profile.energy == 0

    def test_grant_energy_clamps_to_cap(self, ledger):
        ledger.profile.energy = 4
        assert ledger.grant_energy(3) == 1
        assert ledger.profile.energy == 5

    def test_time_until_next_energy(self, ledger, now):
        assert ledger.time_until_next_energy(now) is None

        ledger.profile.energy = 3
        ledger.profile.last_energy_regen = now - timedelta(minutes=4)
        assert ledger.time_until_next_energy(now) == timedelta(minutes=6)

    def test_countdown_does_not_touch_the_profile(self, ledger, now):
        checkpoint = now - timedelta(minutes=24)
        ledger.profile.energy = 2
        ledger.profile.last_energy_regen = checkpoint

        assert ledger.projected_energy(now) == 4
        assert ledger.time_until_next_energy(now) == timedelta(minutes=6)
        assert ledger.profile.energy == 2
        assert ledger.profile.last_energy_regen == checkpoint

    def test_countdown_is_none_once_projected_full(self, ledger, now):
        ledger.profile.energy = 4
        ledger.profile.last_energy_regen = now - timedelta(minutes=12)

        assert ledger.projected_energy(now) == 5
        assert ledger.time_until_next_energy(now) is None
        assert ledger.profile.energy == 4


class TestBossEnergy:
    """Test the daily boss energy unit."""

    def test_spend_once_then_refill(self, ledger, now):
        assert ledger.spend_boss_energy() is True
        assert ledger.spend_boss_energy() is False
        assert ledger.has_boss_energy() is False

        ledger.refill_boss_energy(now)
        assert ledger.profile.boss_energy == 1
        assert ledger.profile.last_boss_reset == now
