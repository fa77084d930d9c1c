"""Tests for the daily boss encounter."""

from datetime import date, timedelta

import pytest

from src.rune_game.boss_library import BOSSES, generate_boss_team, get_boss, get_todays_boss
from src.rune_game.rune_library import CatalogError, rune_library


def _win_setup(engine, give_runes, make_rune, now):
    encounter = engine.start_boss_fight(give_runes(engine, 100, 100, 100), now)
    encounter.enemy_team = [make_rune(power=1, rune_id=f"boss_{i}") for i in range(3)]
    return encounter


class TestBossLibrary:
    """Test boss rotation and teams."""

    @pytest.mark.parametrize('day,boss_id', [
        (date(2026, 3, 2), 'boss_fire'),
        (date(2026, 3, 3), 'boss_water'),
        (date(2026, 3, 4), 'boss_earth'),
        (date(2026, 3, 5), 'boss_air'),
        (date(2026, 3, 6), 'boss_light'),
        (date(2026, 3, 7), 'boss_void'),
        (date(2026, 3, 8), 'boss_arcane'),
    ])
    def test_boss_rotates_by_weekday(self, day, boss_id):
        assert get_todays_boss(day).boss_id == boss_id

    def test_unknown_boss_is_a_catalog_error(self):
        with pytest.raises(CatalogError):
            get_boss('boss_missing')

    def test_team_is_the_same_all_day(self):
        boss = get_boss('boss_earth')
        first = generate_boss_team(boss, date(2026, 3, 4), rune_library)
        second = generate_boss_team(boss, date(2026, 3, 4), rune_library)
        assert first == second

    def test_team_is_legendary_with_multiplied_stats(self):
        boss = get_boss('boss_fire')
        team = generate_boss_team(boss, date(2026, 3, 2), rune_library)

        assert [rune.species_id for rune in team] == [3, 3, 2]
        assert all(rune.rarity == 'legendary' for rune in team)
        # Inferno's legendary power roll is pinned at the cap
        assert team[0].stats.power == 150

    def test_every_boss_species_exists(self):
        for boss in BOSSES:
            for species_id in boss.species_ids:
                assert rune_library.get_species(species_id).element == boss.element


class TestBossFight:
    """Test boss energy, payouts and rewards."""

    def test_start_consumes_boss_energy(self, engine, give_runes, now):
        team = give_runes(engine, 50, 50, 50)
        encounter = engine.start_boss_fight(team, now)

        assert encounter.boss.boss_id == 'boss_fire'
        assert engine.profile.boss_energy == 0
        assert len(encounter.enemy_team) == 3

    def test_no_boss_energy_rejects(self, engine, give_runes, now):
        engine.profile.boss_energy = 0
        assert engine.start_boss_fight(give_runes(engine, 50, 50, 50), now) is None

    def test_bad_team_keeps_boss_energy(self, engine, give_runes, now):
        a, b = give_runes(engine, 50, 50)
        assert engine.start_boss_fight([a, b, b], now) is None
        assert engine.profile.boss_energy == 1

    def test_first_clear_pays_bonus_and_mints_reward(self, steady_engine, give_runes, make_rune, now):
        _win_setup(steady_engine, give_runes, make_rune, now)
        steady_engine.resolve_boss_fight(now)
        result = steady_engine.complete_boss_fight(now)

        assert result['won'] is True
        assert result['first_clear'] is True
        assert result['sage'] == 150 + 50
        assert steady_engine.profile.sage == 300
        assert 'boss_fire' in steady_engine.profile.bosses_defeated

        reward = result['reward_rune']
        assert reward.species_id == 3
        assert reward.rarity in ('rare', 'epic', 'legendary')
        assert reward.variant in ('normal', 'shiny')
        assert steady_engine.collection.has_rune(reward.rune_id)
        assert 3 in steady_engine.profile.caught_species

    def test_repeat_clear_has_no_bonus(self, steady_engine, give_runes, make_rune, now):
        steady_engine.profile.bosses_defeated.add('boss_fire')
        _win_setup(steady_engine, give_runes, make_rune, now)
        steady_engine.resolve_boss_fight(now)
        result = steady_engine.complete_boss_fight(now)

        assert result['first_clear'] is False
        assert result['sage'] == 150

    def test_bonus_sage_boss(self, steady_engine, give_runes, make_rune, now):
        tuesday = now + timedelta(days=1)
        _win_setup(steady_engine, give_runes, make_rune, tuesday)
        steady_engine.resolve_boss_fight(tuesday)
        result = steady_engine.complete_boss_fight(tuesday)
        assert result['sage'] == 200 + 50 + 50

    def test_arcane_boss_guarantees_legendary(self, steady_engine, give_runes, make_rune, now):
        sunday = now + timedelta(days=6)
        _win_setup(steady_engine, give_runes, make_rune, sunday)
        steady_engine.resolve_boss_fight(sunday)
        result = steady_engine.complete_boss_fight(sunday)

        assert result['reward_rune'].species_id == 21
        assert result['reward_rune'].rarity == 'legendary'

    def test_loss_pays_consolation(self, steady_engine, give_runes, now):
        steady_engine.start_boss_fight(give_runes(steady_engine, 10, 10, 10), now)
        steady_engine.resolve_boss_fight(now)
        result = steady_engine.complete_boss_fight(now)

        assert result['won'] is False
        assert result['sage'] == 20
        assert steady_engine.profile.sage == 120
        assert steady_engine.profile.bosses_defeated == set()
        assert steady_engine.profile.losses == 0

    def test_complete_requires_resolution(self, engine, give_runes, now):
        engine.start_boss_fight(give_runes(engine, 50, 50, 50), now)
        assert engine.complete_boss_fight(now) is None

    def test_cancel_does_not_refund(self, engine, give_runes, now):
        engine.start_boss_fight(give_runes(engine, 50, 50, 50), now)
        assert engine.cancel_boss_fight(now) is True
        assert engine.profile.boss_energy == 0
        assert engine.bosses.active_encounter is None

    def test_rollover_discards_boss_fight(self, engine, give_runes, now):
        engine.start_boss_fight(give_runes(engine, 50, 50, 50), now)
        engine.start_encounter(now + timedelta(days=1))

        assert engine.bosses.active_encounter is None
        assert engine.profile.boss_energy == 1
