"""Tests for the rune catalog and element wheel."""

import random

import pytest

from src.rune_game.rune_library import CatalogError, RuneLibrary


@pytest.fixture
def library():
    return RuneLibrary()


class TestCatalog:
    """Test species lookups."""

    def test_twenty_one_species_three_per_element(self, library):
        assert len(library.get_all_species()) == 21
        for element in library.elements:
            assert len(library.get_species_by_element(element)) == 3

    def test_base_and_evolved_pools_split_the_catalog(self, library):
        base = library.get_base_species()
        evolved = library.get_evolved_species()
        assert len(base) == 7
        assert len(evolved) == 14
        assert all(species.evolves_from is None for species in base)

    def test_unknown_species_raises_catalog_error(self, library):
        with pytest.raises(CatalogError):
            library.get_species(999)

    def test_lookup_by_name_is_case_insensitive(self, library):
        assert library.get_species_by_name('inferno').species_id == 3
        assert library.get_species_by_name('nothing') is None

    def test_final_form_ends_the_chain(self, library):
        assert library.get_final_form('fire').name == 'Inferno'
        assert library.get_final_form('arcane').name == 'Relic'


class TestElementWheel:
    """Test the advantage multipliers."""

    @pytest.mark.parametrize('attacker,defender', [
        ('fire', 'air'), ('air', 'earth'), ('earth', 'water'), ('water', 'fire'),
        ('light', 'void'), ('void', 'light'),
    ])
    def test_advantage(self, library, attacker, defender):
        assert library.get_element_multiplier(attacker, defender) == 1.25

    def test_disadvantage_defaults_to_neutral(self, library):
        assert library.get_element_multiplier('air', 'fire') == 1.0

    def test_disadvantage_is_configurable(self, library):
        assert library.get_element_multiplier('air', 'fire', disadvantage=0.8) == 0.8

    def test_arcane_is_neutral(self, library):
        for element in library.elements:
            assert library.get_element_multiplier('arcane', element) == 1.0
            assert library.get_element_multiplier(element, 'arcane') == 1.0


class TestRolls:
    """Test stat and rarity rolls."""

    def test_rarity_bonus_shifts_range_and_caps_at_100(self, library):
        relic = library.get_species(21)
        assert library.get_stat_range(relic, 'power', 'common') == (75, 95)
        assert library.get_stat_range(relic, 'power', 'rare') == (85, 100)
        assert library.get_stat_range(relic, 'power', 'legendary') == (100, 100)

    def test_rolled_stats_fall_in_range(self, library):
        rng = random.Random(3)
        for species in library.get_all_species():
            for rarity in library.rarities:
                stats = library.roll_stats(species, rarity, rng)
                for stat in ('power', 'guard', 'speed'):
                    low, high = library.get_stat_range(species, stat, rarity)
                    assert low <= getattr(stats, stat) <= high

    def test_roll_rarity_respects_weights(self, library):
        rng = random.Random(5)
        assert {library.roll_rarity(rng, {'epic': 100}) for _ in range(20)} == {'epic'}

    def test_catch_drop_rates(self, library):
        assert library.get_drop_rates() == {'common': 60, 'rare': 25, 'epic': 12, 'legendary': 3}

    def test_roll_rarity_distribution_is_plausible(self, library):
        rng = random.Random(11)
        rolls = [library.roll_rarity(rng) for _ in range(5000)]
        assert 0.55 < rolls.count('common') / len(rolls) < 0.65
        assert rolls.count('legendary') < rolls.count('epic') < rolls.count('rare')
