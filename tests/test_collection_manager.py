"""Tests for owned runes and the dex."""

import pytest

from src.rune_game.rune_library import CatalogError


class TestCollection:
    """Test adding, releasing and tracking runes."""

    def test_create_rune_does_not_add_it(self, engine, now):
        rune = engine.collection.create_rune(1, 'rare', now)
        assert rune.rune_id.startswith('rune_')
        assert rune.caught_at == now
        assert not engine.collection.has_rune(rune.rune_id)

    def test_add_marks_species_caught_and_seen(self, engine, now):
        rune = engine.collection.create_rune(4, 'common', now)
        assert engine.collection.add_rune(rune) is True
        assert 4 in engine.profile.caught_species
        assert engine.profile.caught_species <= engine.profile.seen_species

    def test_duplicate_ids_are_rejected(self, engine, make_rune):
        rune = make_rune(rune_id='rune_dup')
        assert engine.collection.add_rune(rune) is True
        assert engine.collection.add_rune(make_rune(rune_id='rune_dup')) is False
        assert len(engine.profile.owned_runes) == 1

    def test_unknown_species_is_a_catalog_error(self, engine, make_rune):
        with pytest.raises(CatalogError):
            engine.collection.add_rune(make_rune(species_id=77))

    def test_generated_ids_are_unique(self, engine, now):
        ids = set()
        for _ in range(50):
            rune = engine.collection.create_rune(1, 'common', now)
            engine.collection.add_rune(rune)
            ids.add(rune.rune_id)
        assert len(ids) == 50

    @pytest.mark.parametrize('rarity,refund', [('common', 5), ('rare', 15), ('epic', 40), ('legendary', 100)])
    def test_release_refunds_by_rarity(self, engine, make_rune, rarity, refund):
        rune = make_rune(rarity=rarity)
        engine.collection.add_rune(rune)

        assert engine.release_rune(rune.rune_id) == refund
        assert engine.profile.sage == 100 + refund
        assert engine.profile.owned_runes == []

    def test_release_keeps_dex_entries(self, engine, make_rune):
        rune = make_rune(species_id=7)
        engine.collection.add_rune(rune)
        engine.release_rune(rune.rune_id)
        assert 7 in engine.profile.caught_species

    def test_release_unknown_id_changes_nothing(self, engine, give_runes):
        give_runes(engine, 50)
        assert engine.release_rune('rune_missing') == 0
        assert engine.profile.sage == 100
        assert len(engine.profile.owned_runes) == 1

    def test_record_win_skips_runes_no_longer_owned(self, engine, give_runes):
        kept, released = give_runes(engine, 50, 60)
        engine.collection.remove_rune(released)

        engine.collection.record_win([kept, released])
        assert engine.collection.get_rune(kept).wins == 1

    def test_stats_and_sorting(self, engine, give_runes):
        give_runes(engine, {'power': 30}, {'power': 90}, {'power': 60, 'rarity': 'epic'},
                   {'species_id': 1, 'power': 40})

        stats = engine.collection.get_collection_stats()
        assert stats['total_runes'] == 4
        assert stats['unique_species'] == 2
        assert stats['rare_runes'] == 1
        assert stats['total_species'] == 21

        powers = [rune.stats.power for rune in engine.collection.get_sorted_runes()]
        assert powers == [60, 90, 40, 30]
        assert engine.collection.get_rarity_breakdown() == {'common': 3, 'epic': 1}
