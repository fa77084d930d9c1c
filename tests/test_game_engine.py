"""Tests for the game engine entry points and snapshots."""

import copy
import random
from datetime import timedelta

from src.rune_game.config import EngineConfig
from src.rune_game.game_engine import GameEngine


class TestNewProfile:
    """Test fresh profiles."""

    def test_new_profile_is_stamped(self, now):
        profile = GameEngine.new_profile('Nova', now, random.Random(1))

        assert profile.username == 'Nova'
        assert profile.sage == 100
        assert profile.energy == 5
        assert profile.boss_energy == 1
        assert profile.last_energy_regen == profile.last_daily_reset == profile.last_boss_reset == now
        assert len(profile.daily_challenges) == 3
        assert profile.daily_streak == 0

    def test_new_profile_uses_config_caps(self, now):
        profile = GameEngine.new_profile('Nova', now, config=EngineConfig(max_energy=8))
        assert profile.energy == 8


class TestActions:
    """Test that actions run the daily cycle and use the injected clock."""

    def test_actions_default_to_the_clock(self, profile, now):
        ticks = [now + timedelta(days=1)]
        engine = GameEngine(profile, rng=random.Random(1), clock=lambda: ticks[0])

        engine.start_encounter()
        assert profile.last_daily_reset == ticks[0]

    def test_full_catch_flow(self, engine):
        cards = engine.start_encounter()
        assert engine.get_active_session_snapshot()['kind'] == 'encounter'

        engine.select_candidate(cards[0])
        assert engine.get_active_session_snapshot()['kind'] == 'catch'

        rune = engine.resolve_catch(True, score=90)
        assert engine.get_active_session_snapshot() is None
        assert engine.get_collection_snapshot()[0]['rune_id'] == rune.rune_id

    def test_energy_regenerates_between_actions(self, engine, now):
        for _ in range(5):
            engine.start_encounter(now)
        assert engine.start_encounter(now) is None

        assert engine.start_encounter(now + timedelta(minutes=10)) is not None
        assert engine.profile.energy == 0


class TestSnapshots:
    """Test the read-only views."""

    def test_profile_snapshot(self, engine, give_runes, now):
        give_runes(engine, 50, {'rarity': 'epic'})
        snapshot = engine.get_profile_snapshot(now)

        assert snapshot['username'] == 'Tester'
        assert snapshot['sage'] == 100
        assert snapshot['energy'] == 5
        assert snapshot['next_energy_in'] is None
        assert snapshot['collection']['total_runes'] == 2
        assert snapshot['collection']['rare_runes'] == 1

    def test_profile_snapshot_is_read_only(self, engine, now):
        engine.start_encounter(now)
        engine.start_encounter(now)
        before = copy.deepcopy(engine.profile)
        later = now + timedelta(days=1, minutes=15)

        snapshot = engine.get_profile_snapshot(later)

        assert snapshot['energy'] == 5
        assert snapshot['next_energy_in'] is None
        assert engine.profile == before

    def test_profile_snapshot_counts_down(self, engine, now):
        engine.start_encounter(now)
        engine.start_encounter(now)

        snapshot = engine.get_profile_snapshot(now + timedelta(minutes=13))
        assert snapshot['energy'] == 4
        assert snapshot['next_energy_in'] == timedelta(minutes=7)
        assert engine.profile.energy == 3

    def test_collection_snapshot_shape(self, engine, give_runes):
        give_runes(engine, {'species_id': 21, 'power': 99})
        (entry,) = engine.get_collection_snapshot()

        assert entry['name'] == 'Relic'
        assert entry['element'] == 'arcane'
        assert entry['power'] == 99

    def test_challenges_snapshot(self, engine, now):
        snapshot = engine.get_challenges_snapshot(now)

        assert len(snapshot['challenges']) == 3
        assert snapshot['all_completed'] is False
        assert snapshot['next_milestone'] == 1
        assert snapshot['resets_in'] == timedelta(hours=12)

    def test_dex_snapshot(self, engine, give_runes):
        engine.collection.mark_seen([2])
        give_runes(engine, {'species_id': 1})

        dex = {entry['species_id']: entry for entry in engine.get_dex_snapshot()}
        assert len(dex) == 21
        assert dex[1]['caught'] and dex[1]['seen']
        assert dex[2]['seen'] and not dex[2]['caught']
        assert not dex[3]['seen']

    def test_battle_session_snapshot(self, engine, give_runes):
        engine.start_battle(give_runes(engine, 50, 50, 50))
        snapshot = engine.get_active_session_snapshot()

        assert snapshot['kind'] == 'battle'
        assert snapshot['phase'] == 'selecting'
        assert len(snapshot['player_team']) == 3

    def test_boss_snapshot_takes_priority(self, engine, give_runes):
        team = give_runes(engine, 50, 50, 50)
        engine.start_boss_fight(team)
        snapshot = engine.get_active_session_snapshot()

        assert snapshot['kind'] == 'boss'
        assert snapshot['boss_id'] == 'boss_fire'
