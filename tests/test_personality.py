"""Tests for the personality model: traits, modifiers, derived behavior."""

import random

import pytest

from web_pet.character.personality import PersonalityModel, Response, TraitLevel
from web_pet.runtime.storage import (
    MemoryStorage, StorageBackend, StorageError,
    PERSONALITY_TRAITS_KEY, PERSONALITY_MODIFIERS_KEY,
)


class BrokenStorage(StorageBackend):
    def get(self, keys):
        raise StorageError("disk on fire")

    def set(self, items):
        raise StorageError("disk on fire")


# =============================================================================
# Test: construction and bounds
# =============================================================================

class TestTraitBounds:
    """Traits always stay in [0, 100]."""

    def test_missing_traits_are_random_integers_in_range(self):
        model = PersonalityModel(rng=random.Random(7))
        traits = model.base_traits
        for value in (traits.playfulness, traits.energy_level, traits.friendliness):
            assert 0 <= value <= 100
            assert value == int(value)

    def test_same_seed_same_pet(self):
        a = PersonalityModel(rng=random.Random(99)).base_traits
        b = PersonalityModel(rng=random.Random(99)).base_traits
        assert a == b

    def test_initial_values_are_clamped(self, rng, clock):
        model = PersonalityModel({"playfulness": 150, "energyLevel": -20},
                                 rng=rng, clock=clock)
        traits = model.base_traits
        assert traits.playfulness == 100
        assert traits.energy_level == 0

    def test_unknown_trait_name_rejected(self, rng):
        with pytest.raises(ValueError):
            PersonalityModel({"grumpiness": 10}, rng=rng)

    def test_update_trait_clamps(self, make_personality):
        model = make_personality(friendliness=95)
        model.update_trait("friendliness", 20)
        assert model.base_traits.friendliness == 100
        model.update_trait("friendliness", -500)
        assert model.base_traits.friendliness == 0

    def test_modifier_sum_is_clamped(self, make_personality):
        model = make_personality(playfulness=90)
        model.add_modifier("playfulness", 30, 1000)
        model.add_modifier("playfulness", 30, 1000)
        assert model.effective_traits().playfulness == 100

    def test_base_traits_is_a_copy(self, make_personality):
        model = make_personality(playfulness=40)
        traits = model.base_traits
        traits.playfulness = 99
        assert model.base_traits.playfulness == 40


# =============================================================================
# Test: modifiers and lazy pruning
# =============================================================================

class TestModifiers:
    """Transient modifiers apply on read and expire on time."""

    def test_modifier_applies_while_active(self, make_personality, clock):
        model = make_personality(friendliness=50)
        model.add_modifier("friendliness", 20, 10_000)

        clock.advance(9_999)
        assert model.effective_traits().friendliness == 70
        assert model.base_traits.friendliness == 50

    def test_modifier_expires_at_duration(self, make_personality, clock):
        model = make_personality(friendliness=50)
        model.add_modifier("friendliness", 20, 10_000)

        clock.advance(10_000)
        assert model.effective_traits().friendliness == 50
        assert model.modifiers == []

    def test_pruning_is_idempotent(self, make_personality, clock):
        model = make_personality(energy_level=40)
        model.add_modifier("energy_level", 10, 500)
        model.add_modifier("energy_level", 5, 5_000)
        now = clock.advance(1_000)

        first = model.effective_traits(now)
        second = model.effective_traits(now)

        assert first == second
        assert first.energy_level == 45
        assert len(model.modifiers) == 1

    def test_negative_modifier_floors_at_zero(self, make_personality):
        model = make_personality(energy_level=10)
        model.add_modifier("energyLevel", -50, 1_000)
        assert model.effective_traits().energy_level == 0


# =============================================================================
# Test: classification and probabilities
# =============================================================================

class TestDerivedBehavior:
    """classify, action_probability and interaction_response."""

    @pytest.mark.parametrize("value,level", [
        (0, TraitLevel.LOW),
        (32, TraitLevel.LOW),
        (33, TraitLevel.MEDIUM),
        (65, TraitLevel.MEDIUM),
        (66, TraitLevel.HIGH),
        (100, TraitLevel.HIGH),
    ])
    def test_classify_bands(self, make_personality, value, level):
        model = make_personality(playfulness=value)
        assert model.classify("playfulness") == level

    def test_classify_ignores_modifiers(self, make_personality):
        model = make_personality(playfulness=20)
        model.add_modifier("playfulness", 60, 10_000)
        assert model.classify("playfulness") == TraitLevel.LOW

    def test_average_pet_keeps_base_chance(self, make_personality):
        model = make_personality(50, 50, 50)
        assert model.action_probability("play", 0.4) == pytest.approx(0.4)
        assert model.action_probability("interact", 0.4) == pytest.approx(0.4)
        assert model.action_probability("sleep", 0.4) == pytest.approx(0.4)
        assert model.action_probability("dance", 0.4) == pytest.approx(0.4)

    def test_play_probability_scales_with_both_traits(self, make_personality):
        model = make_personality(playfulness=100, energy_level=25)
        # 0.3 * 2.0 * 0.5
        assert model.action_probability("play", 0.3) == pytest.approx(0.3)

    def test_probability_is_clamped(self, make_personality):
        model = make_personality(playfulness=100, energy_level=100, friendliness=100)
        assert model.action_probability("play", 0.9) == 1.0
        sleepy = make_personality(energy_level=100)
        assert sleepy.action_probability("sleep", 0.9) == 0.0

    def test_pet_response(self, make_personality):
        assert make_personality(friendliness=71).interaction_response("pet") == Response.POSITIVE
        assert make_personality(friendliness=70).interaction_response("pet") == Response.NEUTRAL
        assert make_personality(friendliness=29).interaction_response("pet") == Response.NEGATIVE

    def test_play_response(self, make_personality):
        happy = make_personality(playfulness=80, energy_level=60)
        tired = make_personality(playfulness=80, energy_level=10)
        meh = make_personality(playfulness=50, energy_level=50)
        assert happy.interaction_response("play") == Response.POSITIVE
        assert tired.interaction_response("play") == Response.NEGATIVE
        assert meh.interaction_response("play") == Response.NEUTRAL

    def test_unknown_interaction_is_neutral(self, make_personality):
        assert make_personality().interaction_response("tickle") == Response.NEUTRAL


# =============================================================================
# Test: evolution
# =============================================================================

class TestEvolve:
    """Permanent trait drift after interactions."""

    def test_positive_pet_raises_friendliness(self, make_personality):
        model = make_personality(friendliness=80)
        model.evolve("pet", Response.POSITIVE)
        assert model.base_traits.friendliness == pytest.approx(80.5)

    def test_negative_play_costs_double_energy(self, make_personality):
        model = make_personality(playfulness=20, energy_level=50)
        model.evolve("play", "negative")
        traits = model.base_traits
        assert traits.playfulness == pytest.approx(19.5)
        assert traits.energy_level == pytest.approx(49.0)

    def test_unknown_interaction_changes_nothing(self, make_personality):
        model = make_personality(10, 20, 30)
        before = model.base_traits
        model.evolve("tickle", "positive")
        assert model.base_traits == before


# =============================================================================
# Test: persistence
# =============================================================================

class TestPersistence:
    """save()/load() through a storage backend."""

    def test_round_trip(self, make_personality, storage, clock, rng):
        model = make_personality(12, 34, 56)
        model.add_modifier("friendliness", 10, 60_000)
        assert model.save()

        restored = PersonalityModel(rng=rng, clock=clock, storage=storage)
        assert restored.load()

        now = clock()
        assert restored.base_traits == model.base_traits
        assert restored.effective_traits(now) == model.effective_traits(now)

    def test_persisted_names(self, make_personality, storage):
        make_personality(12, 34, 56).save()
        assert storage.data[PERSONALITY_TRAITS_KEY] == {
            "playfulness": 12, "energyLevel": 34, "friendliness": 56}
        assert storage.data[PERSONALITY_MODIFIERS_KEY] == []

    def test_malformed_fields_fall_back_individually(self, rng, clock):
        storage = MemoryStorage({
            PERSONALITY_TRAITS_KEY: {"playfulness": "lots", "energyLevel": 77},
            PERSONALITY_MODIFIERS_KEY: [
                {"trait": "friendliness", "amount": 5, "duration": 1000,
                 "startTime": clock()},
                {"trait": "nope"},
            ],
        })
        model = PersonalityModel({"playfulness": 40}, rng=rng, clock=clock, storage=storage)
        assert model.load()

        assert model.base_traits.playfulness == 40
        assert model.base_traits.energy_level == 77
        assert len(model.modifiers) == 1

    def test_storage_failure_is_not_fatal(self, rng, clock):
        model = PersonalityModel({"playfulness": 40}, rng=rng, clock=clock,
                                 storage=BrokenStorage())
        assert model.save() is False
        assert model.load() is False
        assert model.base_traits.playfulness == 40
