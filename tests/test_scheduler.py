"""Tests for the behavior scheduler: decisions, interactions, ticking, movement."""

import random
from collections import Counter

import pytest

from web_pet.character.progress import DISTANCE_COUNTER
from web_pet.character.scheduler import BehaviorScheduler, weighted_choice
from web_pet.character.types import Action, ActionType, Vector2D
from web_pet.config import CompanionConfig
from web_pet.events import ActionChanged


# =============================================================================
# Test: weighted_choice
# =============================================================================

class TestWeightedChoice:
    """Proportional selection helper."""

    def test_frequencies_converge_to_weights(self):
        rng = random.Random(1)
        draws = Counter(weighted_choice(["a", "b"], [1.0, 3.0], rng) for _ in range(20_000))
        assert draws["b"] / 20_000 == pytest.approx(0.75, abs=0.02)

    def test_three_weights_with_negative_floored(self):
        """Energy-100 weights: idle / walk split 0.3 : 0.8, sleep never."""
        rng = random.Random(5)
        n = 30_000
        draws = Counter(weighted_choice(["idle", "walk", "sleep"], [0.3, 0.8, -0.1], rng)
                        for _ in range(n))
        assert draws["idle"] / n == pytest.approx(0.3 / 1.1, abs=0.015)
        assert draws["walk"] / n == pytest.approx(0.8 / 1.1, abs=0.015)
        assert draws["sleep"] == 0

    def test_negative_weight_never_chosen(self):
        rng = random.Random(2)
        draws = {weighted_choice(["a", "b", "c"], [0.5, -0.1, 0.5], rng) for _ in range(2_000)}
        assert "b" not in draws

    def test_all_zero_returns_first(self):
        assert weighted_choice(["a", "b"], [0.0, 0.0], random.Random(3)) == "a"

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            weighted_choice([], [], random.Random(4))


# =============================================================================
# Test: autonomous decisions
# =============================================================================

class TestDecisions:
    """decide_next_action picks idle / walk / sleep from energy."""

    def test_initial_action_is_jittered_idle(self, make_scheduler, clock):
        scheduler = make_scheduler()
        action = scheduler.current_action
        assert action.type == ActionType.IDLE
        assert 1400 <= action.duration <= 2600
        assert action.start_time == clock()

    def test_full_energy_never_sleeps(self, make_scheduler):
        scheduler = make_scheduler(energy_level=100)
        chosen = {scheduler.decide_next_action().type for _ in range(1_000)}
        assert ActionType.SLEEP not in chosen
        assert chosen <= {ActionType.IDLE, ActionType.WALK}

    def test_only_autonomous_actions(self, make_scheduler):
        scheduler = make_scheduler(energy_level=0)
        chosen = {scheduler.decide_next_action().type for _ in range(1_000)}
        assert chosen == {ActionType.IDLE, ActionType.WALK, ActionType.SLEEP}

    def test_durations_stay_within_jitter(self, make_scheduler):
        scheduler = make_scheduler()
        for _ in range(500):
            action = scheduler.decide_next_action()
            base = BehaviorScheduler.BASE_DURATIONS[action.type]
            assert base * 0.7 <= action.duration <= base * 1.3

    def test_sleeping_records_spot(self, make_scheduler):
        scheduler = make_scheduler(energy_level=0)
        sleeps = sum(scheduler.decide_next_action().type == ActionType.SLEEP
                     for _ in range(200))
        assert sleeps > 0
        # Default position is the viewport centre (640, 360)
        assert scheduler.stats.favorite_sleeping_spots == {"6:3": sleeps}

    def test_action_change_emits_event(self, make_scheduler, events):
        scheduler = make_scheduler()
        seen = []
        events.subscribe(ActionChanged, seen.append)
        action = scheduler.decide_next_action()
        assert seen[-1].previous == "idle"
        assert seen[-1].current == action.type.value


# =============================================================================
# Test: interactions
# =============================================================================

class TestInteractions:
    """handle_interaction rules for pet and play."""

    def test_friendly_pet_accepts_petting(self, make_scheduler, progress):
        scheduler = make_scheduler(friendliness=80)
        assert scheduler.handle_interaction("pet") is True

        action = scheduler.current_action
        assert action.type == ActionType.PET
        assert action.duration == 1000
        assert scheduler.stats.total_pets == 1
        assert progress.counter("pet").current == 1
        # Positive response nudges friendliness up
        assert scheduler.personality.base_traits.friendliness == pytest.approx(80.5)

    def test_shy_pet_flees(self, make_scheduler):
        scheduler = make_scheduler(friendliness=20)
        assert scheduler.handle_interaction("pet") is True

        action = scheduler.current_action
        assert action.type == ActionType.RUN
        assert action.duration == 500
        assert scheduler.stats.total_pets == 1
        assert scheduler.personality.base_traits.friendliness == pytest.approx(19.5)

    def test_neutral_pet_does_not_evolve(self, make_scheduler):
        scheduler = make_scheduler(friendliness=50)
        scheduler.handle_interaction("pet")
        assert scheduler.current_action.type == ActionType.RUN
        assert scheduler.personality.base_traits.friendliness == 50

    def test_play_ignored_when_not_playful(self, make_scheduler, progress):
        scheduler = make_scheduler(playfulness=20)
        before = scheduler.current_action

        assert scheduler.handle_interaction("play", target="ball") is False
        assert scheduler.current_action is before
        assert progress.counter("play") is None
        assert scheduler.personality.base_traits.playfulness == 20

    def test_play_with_target(self, make_scheduler, clock):
        scheduler = make_scheduler(playfulness=80, energy_level=60)
        assert scheduler.handle_interaction("play", target="ball") is True

        action = scheduler.current_action
        assert action.type == ActionType.PLAY
        assert action.duration == 2000
        assert action.target == "ball"
        assert scheduler.stats.last_interaction_time == clock()

    def test_unknown_interaction_is_noop(self, make_scheduler):
        scheduler = make_scheduler()
        before = scheduler.current_action
        assert scheduler.handle_interaction("tickle") is False
        assert scheduler.current_action is before
        assert scheduler.stats.total_pets == 0


# =============================================================================
# Test: tick loop
# =============================================================================

class TestTick:
    """Rate limiting, pausing and the per-tick pipeline."""

    def test_tick_rate_limited(self, make_scheduler, clock):
        scheduler = make_scheduler()
        assert scheduler.tick(clock.advance(10)) is False
        assert scheduler.tick(clock.advance(7)) is True
        assert scheduler.last_update == clock()

    def test_tick_accumulates_time_active(self, make_scheduler, clock):
        scheduler = make_scheduler()
        scheduler.tick(clock.advance(20))
        scheduler.tick(clock.advance(30))
        assert scheduler.stats.time_active == pytest.approx(50)

    def test_due_action_is_replaced(self, make_scheduler, clock):
        scheduler = make_scheduler()
        first = scheduler.current_action
        scheduler.tick(clock.advance(3_000))

        assert first.complete is True
        assert scheduler.current_action is not first
        assert scheduler.current_action.start_time == clock()

    def test_paused_scheduler_skips_ticks(self, make_scheduler, clock):
        scheduler = make_scheduler()
        scheduler.pause()
        assert scheduler.tick(clock.advance(1_000)) is False
        assert scheduler.stats.time_active == 0

        scheduler.resume()
        assert scheduler.tick(clock.advance(1_000)) is True
        # The whole pause gap is applied in one step
        assert scheduler.stats.time_active == pytest.approx(2_000)

    def test_state_snapshot(self, make_scheduler):
        scheduler = make_scheduler(playfulness=10, energy_level=20, friendliness=30)
        state = scheduler.state()
        assert state.current_action is scheduler.current_action
        assert state.personality.friendliness == 30
        assert state.frame == "idle1_right"


# =============================================================================
# Test: movement and clamping
# =============================================================================

class TestMovement:
    """Walk / run integration and viewport clamping."""

    def test_speed(self, make_scheduler):
        scheduler = make_scheduler()
        assert scheduler.speed(ActionType.WALK, 50) == pytest.approx(0.15)
        assert scheduler.speed(ActionType.RUN, 100) == pytest.approx(0.36)

    def test_idle_does_not_move(self, make_scheduler, clock):
        scheduler = make_scheduler()
        start = scheduler.position
        scheduler.tick(clock.advance(20))
        assert scheduler.position == start

    def test_walking_moves_and_starts_distance(self, make_scheduler, progress, clock):
        scheduler = make_scheduler(energy_level=50)
        start = scheduler.position
        scheduler.action = Action(ActionType.WALK, 100_000, start_time=clock())

        scheduler.tick(clock.advance(20))
        assert scheduler.position != start
        assert progress.counter(DISTANCE_COUNTER).current == 0

        scheduler.tick(clock.advance(20))
        assert progress.counter(DISTANCE_COUNTER).current == pytest.approx(2.0)

    def test_position_stays_inside_margins(self, make_scheduler, clock):
        scheduler = make_scheduler(energy_level=100)
        scheduler.action = Action(ActionType.RUN, 10_000_000, start_time=clock())

        for _ in range(3_000):
            scheduler.tick(clock.advance(17))
            pos = scheduler.position
            assert 50 <= pos.x <= 1230
            assert 50 <= pos.y <= 670

    def test_start_position_clamped(self, make_personality, progress, clock, rng):
        scheduler = BehaviorScheduler(
            personality=make_personality(), progress=progress,
            config=CompanionConfig(), rng=rng, clock=clock,
            position=Vector2D(-100, 5_000),
        )
        assert scheduler.position == Vector2D(50, 670)

    def test_tiny_viewport_pins_to_middle(self, make_scheduler):
        scheduler = make_scheduler()
        scheduler.set_viewport(80, 60)
        assert scheduler.position == Vector2D(40, 30)

    def test_position_is_a_copy(self, make_scheduler):
        scheduler = make_scheduler()
        pos = scheduler.position
        pos.x = -1
        assert scheduler.position.x != -1


# =============================================================================
# Test: achievement wiring
# =============================================================================

class TestAchievementWiring:
    """Completed achievements land in the character stats."""

    def test_completed_achievement_recorded(self, make_scheduler, progress):
        scheduler = make_scheduler()
        progress.check_achievement("explorer", 50)
        assert scheduler.stats.achievements_completed == ["explorer"]

    def test_hundred_pets_complete_friendly_pet(self, make_scheduler, clock):
        scheduler = make_scheduler(friendliness=90)
        for _ in range(100):
            scheduler.handle_interaction("pet")
        scheduler.tick(clock.advance(20))
        assert "friendly_pet" in scheduler.stats.achievements_completed
