"""
Behavior scheduler - the pet's decision loop

=============================================================================
SCHEDULER OVERVIEW
=============================================================================

The scheduler is the pet's "brain stem". An external clock (the browser's
animation frame, pygame's clock, a test) calls tick(now) as often as it
likes; the scheduler only does work when at least 1000/60 ms have passed.

Each processed tick runs in a fixed order:

    1. PROGRESS    update counters / achievements with delta_time
    2. DECIDE      if the current action is due, pick the next one
    3. MOVE        integrate position (walk / run only), clamp to viewport
    4. ANIMATE     forward (action, position) to the animation machine
    5. STAMP       remember `now` as the last update

User interaction bypasses the decision step: handle_interaction() replaces
the current action immediately (pet, flee, play).

=============================================================================
AUTONOMOUS DECISIONS
=============================================================================

Only three actions are ever chosen on the pet's own initiative:

    idle   weight = 0.3 + (100 - energy) / 200
    walk   weight = 0.3 + energy / 200
    sleep  weight = 0.4 - energy / 200      (floored at 0)

Run, play and pet only happen in reaction to the user. At energy 100 the
raw sleep weight is -0.1: it is floored to 0 and sleep can never be drawn.

=============================================================================
MOVEMENT
=============================================================================

    direction = (cos(now/1000), sin(now/1000))
    speed     = (0.3 if run else 0.15) * (0.8 + energy/250)     px per ms

The direction depends on wall-clock time only, so the pet traces slow
circles; two pets driven by the same clock move in lockstep.

=============================================================================
"""

import logging
import math
import random
from typing import Any, Callable, Optional, Sequence, TypeVar

from .personality import PersonalityModel, Response
from .progress import ProgressTracker, DISTANCE_COUNTER
from .types import (
    Action, ActionType, CharacterAppearance, CharacterState, CharacterStats,
    Vector2D, monotonic_ms,
)
from ..animation.state_machine import AnimationStateMachine
from ..config import CompanionConfig
from ..events import EventBus, ActionChanged, AchievementCompleted

logger = logging.getLogger(__name__)

T = TypeVar("T")


def weighted_choice(candidates: Sequence[T], weights: Sequence[float],
                    rng: random.Random) -> T:
    """
    Pick one candidate with probability proportional to its weight.

    Negative weights are floored to 0. A uniform r in [0, sum) is drawn and
    weights are subtracted in order until r <= 0. If rounding leaves nothing
    selected (or all weights are 0) the first candidate is returned.
    """
    if not candidates:
        raise ValueError("weighted_choice() needs at least one candidate")

    floored = [max(0.0, w) for w in weights]
    total = sum(floored)
    if total <= 0:
        return candidates[0]

    r = rng.random() * total
    for candidate, weight in zip(candidates, floored):
        if weight <= 0:
            continue
        r -= weight
        if r <= 0:
            return candidate

    return candidates[0]


class BehaviorScheduler:
    """
    One simulated pet: personality, current action, position, progress.

    Collaborators are injected (or built with defaults); nothing here is a
    process-wide singleton, so tests and the viewer can run several pets.

    Parameters:
    -----------
    personality : PersonalityModel, optional
        Trait source (random traits if omitted)
    progress : ProgressTracker, optional
        Counter / achievement sink
    animation : AnimationStateMachine, optional
        Receives every action change and every tick
    events : EventBus, optional
        Shared bus for ActionChanged / AchievementCompleted
    config : CompanionConfig, optional
        Tick rate, viewport, jitter
    rng : random.Random, optional
        Decision randomness (seeded from config.seed when omitted)
    clock : callable
        Returns "now" in ms; used for construction-time stamps and when a
        method is called without an explicit `now`
    position : Vector2D, optional
        Starting position (viewport centre by default)
    """

    AUTONOMOUS_ACTIONS = (ActionType.IDLE, ActionType.WALK, ActionType.SLEEP)

    BASE_DURATIONS = {
        ActionType.IDLE: 2000.0,
        ActionType.WALK: 3000.0,
        ActionType.SLEEP: 5000.0,
        ActionType.RUN: 1500.0,
        ActionType.CLIMB: 4000.0,
        ActionType.PLAY: 2000.0,
        ActionType.PET: 1000.0,
    }

    # Fixed durations for interaction reactions
    PET_DURATION = 1000.0
    FLEE_DURATION = 500.0
    PLAY_DURATION = 2000.0

    WALK_SPEED = 0.15
    RUN_SPEED = 0.3

    # Grid cell size for favourite sleeping spots
    SLEEP_SPOT_CELL = 100

    def __init__(self, personality: Optional[PersonalityModel] = None,
                 progress: Optional[ProgressTracker] = None,
                 animation: Optional[AnimationStateMachine] = None,
                 events: Optional[EventBus] = None,
                 config: Optional[CompanionConfig] = None,
                 rng: Optional[random.Random] = None,
                 clock: Callable[[], float] = monotonic_ms,
                 position: Optional[Vector2D] = None,
                 appearance: Optional[CharacterAppearance] = None):
        self.config = config or CompanionConfig()
        self.rng = rng or random.Random(self.config.seed)
        self._clock = clock
        if events is None:
            events = progress.events if progress is not None else EventBus()
        self.events = events

        self.personality = personality or PersonalityModel(rng=self.rng, clock=clock)
        self.progress = progress or ProgressTracker(
            events=self.events, clock=clock, save_interval=self.config.save_interval_ms)
        self.animation = animation or AnimationStateMachine(clock=clock)

        self.stats = CharacterStats()
        self.appearance = appearance or CharacterAppearance()
        self.paused = False

        if position is None:
            position = Vector2D(self.config.viewport_width / 2,
                                self.config.viewport_height / 2)
        self._position = position.copy()
        self._clamp_position()

        now = self._clock()
        self.last_update = now
        self.action = Action(ActionType.IDLE,
                             self._jittered(self.BASE_DURATIONS[ActionType.IDLE]),
                             start_time=now)

        self.events.subscribe(AchievementCompleted, self._on_achievement)

    # =========================================================================
    # MAIN LOOP
    # =========================================================================

    def tick(self, now: float) -> bool:
        """
        Run one simulation step if enough time has passed.

        Parameters:
        -----------
        now : float
            Current time in ms from the driving clock

        Returns:
        --------
        bool : True if the tick was processed, False if it was skipped
               (too early, or paused)
        """
        if self.paused:
            return False

        delta_time = now - self.last_update
        if delta_time < self.config.tick_interval_ms:
            return False

        # STEP 1: progress
        self.progress.update_stats(self.stats, delta_time, now)

        # STEP 2: decide (an overdue action after a pause is just "due")
        if self.action.is_due(now):
            self.action.complete = True
            self.decide_next_action(now)

        # STEP 3: movement
        self._integrate_position(now, delta_time)

        # STEP 4: animation
        self.animation.update(self.action, self._position, now)

        # STEP 5: stamp
        self.last_update = now
        return True

    def decide_next_action(self, now: Optional[float] = None) -> Action:
        """
        Choose the next autonomous action from idle / walk / sleep.

        Weights come from the effective energy level (see module docstring);
        the duration is the base duration jittered by +/- 30%.
        """
        if now is None:
            now = self._clock()

        energy = self.personality.effective_traits(now).energy_level
        weights = (
            0.3 + (100 - energy) / 200,
            0.3 + energy / 200,
            0.4 - energy / 200,
        )
        choice = weighted_choice(self.AUTONOMOUS_ACTIONS, weights, self.rng)
        duration = self._jittered(self.BASE_DURATIONS[choice])

        if choice == ActionType.SLEEP:
            self._record_sleeping_spot()

        return self._set_action(choice, duration, now)

    # =========================================================================
    # INTERACTION
    # =========================================================================

    def handle_interaction(self, interaction: str, target: Any = None,
                           now: Optional[float] = None) -> bool:
        """
        React to a user interaction.

        =======================================================================
        RULES
        =======================================================================

            pet   always counted. friendliness > 70 -> "pet" for 1000 ms,
                  otherwise the pet flees: "run" for 500 ms
            play  ignored entirely when playfulness < 30; otherwise "play"
                  for 2000 ms with the given target
            other ignored

        A handled pet/play then evolves the personality when the pet's
        response is positive or negative (neutral leaves it alone).

        =======================================================================

        Returns:
        --------
        bool : True if the interaction changed the pet's state
        """
        if now is None:
            now = self._clock()

        traits = self.personality.effective_traits(now)

        if interaction == "pet":
            self.stats.total_pets += 1
            self.stats.last_interaction_time = now
            self.progress.record_interaction("pet")

            if traits.friendliness > 70:
                self._set_action(ActionType.PET, self.PET_DURATION, now)
            else:
                self._set_action(ActionType.RUN, self.FLEE_DURATION, now)

        elif interaction == "play":
            if traits.playfulness < 30:
                logger.debug("Not in the mood to play (playfulness %.1f)", traits.playfulness)
                return False

            self.stats.last_interaction_time = now
            self.progress.record_interaction("play")
            self._set_action(ActionType.PLAY, self.PLAY_DURATION, now, target=target)

        else:
            logger.debug("Ignoring unknown interaction %r", interaction)
            return False

        response = self.personality.interaction_response(interaction, now)
        if response != Response.NEUTRAL:
            self.personality.evolve(interaction, response)
        return True

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _set_action(self, action_type: ActionType, duration: float, now: float,
                    target: Any = None) -> Action:
        previous = self.action.type
        self.action = Action(action_type, duration, start_time=now, target=target)
        self.animation.transition(self.action, now)

        logger.debug("Action %s -> %s (%.0f ms)", previous, action_type.value, duration)
        self.events.emit(ActionChanged(
            time=now,
            previous=previous.value,
            current=action_type.value,
            duration=duration,
            target=target,
        ))
        return self.action

    def _jittered(self, base: float) -> float:
        jitter = self.config.duration_jitter
        return base * (1.0 + self.rng.uniform(-jitter, jitter))

    def speed(self, action_type: ActionType, energy: float) -> float:
        """Movement speed in px/ms for a moving action at a given energy."""
        base = self.RUN_SPEED if action_type == ActionType.RUN else self.WALK_SPEED
        return base * (0.8 + energy / 250)

    def _integrate_position(self, now: float, delta_time: float):
        if self.action.type not in (ActionType.WALK, ActionType.RUN):
            return

        energy = self.personality.effective_traits(now).energy_level
        speed = self.speed(self.action.type, energy)

        # Direction is a function of wall-clock time alone
        angle = now / 1000.0
        before = self._position.copy()
        self._position.x += math.cos(angle) * speed * delta_time
        self._position.y += math.sin(angle) * speed * delta_time
        self._clamp_position()

        # The distance estimate starts accruing once the pet first moves
        if self.progress.counter(DISTANCE_COUNTER) is None and before != self._position:
            self.progress.record_interaction(DISTANCE_COUNTER, 0)

    def _clamp_position(self):
        cfg = self.config
        self._position.x = self._clamp_axis(self._position.x, cfg.viewport_width, cfg.viewport_margin)
        self._position.y = self._clamp_axis(self._position.y, cfg.viewport_height, cfg.viewport_margin)

    @staticmethod
    def _clamp_axis(value: float, size: float, margin: float) -> float:
        low, high = margin, size - margin
        if low > high:
            # Viewport narrower than two margins: pin to the middle
            return size / 2
        return max(low, min(high, value))

    def _record_sleeping_spot(self):
        cell = self.SLEEP_SPOT_CELL
        key = f"{int(self._position.x // cell)}:{int(self._position.y // cell)}"
        spots = self.stats.favorite_sleeping_spots
        spots[key] = spots.get(key, 0) + 1

    def _on_achievement(self, event: AchievementCompleted):
        if event.achievement_id not in self.stats.achievements_completed:
            self.stats.achievements_completed.append(event.achievement_id)

    # =========================================================================
    # COLLABORATOR ACCESS
    # =========================================================================

    def set_viewport(self, width: float, height: float, margin: Optional[float] = None):
        """Update the viewport used for clamping (called by the renderer)."""
        changes = {"viewport_width": width, "viewport_height": height}
        if margin is not None:
            changes["viewport_margin"] = margin
        self.config = self.config.updated(changes)
        self._clamp_position()

    def pause(self):
        self.paused = True

    def resume(self):
        # last_update is kept: the first tick after resuming sees the whole
        # gap and treats due actions as overdue
        self.paused = False

    @property
    def position(self) -> Vector2D:
        return self._position.copy()

    @property
    def current_action(self) -> Action:
        return self.action

    def current_frame(self) -> str:
        return self.animation.current_frame()

    def state(self, now: Optional[float] = None) -> CharacterState:
        """Snapshot for the popup / renderer."""
        return CharacterState(
            position=self.position,
            current_action=self.action,
            personality=self.personality.effective_traits(now),
            stats=self.stats,
            appearance=self.appearance,
            frame=self.current_frame(),
        )
