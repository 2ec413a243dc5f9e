"""
Animation state machine - actions to frame sequences, with bridges

=============================================================================
STATE MACHINE OVERVIEW
=============================================================================

The machine holds two slots:

    CURRENT     always present. The looping frame sequence of the action
                being performed (idle1..idle4, walk1..walk6, ...).

    TRANSITION  optional overlay. A short one-shot "bridge" sequence played
                between two action animations (e.g. idle -> walk), so the
                pet doesn't snap from standing to mid-stride.

    transition(action)
          │
          ├── bridge found for (current[0], target[0])?
          │       yes: TRANSITION = bridge, target remembered as pending
          │       no:  CURRENT = target, TRANSITION cleared
          ▼
    update(action, position)   (every tick)
          │
          ├── TRANSITION active?
          │       finished  -> CURRENT = fresh sequence of the action implied
          │                    by the pending target's first frame name,
          │                    drop TRANSITION
          │       otherwise -> advance bridge frame when due
          │       (return early either way: CURRENT is frozen)
          │
          ├── advance CURRENT frame when due (wraps around)
          └── facing from horizontal movement (walk / run only)

=============================================================================
TIME-BASED FRAMES
=============================================================================

Frames advance on elapsed wall time, not on tick count: a frame is shown
for at least `frame_duration` ms. After a long pause the elapsed time is
huge but the frame still advances by exactly ONE step - there is no
catch-up loop.

=============================================================================
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from . import catalog
from ..character.types import Action, ActionType, Facing, Vector2D, monotonic_ms

logger = logging.getLogger(__name__)


@dataclass
class AnimationState:
    """
    One playing frame sequence.

    Invariant: 0 <= frame_index < frame_count, and the sequence is never
    empty (every catalog entry has at least two frames).
    """
    sequence: Tuple[str, ...]
    frame_duration: float
    last_frame_time: float
    facing: Facing = Facing.RIGHT
    frame_index: int = 0

    @property
    def frame_count(self) -> int:
        return len(self.sequence)

    @property
    def frame_name(self) -> str:
        return self.sequence[self.frame_index]

    @property
    def is_complete(self) -> bool:
        """Used for bridges: the last frame has been reached."""
        return self.frame_index >= self.frame_count - 1

    def frame_due(self, now: float) -> bool:
        return now - self.last_frame_time >= self.frame_duration


class AnimationStateMachine:
    """
    Maps the scheduler's actions to frames for the renderer.

    ==========================================================================
    USAGE EXAMPLE
    ==========================================================================

    ```python
    machine = AnimationStateMachine()

    machine.transition(walk_action)          # on every action change
    machine.update(walk_action, position)    # on every tick
    frame_id = machine.current_frame()       # e.g. "idle_walk1_right"
    ```

    ==========================================================================
    """

    def __init__(self, clock: Callable[[], float] = monotonic_ms,
                 initial: ActionType = ActionType.IDLE,
                 facing: Facing = Facing.RIGHT):
        self._clock = clock
        self.current = self._build_state(initial, self._clock(), facing)
        self.transition_state: Optional[AnimationState] = None
        # First frame name of the sequence a bridge leads into
        self._pending_first_frame: Optional[str] = None
        self._last_position: Optional[Vector2D] = None

    @staticmethod
    def _build_state(action_type: ActionType, now: float,
                     facing: Facing) -> AnimationState:
        return AnimationState(
            sequence=catalog.sequence_for(action_type),
            frame_duration=catalog.frame_duration_for(action_type),
            last_frame_time=now,
            facing=facing,
        )

    # =========================================================================
    # STATE CHANGES
    # =========================================================================

    def transition(self, action: Action, now: Optional[float] = None):
        """
        Switch to the animation for `action`.

        If the catalog has a bridge from the current sequence to the target
        one, the bridge plays first: the TRANSITION slot gets the bridge
        frames (using the target's frame duration and the current facing)
        and CURRENT only becomes the target once the bridge has finished.

        Without a bridge the target replaces CURRENT immediately and any
        in-flight bridge is dropped.

        Unknown action types are ignored.

        =======================================================================
        WHICH SEQUENCE IS "CURRENT" WHILE A BRIDGE PLAYS?
        =======================================================================

        CURRENT keeps the sequence the bridge started from, frozen. A second
        transition() arriving mid-bridge is therefore looked up against the
        sequence actually on screen before the bridge, e.g.

            idle --(idle_walk bridge)--> [run requested] --> no idle->run
                                                           bridge: run now

        =======================================================================
        """
        action_type = ActionType.parse(action.type)
        if action_type is None or action_type not in catalog.SEQUENCES:
            logger.debug("transition(): ignoring unknown action type %r", action.type)
            return

        if now is None:
            now = self._clock()

        facing = self.current.facing
        target = self._build_state(action_type, now, facing)
        bridge = catalog.find_bridge(self.current.sequence[0], target.sequence[0])

        if bridge:
            self.transition_state = AnimationState(
                sequence=bridge,
                frame_duration=target.frame_duration,
                last_frame_time=now,
                facing=facing,
            )
            self._pending_first_frame = target.sequence[0]
            logger.debug("Bridge %s -> %s via %d frames",
                         self.current.sequence[0], target.sequence[0], len(bridge))
        else:
            self.transition_state = None
            self._pending_first_frame = None
            self.current = target

    def update(self, action: Action, position: Vector2D, now: Optional[float] = None):
        """
        Advance the animation by one tick.

        Parameters:
        -----------
        action : Action
            The scheduler's current action (used for the facing rule)
        position : Vector2D
            The character's position after this tick's movement
        now : float, optional
            Time in ms (defaults to the machine's clock)
        """
        if now is None:
            now = self._clock()

        # -----------------------------------------------------------------
        # STEP 1: BRIDGE IN FLIGHT
        # -----------------------------------------------------------------
        bridge = self.transition_state
        if bridge is not None:
            if bridge.is_complete:
                implied = catalog.action_for_frame(self._pending_first_frame or "")
                if implied is None:
                    implied = ActionType.parse(action.type) or ActionType.IDLE
                self.current = self._build_state(implied, now, bridge.facing)
                self.transition_state = None
                self._pending_first_frame = None
            elif bridge.frame_due(now):
                bridge.frame_index += 1
                bridge.last_frame_time = now
            return

        # -----------------------------------------------------------------
        # STEP 2: LOOP THE CURRENT SEQUENCE
        # -----------------------------------------------------------------
        state = self.current
        if state.frame_due(now):
            state.frame_index = (state.frame_index + 1) % state.frame_count
            state.last_frame_time = now

        # -----------------------------------------------------------------
        # STEP 3: FACING (only while moving)
        # -----------------------------------------------------------------
        if action.type in (ActionType.WALK, ActionType.RUN):
            if self._last_position is not None:
                dx = position.x - self._last_position.x
                if dx > 0:
                    state.facing = Facing.RIGHT
                elif dx < 0:
                    state.facing = Facing.LEFT
        self._last_position = position.copy()

    # =========================================================================
    # RENDERER CONTRACT
    # =========================================================================

    @property
    def active_state(self) -> AnimationState:
        """The state being displayed: the bridge if one is playing."""
        return self.transition_state or self.current

    @property
    def is_transitioning(self) -> bool:
        return self.transition_state is not None

    @property
    def facing(self) -> Facing:
        return self.active_state.facing

    def current_frame(self) -> str:
        """Frame identifier for the renderer: "<frame name>_<facing>"."""
        state = self.active_state
        return f"{state.frame_name}_{state.facing.value}"
