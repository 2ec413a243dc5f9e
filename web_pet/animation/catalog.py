"""
Animation catalog - static frame tables

=============================================================================
FRAME NAMING
=============================================================================

Every frame has a name "<animation><n>" with n starting at 1:

    idle1 idle2 idle3 idle4
    walk1 ... walk6

The rendering collaborator resolves "<name>_<facing>" (e.g. "walk3_left")
to a region of the spritesheet, so these names ARE the contract between
the state machine and the renderer.

Bridge frames (short in-between animations) follow the same rule with a
combined prefix: "idle_walk1", "idle_walk2", ...

=============================================================================
TABLES
=============================================================================

    SEQUENCES        action type -> ordered frame names (2-6 frames)
    FRAME_DURATIONS  action type -> ms per frame (100-500)
    BRIDGES          (first frame of current, first frame of target)
                     -> bridge frame names

All three are built once at import and treated as read-only.

=============================================================================
"""

import re
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from ..character.types import ActionType


def _frames(prefix: str, count: int) -> Tuple[str, ...]:
    return tuple(f"{prefix}{i + 1}" for i in range(count))


# Frames per animation (also the column count of each spritesheet row)
FRAME_COUNTS = {
    ActionType.IDLE: 4,
    ActionType.WALK: 6,
    ActionType.RUN: 6,
    ActionType.SLEEP: 4,
    ActionType.PLAY: 6,
    ActionType.PET: 4,
    ActionType.CLIMB: 4,
}

SEQUENCES: Mapping[ActionType, Tuple[str, ...]] = MappingProxyType({
    action: _frames(action.value, count) for action, count in FRAME_COUNTS.items()
})

FRAME_DURATIONS: Mapping[ActionType, float] = MappingProxyType({
    ActionType.IDLE: 250.0,
    ActionType.WALK: 150.0,
    ActionType.RUN: 100.0,
    ActionType.SLEEP: 500.0,
    ActionType.PLAY: 120.0,
    ActionType.PET: 200.0,
    ActionType.CLIMB: 180.0,
})

# (from, to, bridge length)
_BRIDGE_SPECS = (
    (ActionType.IDLE, ActionType.WALK, 2),
    (ActionType.WALK, ActionType.IDLE, 2),
    (ActionType.WALK, ActionType.RUN, 2),
    (ActionType.RUN, ActionType.WALK, 2),
    (ActionType.IDLE, ActionType.SLEEP, 3),
    (ActionType.SLEEP, ActionType.IDLE, 3),
)

BRIDGES: Mapping[Tuple[str, str], Tuple[str, ...]] = MappingProxyType({
    (SEQUENCES[src][0], SEQUENCES[dst][0]): _frames(f"{src.value}_{dst.value}", length)
    for src, dst, length in _BRIDGE_SPECS
})

_TRAILING_DIGITS = re.compile(r"\d+$")


def sequence_for(action: ActionType) -> Tuple[str, ...]:
    return SEQUENCES[action]


def frame_duration_for(action: ActionType) -> float:
    return FRAME_DURATIONS[action]


def find_bridge(current_first: str, target_first: str) -> Optional[Tuple[str, ...]]:
    """Bridge frames for a pair of first-frame names, or None."""
    return BRIDGES.get((current_first, target_first))


def action_for_frame(frame_name: str) -> Optional[ActionType]:
    """
    Action type implied by a frame name: "walk3" -> WALK.

    Bridge names ("idle_walk1") and unknown names return None.
    """
    return ActionType.parse(_TRAILING_DIGITS.sub("", frame_name))
