"""Animation catalog, state machine and spritesheet access"""

from .state_machine import AnimationStateMachine, AnimationState
from .sprite_sheet import SpriteSheet

__all__ = ["AnimationStateMachine", "AnimationState", "SpriteSheet"]
