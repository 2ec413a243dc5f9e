"""
Character systems: personality, progress and the behavior scheduler
"""

from .types import (
    Action, ActionType, Facing, Vector2D, PersonalityTraits, TraitModifier,
    CharacterStats, CharacterAppearance, CharacterState
)
from .personality import PersonalityModel, TraitLevel, Response
from .progress import ProgressTracker, Achievement, StatProgress
from .scheduler import BehaviorScheduler, weighted_choice

__all__ = [
    "Action",
    "ActionType",
    "Facing",
    "Vector2D",
    "PersonalityTraits",
    "TraitModifier",
    "CharacterStats",
    "CharacterAppearance",
    "CharacterState",
    "PersonalityModel",
    "TraitLevel",
    "Response",
    "ProgressTracker",
    "Achievement",
    "StatProgress",
    "BehaviorScheduler",
    "weighted_choice",
]
