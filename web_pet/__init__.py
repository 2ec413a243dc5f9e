"""
Web Pet - an autonomous animated companion

Requisites:
    pip install pillow pygame
"""

from .config import CompanionConfig
from .controller import PetController
from .events import (
    EventBus, PetEvent, AchievementCompleted, ActionChanged, PauseChanged
)
from .character import (
    PersonalityModel, ProgressTracker, BehaviorScheduler,
    Action, ActionType, PersonalityTraits, Vector2D
)
from .animation import AnimationStateMachine
from .runtime import FrameBudget, MemoryStorage, JsonFileStorage, StorageError

__version__ = "1.0.0"
__all__ = [
    "CompanionConfig",
    "PetController",
    "EventBus",
    "PetEvent",
    "AchievementCompleted",
    "ActionChanged",
    "PauseChanged",
    "PersonalityModel",
    "ProgressTracker",
    "BehaviorScheduler",
    "Action",
    "ActionType",
    "PersonalityTraits",
    "Vector2D",
    "AnimationStateMachine",
    "FrameBudget",
    "MemoryStorage",
    "JsonFileStorage",
    "StorageError",
]
