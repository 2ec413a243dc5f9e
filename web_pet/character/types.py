"""
Character data model

=============================================================================
DATA MODEL OVERVIEW
=============================================================================

Plain data containers shared by the personality, progress and behavior
systems. They hold state only; the rules live in the systems that own them.

    PersonalityTraits   three bounded dimensions (0-100)
    TraitModifier       transient additive adjustment with an expiry
    Action              the one timed intent the character is executing
    CharacterStats      counters shown in the popup / persisted
    CharacterAppearance cosmetic settings (colour, pattern, ...)
    CharacterState      read-only snapshot handed to collaborators

All times are MILLISECONDS on the same monotonic clock the scheduler is
driven with (the external animation-frame clock).

=============================================================================
PERSISTED KEY NAMES
=============================================================================

Python attributes are snake_case. The persisted records keep the
camelCase field names of the storage schema (energyLevel, totalPets,
startTime, ...), so every container that is saved has a to_dict() /
from_dict() pair doing the mapping.

=============================================================================
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


TRAIT_MIN = 0.0
TRAIT_MAX = 100.0

# attribute name -> persisted name
TRAIT_KEYS = {
    "playfulness": "playfulness",
    "energy_level": "energyLevel",
    "friendliness": "friendliness",
}
TRAIT_NAMES = tuple(TRAIT_KEYS)


def monotonic_ms() -> float:
    """Default clock: monotonic milliseconds, the animation-frame timebase."""
    return time.perf_counter() * 1000.0


def wall_clock_ms() -> float:
    """Epoch milliseconds, for stamps that must survive a restart."""
    return time.time() * 1000.0


def clamp_trait(value: float) -> float:
    """Clamp a trait value to [TRAIT_MIN, TRAIT_MAX]."""
    return max(TRAIT_MIN, min(TRAIT_MAX, value))


def normalize_trait_name(trait: str) -> str:
    """
    Accept either the attribute name or the persisted name of a trait.

    Raises:
    -------
    ValueError : if the name is not one of the three traits
    """
    if trait in TRAIT_KEYS:
        return trait
    for attr, key in TRAIT_KEYS.items():
        if trait == key:
            return attr
    raise ValueError(f"Unknown trait: {trait!r}")


class ActionType(str, Enum):
    """
    Behavioral intents.

    Only IDLE, WALK and SLEEP are picked autonomously by the scheduler.
    RUN, PLAY and PET are reactions to user interaction; CLIMB exists in the
    animation catalog for element-climbing and is never chosen on its own.

    Subclassing str keeps the values usable as plain dictionary keys and
    lets them compare equal to "walk", "run", ... coming from messages.
    """
    IDLE = "idle"
    WALK = "walk"
    RUN = "run"
    CLIMB = "climb"
    SLEEP = "sleep"
    PLAY = "play"
    PET = "pet"

    @classmethod
    def parse(cls, value) -> Optional["ActionType"]:
        """Return the matching member, or None for unknown names."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class Facing(str, Enum):
    """Horizontal facing. Sprites are drawn right-facing and mirrored."""
    LEFT = "left"
    RIGHT = "right"


@dataclass
class Vector2D:
    """2D position or velocity in page pixels."""
    x: float = 0.0
    y: float = 0.0

    def copy(self) -> "Vector2D":
        return Vector2D(self.x, self.y)


@dataclass
class PersonalityTraits:
    """Bounded personality dimensions, each in [0, 100]."""
    playfulness: float = 50.0
    energy_level: float = 50.0
    friendliness: float = 50.0

    def __post_init__(self):
        # Keep the invariant even for hand-built instances
        for name in TRAIT_NAMES:
            setattr(self, name, clamp_trait(float(getattr(self, name))))

    def get(self, trait: str) -> float:
        return getattr(self, normalize_trait_name(trait))

    def copy(self) -> "PersonalityTraits":
        return PersonalityTraits(self.playfulness, self.energy_level, self.friendliness)

    def to_dict(self) -> Dict[str, float]:
        return {key: getattr(self, attr) for attr, key in TRAIT_KEYS.items()}


@dataclass
class TraitModifier:
    """
    Transient additive adjustment to one trait.

    A modifier is active while ``now - start_time < duration`` and expired
    from the moment ``now - start_time >= duration``.
    """
    trait: str
    amount: float
    duration: float
    start_time: float

    def is_active(self, now: float) -> bool:
        return now - self.start_time < self.duration

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trait": TRAIT_KEYS[self.trait],
            "amount": self.amount,
            "duration": self.duration,
            "startTime": self.start_time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TraitModifier":
        return cls(
            trait=normalize_trait_name(data["trait"]),
            amount=float(data["amount"]),
            duration=float(data["duration"]),
            start_time=float(data["startTime"]),
        )


@dataclass
class Action:
    """
    A timed behavioral intent.

    Exactly one Action is current per character. It is due once
    ``now - start_time >= duration``; after a long pause it is simply
    overdue, there is no catch-up.

    ``target`` is an opaque reference supplied by the caller (for example
    the page element the pet should play with). The core never inspects it.
    """
    type: ActionType
    duration: float
    start_time: float
    complete: bool = False
    target: Optional[Any] = None

    def is_due(self, now: float) -> bool:
        return now - self.start_time >= self.duration


@dataclass
class CharacterStats:
    """Counters shown to the user and persisted with the progress data."""
    total_pets: int = 0
    favorite_sleeping_spots: Dict[str, int] = field(default_factory=dict)
    achievements_completed: List[str] = field(default_factory=list)
    time_active: float = 0.0
    last_interaction_time: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalPets": self.total_pets,
            "favoriteSleepingSpots": dict(self.favorite_sleeping_spots),
            "achievementsCompleted": list(self.achievements_completed),
            "timeActive": self.time_active,
            "lastInteractionTime": self.last_interaction_time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CharacterStats":
        """Build stats from a persisted record, defaulting bad or missing fields."""
        stats = cls()
        if not isinstance(data, dict):
            return stats

        for key, attr, kind in (("totalPets", "total_pets", int),
                                ("timeActive", "time_active", float),
                                ("lastInteractionTime", "last_interaction_time", float)):
            if key in data:
                try:
                    setattr(stats, attr, kind(data[key]))
                except (TypeError, ValueError):
                    continue

        spots = data.get("favoriteSleepingSpots")
        if isinstance(spots, dict):
            try:
                stats.favorite_sleeping_spots = {str(k): int(v) for k, v in spots.items()}
            except (TypeError, ValueError):
                stats.favorite_sleeping_spots = {}

        done = data.get("achievementsCompleted")
        if isinstance(done, list):
            stats.achievements_completed = [str(a) for a in done]

        return stats


@dataclass
class CharacterAppearance:
    base_color: str = "orange"
    pattern: str = "tabby"
    is_shiny: bool = False
    customizations: Dict[str, str] = field(default_factory=dict)


@dataclass
class CharacterState:
    """Read-only snapshot for the rendering / popup collaborators."""
    position: Vector2D
    current_action: Action
    personality: PersonalityTraits
    stats: CharacterStats
    appearance: CharacterAppearance
    frame: str = ""
