"""
Personality model - traits, modifiers and the probabilities derived from them

=============================================================================
PERSONALITY OVERVIEW
=============================================================================

Every pet has three traits, each a number in [0, 100]:

    playfulness   - how eager it is to play
    energy_level  - how active it is (low energy = sleepy)
    friendliness  - how it reacts to being petted

Two kinds of change act on them:

    PERMANENT   update_trait() / evolve()
                Changes the stored base value (clamped).

    TRANSIENT   add_modifier()
                An additive bonus/malus that lasts `duration` ms.
                Base values are never touched; the bonus is applied on read.

=============================================================================
LAZY PRUNING
=============================================================================

effective_traits() is a READ with a CLEANUP SIDE EFFECT: while folding the
active modifiers into a copy of the base traits, it drops the expired ones
from the held list.

    base traits ──┐
                  ├─ + active modifiers (clamped after each) ─> result
    modifiers ────┘
         └─ expired entries removed from the list

Pruning only ever removes entries that are already expired for `now`, so
calling it several times within one tick is safe: the second call finds
nothing left to remove and returns the same values.

=============================================================================
"""

import logging
import random
from enum import Enum
from typing import Callable, Dict, List, Optional

from .types import (
    PersonalityTraits, TraitModifier, TRAIT_KEYS, TRAIT_NAMES, TRAIT_MAX,
    clamp_trait, monotonic_ms, normalize_trait_name,
)
from ..runtime.storage import (
    StorageBackend, StorageError,
    PERSONALITY_TRAITS_KEY, PERSONALITY_MODIFIERS_KEY,
)

logger = logging.getLogger(__name__)


class TraitLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Response(str, Enum):
    """How the pet feels about an interaction."""
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class PersonalityModel:
    """
    Holds the pet's traits plus any time-bounded modifiers.

    ==========================================================================
    USAGE EXAMPLE
    ==========================================================================

    ```python
    personality = PersonalityModel({"energy_level": 90}, rng=random.Random(1))

    # A treat makes it friendlier for ten seconds
    personality.add_modifier("friendliness", 20, 10_000)

    traits = personality.effective_traits()
    personality.action_probability("sleep", 0.5)   # low: energetic pet
    ```

    ==========================================================================
    """

    # Step applied by evolve() for each interaction outcome
    EVOLUTION_RATE = 0.5

    # classify() band edges
    LOW_BELOW = 33
    MEDIUM_BELOW = 66

    def __init__(self, initial: Optional[Dict[str, float]] = None,
                 rng: Optional[random.Random] = None,
                 clock: Callable[[], float] = monotonic_ms,
                 storage: Optional[StorageBackend] = None):
        """
        Create the model.

        Parameters:
        -----------
        initial : dict, optional
            Starting trait values keyed by trait name (attribute or
            persisted spelling). Missing traits are drawn as random
            integers in [0, 100].
        rng : random.Random, optional
            Source of randomness for the missing traits (seed it for
            reproducible pets)
        clock : callable
            Returns "now" in milliseconds; used to stamp modifiers
        storage : StorageBackend, optional
            Where save() / load() persist traits and modifiers
        """
        self._rng = rng or random.Random()
        self._clock = clock
        self.storage = storage

        values = {}
        for name, value in (initial or {}).items():
            values[normalize_trait_name(name)] = value

        # Random integer in [0, 100] for anything not provided
        for name in TRAIT_NAMES:
            if name not in values:
                values[name] = self._rng.randint(0, int(TRAIT_MAX))

        self._traits = PersonalityTraits(**values)
        self._modifiers: List[TraitModifier] = []

    # =========================================================================
    # TRAIT ACCESS
    # =========================================================================

    @property
    def base_traits(self) -> PersonalityTraits:
        """Copy of the stored traits, without modifiers."""
        return self._traits.copy()

    @property
    def modifiers(self) -> List[TraitModifier]:
        """Copy of the held modifier list (may include expired entries)."""
        return list(self._modifiers)

    def effective_traits(self, now: Optional[float] = None) -> PersonalityTraits:
        """
        Base traits with every still-active modifier applied.

        SIDE EFFECT: expired modifiers are removed from the held list.
        See the module docstring - repeated calls are idempotent.

        Parameters:
        -----------
        now : float, optional
            Time in ms (defaults to the model's clock)

        Returns:
        --------
        PersonalityTraits : fresh object, safe for the caller to keep
        """
        if now is None:
            now = self._clock()

        result = self._traits.copy()
        active = []
        for mod in self._modifiers:
            if mod.is_active(now):
                value = clamp_trait(getattr(result, mod.trait) + mod.amount)
                setattr(result, mod.trait, value)
                active.append(mod)

        self._modifiers = active
        return result

    def add_modifier(self, trait: str, amount: float, duration: float) -> TraitModifier:
        """Append a transient modifier stamped with the current time."""
        modifier = TraitModifier(
            trait=normalize_trait_name(trait),
            amount=amount,
            duration=duration,
            start_time=self._clock(),
        )
        self._modifiers.append(modifier)
        return modifier

    def update_trait(self, trait: str, delta: float):
        """Permanently shift a base trait (clamped to [0, 100])."""
        name = normalize_trait_name(trait)
        setattr(self._traits, name, clamp_trait(getattr(self._traits, name) + delta))

    def classify(self, trait: str) -> TraitLevel:
        """
        Band a BASE trait value into low / medium / high.

            value < 33  -> LOW
            value < 66  -> MEDIUM
            otherwise   -> HIGH
        """
        value = self._traits.get(trait)
        if value < self.LOW_BELOW:
            return TraitLevel.LOW
        if value < self.MEDIUM_BELOW:
            return TraitLevel.MEDIUM
        return TraitLevel.HIGH

    # =========================================================================
    # DERIVED BEHAVIOR
    # =========================================================================

    def action_probability(self, action: str, base_chance: float,
                           now: Optional[float] = None) -> float:
        """
        Scale a base chance by the relevant traits.

        =======================================================================
        SCALING RULES (50 is "average", so x/50 is 1.0 for an average pet)
        =======================================================================

            play      base * (playfulness/50) * (energy/50)
            interact  base * (friendliness/50)
            sleep     base * ((100 - energy)/50)
            other     base unchanged

        The result is clamped to [0, 1].

        =======================================================================
        """
        traits = self.effective_traits(now)
        probability = base_chance

        if action == "play":
            probability *= traits.playfulness / 50
            probability *= traits.energy_level / 50
        elif action == "interact":
            probability *= traits.friendliness / 50
        elif action == "sleep":
            probability *= (100 - traits.energy_level) / 50

        return max(0.0, min(1.0, probability))

    def interaction_response(self, interaction: str,
                             now: Optional[float] = None) -> Response:
        """
        Predict the pet's reaction to an interaction.

            pet   friendliness > 70                 -> POSITIVE
                  friendliness < 30                 -> NEGATIVE
            play  playfulness > 70 and energy > 50  -> POSITIVE
                  playfulness < 30 or energy < 20   -> NEGATIVE

        Everything else (including unknown interactions) is NEUTRAL.
        """
        traits = self.effective_traits(now)

        if interaction == "pet":
            if traits.friendliness > 70:
                return Response.POSITIVE
            if traits.friendliness < 30:
                return Response.NEGATIVE
            return Response.NEUTRAL

        if interaction == "play":
            if traits.playfulness > 70 and traits.energy_level > 50:
                return Response.POSITIVE
            if traits.playfulness < 30 or traits.energy_level < 20:
                return Response.NEGATIVE
            return Response.NEUTRAL

        return Response.NEUTRAL

    def evolve(self, interaction: str, outcome: str):
        """
        Permanently nudge traits after an interaction.

            pet   friendliness  +/- step
            play  playfulness   +/- step
                  energy        - step (positive) / - 2*step (negative)

        Only "positive" counts as positive; anything else is treated as a
        negative outcome. Unknown interactions change nothing.
        """
        step = self.EVOLUTION_RATE
        positive = outcome == Response.POSITIVE

        if interaction == "pet":
            self.update_trait("friendliness", step if positive else -step)
        elif interaction == "play":
            self.update_trait("playfulness", step if positive else -step)
            # Playing is tiring either way, more so when it goes badly
            self.update_trait("energy_level", -step if positive else -2 * step)
        else:
            logger.debug("evolve(): ignoring unknown interaction %r", interaction)

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def to_records(self) -> Dict[str, object]:
        """Storage records for the current traits and modifiers."""
        return {
            PERSONALITY_TRAITS_KEY: self._traits.to_dict(),
            PERSONALITY_MODIFIERS_KEY: [m.to_dict() for m in self._modifiers],
        }

    def apply_records(self, data: Dict[str, object]):
        """
        Restore from storage records, field by field.

        A missing or malformed trait keeps its current value; a malformed
        modifier entry is skipped.
        """
        traits = data.get(PERSONALITY_TRAITS_KEY)
        if isinstance(traits, dict):
            for attr, key in TRAIT_KEYS.items():
                value = traits.get(key, traits.get(attr))
                if value is None:
                    continue
                try:
                    setattr(self._traits, attr, clamp_trait(float(value)))
                except (TypeError, ValueError):
                    logger.warning("Ignoring malformed trait %s=%r", key, value)

        modifiers = data.get(PERSONALITY_MODIFIERS_KEY)
        if isinstance(modifiers, list):
            loaded = []
            for entry in modifiers:
                try:
                    loaded.append(TraitModifier.from_dict(entry))
                except (KeyError, TypeError, ValueError):
                    logger.warning("Ignoring malformed modifier %r", entry)
            self._modifiers = loaded

    def save(self) -> bool:
        """Persist traits and modifiers. Returns False (and logs) on failure."""
        if self.storage is None:
            return False
        try:
            self.storage.set(self.to_records())
        except StorageError as e:
            logger.error("Failed to save personality data: %s", e)
            return False
        return True

    def load(self) -> bool:
        """Restore traits and modifiers. Returns False (and logs) on failure."""
        if self.storage is None:
            return False
        try:
            data = self.storage.get([PERSONALITY_TRAITS_KEY, PERSONALITY_MODIFIERS_KEY])
        except StorageError as e:
            logger.error("Failed to load personality data: %s", e)
            return False
        self.apply_records(data)
        return True
