"""
Progress tracker - stat counters and the achievement catalog

=============================================================================
PROGRESS OVERVIEW
=============================================================================

Two kinds of bookkeeping live here:

    COUNTERS      named StatProgress entries ({current, total, last_updated})
                  created lazily by record_interaction() the first time a
                  name is seen: "pet", "distanceWalked", "site:<host>", ...

    ACHIEVEMENTS  a FIXED catalog of four milestones, created once in
                  __init__ and only mutated afterwards:

        id            name          goal
        ------------  ------------  --------------------------------------
        first_steps   First Steps   walk 1000 px
        friendly_pet  Friendly Pet  get petted 100 times
        sleepy_head   Sleepy Head   3,600,000 ms (1 hour) of time active
        explorer      Explorer      visit 50 different sites

=============================================================================
ACHIEVEMENT RULES
=============================================================================

    progress   = min(value, max_progress), never lower than before
    completed  flips to True once progress reaches max_progress and
               NEVER flips back, even if the fed value later drops

Completion emits an AchievementCompleted event and saves the catalog.

=============================================================================
PERSISTENCE CADENCE
=============================================================================

update_stats() runs every tick. Every SAVE_INTERVAL ms (60 s) it hands the
counters, character stats and achievement catalog to the storage
collaborator. The persisted "lastSaved" stamp is wall-clock time, so it
stays meaningful in the next process. Failures are
logged and ignored - the in-memory state stays authoritative.

=============================================================================
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .types import CharacterStats, monotonic_ms, wall_clock_ms
from ..events import EventBus, AchievementCompleted
from ..runtime.storage import (
    StorageBackend, StorageError, CHARACTER_STATS_KEY, ACHIEVEMENTS_KEY,
)

logger = logging.getLogger(__name__)


@dataclass
class Achievement:
    id: str
    name: str
    description: str
    max_progress: float
    progress: float = 0.0
    completed: bool = False
    reward: Optional[str] = None

    @property
    def ratio(self) -> float:
        return self.progress / self.max_progress if self.max_progress else 0.0

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "progress": self.progress,
            "maxProgress": self.max_progress,
            "completed": self.completed,
            "reward": self.reward,
        }


@dataclass
class StatProgress:
    current: float = 0.0
    total: float = 0.0
    last_updated: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"current": self.current, "total": self.total,
                "lastUpdated": self.last_updated}

    @classmethod
    def from_dict(cls, data: Dict[str, float]) -> "StatProgress":
        return cls(current=float(data.get("current", 0.0)),
                   total=float(data.get("total", 0.0)),
                   last_updated=float(data.get("lastUpdated", 0.0)))


# (id, name, description, max_progress)
ACHIEVEMENT_CATALOG = (
    ("first_steps", "First Steps", "Walk 1000 pixels total", 1000),
    ("friendly_pet", "Friendly Pet", "Get petted 100 times", 100),
    ("sleepy_head", "Sleepy Head", "Sleep for 1 hour total", 3_600_000),
    ("explorer", "Explorer", "Visit 50 different websites", 50),
)

DISTANCE_COUNTER = "distanceWalked"
SITE_COUNTER_PREFIX = "site:"


class ProgressTracker:
    """
    Accumulates counters and evaluates the achievement catalog.

    Parameters:
    -----------
    storage : StorageBackend, optional
        Persistence target for counters and achievements
    events : EventBus, optional
        Receives AchievementCompleted notifications
    clock : callable
        Returns "now" in milliseconds
    save_interval : float
        Milliseconds between periodic stats saves
    """

    SAVE_INTERVAL = 60_000.0

    # Estimated pixels walked per millisecond once walking has started
    DISTANCE_PER_MS = 0.1

    def __init__(self, storage: Optional[StorageBackend] = None,
                 events: Optional[EventBus] = None,
                 clock: Callable[[], float] = monotonic_ms,
                 save_interval: Optional[float] = None):
        self.storage = storage
        self.events = events or EventBus()
        self._clock = clock
        self.save_interval = self.SAVE_INTERVAL if save_interval is None else save_interval

        self.stats: Dict[str, StatProgress] = {}
        self.achievements: Dict[str, Achievement] = {
            aid: Achievement(id=aid, name=name, description=desc, max_progress=mx)
            for aid, name, desc, mx in ACHIEVEMENT_CATALOG
        }
        self.last_save = self._clock()

    # =========================================================================
    # PER-TICK UPDATE
    # =========================================================================

    def update_stats(self, stats: CharacterStats, delta_time: float,
                     now: Optional[float] = None):
        """
        Advance counters by one tick.

        1. stats.time_active += delta_time
        2. If the distance counter exists, add delta_time * 0.1 to it and
           check First Steps
        3. Check Friendly Pet and Sleepy Head against current totals
        4. Save stats when SAVE_INTERVAL has elapsed

        A large delta_time after a pause is applied in one step.
        """
        if now is None:
            now = self._clock()

        stats.time_active += delta_time

        walk = self.stats.get(DISTANCE_COUNTER)
        if walk is not None:
            walk.current += delta_time * self.DISTANCE_PER_MS
            walk.total += delta_time * self.DISTANCE_PER_MS
            walk.last_updated = now
            self.check_achievement("first_steps", walk.current, now)

        self.check_achievement("friendly_pet", stats.total_pets, now)
        self.check_achievement("sleepy_head", stats.time_active, now)

        if now - self.last_save >= self.save_interval:
            self.save_stats(stats)
            self.save_achievements()
            self.last_save = now

    def check_achievement(self, achievement_id: str, current_value: float,
                          now: Optional[float] = None):
        """
        Feed a value to one achievement.

        Progress is clamped to max_progress and never decreases. Reaching
        the max marks it completed (once) and emits AchievementCompleted.
        Unknown ids are ignored.
        """
        achievement = self.achievements.get(achievement_id)
        if achievement is None or achievement.completed:
            return

        progress = min(current_value, achievement.max_progress)
        if progress > achievement.progress:
            achievement.progress = progress

        if achievement.progress >= achievement.max_progress:
            achievement.completed = True
            self._on_achievement_complete(achievement, now)

    def _on_achievement_complete(self, achievement: Achievement, now: Optional[float]):
        logger.info("Achievement completed: %s", achievement.name)
        self.events.emit(AchievementCompleted(
            time=self._clock() if now is None else now,
            achievement_id=achievement.id,
            name=achievement.name,
            description=achievement.description,
            reward=achievement.reward,
        ))
        self.save_achievements()

    # =========================================================================
    # COUNTERS
    # =========================================================================

    def record_interaction(self, kind: str, value: float = 1):
        """Add `value` to a named counter, creating it on first use."""
        now = self._clock()
        stat = self.stats.get(kind)
        if stat is None:
            logger.debug("Creating counter %r", kind)
            stat = StatProgress(last_updated=now)
            self.stats[kind] = stat

        stat.current += value
        stat.total += value
        stat.last_updated = now

    def record_site_visit(self, host: str):
        """
        Count a visit to a site and feed the Explorer achievement.

        Each host gets its own "site:<host>" counter, so the number of
        distinct sites survives a save/load cycle with the other counters.
        """
        if not host:
            return
        self.record_interaction(SITE_COUNTER_PREFIX + host)
        self.check_achievement("explorer", self.sites_visited)

    @property
    def sites_visited(self) -> int:
        return sum(1 for name in self.stats if name.startswith(SITE_COUNTER_PREFIX))

    def counter(self, kind: str) -> Optional[StatProgress]:
        return self.stats.get(kind)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def achievement_progress(self, achievement_id: str) -> float:
        """Fraction complete in [0, 1]; 0 for unknown ids."""
        achievement = self.achievements.get(achievement_id)
        return achievement.ratio if achievement else 0.0

    def all_achievements(self) -> List[Achievement]:
        return list(self.achievements.values())

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def save_stats(self, stats: CharacterStats) -> bool:
        if self.storage is None:
            return False
        record = {
            "stats": {name: s.to_dict() for name, s in self.stats.items()},
            "characterStats": stats.to_dict(),
            "lastSaved": wall_clock_ms(),
        }
        try:
            self.storage.set({CHARACTER_STATS_KEY: record})
        except StorageError as e:
            logger.error("Failed to save stats: %s", e)
            return False
        return True

    def save_achievements(self) -> bool:
        if self.storage is None:
            return False
        try:
            self.storage.set({ACHIEVEMENTS_KEY: [a.to_dict() for a in self.achievements.values()]})
        except StorageError as e:
            logger.error("Failed to save achievements: %s", e)
            return False
        return True

    def load_saved_data(self) -> Optional[CharacterStats]:
        """
        Restore counters and achievements from storage.

        Achievements are merged into the fixed catalog: unknown ids are
        dropped, progress never goes down and completed never reverts.

        Returns:
        --------
        CharacterStats or None : the persisted character stats, if any
        """
        if self.storage is None:
            return None
        try:
            data = self.storage.get([CHARACTER_STATS_KEY, ACHIEVEMENTS_KEY])
        except StorageError as e:
            logger.error("Failed to load saved data: %s", e)
            return None

        character_stats = None
        record = data.get(CHARACTER_STATS_KEY)
        if isinstance(record, dict):
            counters = record.get("stats")
            if isinstance(counters, dict):
                for name, entry in counters.items():
                    try:
                        self.stats[name] = StatProgress.from_dict(entry)
                    except (AttributeError, TypeError, ValueError):
                        logger.warning("Ignoring malformed counter %r", name)
            if "characterStats" in record:
                character_stats = CharacterStats.from_dict(record["characterStats"])

        saved = data.get(ACHIEVEMENTS_KEY)
        if isinstance(saved, list):
            for entry in saved:
                self._merge_achievement(entry)

        logger.info("Loaded %d counters, %d/%d achievements completed",
                    len(self.stats),
                    sum(a.completed for a in self.achievements.values()),
                    len(self.achievements))
        return character_stats

    def _merge_achievement(self, entry):
        if not isinstance(entry, dict):
            return
        achievement = self.achievements.get(entry.get("id"))
        if achievement is None:
            return
        try:
            progress = min(float(entry.get("progress", 0.0)), achievement.max_progress)
        except (TypeError, ValueError):
            progress = 0.0
        achievement.progress = max(achievement.progress, progress)
        if entry.get("completed") is True:
            achievement.completed = True
        if entry.get("reward") and achievement.reward is None:
            achievement.reward = str(entry["reward"])
