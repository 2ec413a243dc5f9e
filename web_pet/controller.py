"""
Pet controller - owns one companion and connects it to the outside world

=============================================================================
CONTROLLER OVERVIEW
=============================================================================

The simulation core (scheduler, personality, animation, progress) knows
nothing about windows, storage files or messages. PetController is the
single object a host creates to run a pet:

    PetController
    ├── storage      : StorageBackend      <- JSON file or memory
    ├── events       : EventBus            <- achievements, action changes
    ├── scheduler    : BehaviorScheduler   <- the pet itself
    ├── frame_budget : FrameBudget         <- which callbacks get a tick
    │
    ├── frame(now)            <- call on every display refresh
    ├── handle_message(msg)   <- popup / extension messages
    └── shutdown()            <- persist everything

It is constructed explicitly and passed around by reference; there is no
global instance.

=============================================================================
MESSAGES
=============================================================================

    {"type": "TOGGLE_PET"}                     show / hide the pet
    {"type": "CHECK_STATUS"}                   status dictionary
    {"type": "UPDATE_SETTINGS", "settings": {...}}
    {"type": "INTERACT", "interaction": "pet" | "play", "target": ...}
    {"type": "PAUSE"} / {"type": "RESUME"}
    {"type": "VISIT_SITE", "host": "example.org"}

Every reply is a dict; unknown types answer {"error": "Unknown message type"}.

=============================================================================
"""

import logging
import random
from typing import Any, Callable, Dict, Optional

from .character.personality import PersonalityModel
from .character.progress import ProgressTracker
from .character.scheduler import BehaviorScheduler
from .character.types import monotonic_ms
from .animation.state_machine import AnimationStateMachine
from .config import CompanionConfig
from .events import EventBus, PauseChanged
from .runtime.frame_budget import FrameBudget
from .runtime.storage import JsonFileStorage, MemoryStorage, StorageBackend

logger = logging.getLogger(__name__)


class PetController:
    """
    Builds, drives and persists one companion.

    Parameters:
    -----------
    config : CompanionConfig, optional
        Tunables (defaults if omitted)
    storage : StorageBackend, optional
        Overrides config.storage_path
    clock : callable
        Returns "now" in ms
    rng : random.Random, optional
        Randomness for traits and decisions (seeded from config.seed
        when omitted)
    load : bool
        Restore persisted state right away
    """

    SETTINGS_KEYS = ("viewport_width", "viewport_height", "viewport_margin")

    def __init__(self, config: Optional[CompanionConfig] = None,
                 storage: Optional[StorageBackend] = None,
                 clock: Callable[[], float] = monotonic_ms,
                 rng: Optional[random.Random] = None,
                 load: bool = True):
        self.config = config or CompanionConfig()
        self._clock = clock

        if storage is None:
            if self.config.storage_path:
                storage = JsonFileStorage(self.config.storage_path)
            else:
                storage = MemoryStorage()
        self.storage = storage

        rng = rng or random.Random(self.config.seed)
        self.events = EventBus()

        personality = PersonalityModel(rng=rng, clock=clock, storage=storage)
        progress = ProgressTracker(storage=storage, events=self.events, clock=clock,
                                   save_interval=self.config.save_interval_ms)
        self.scheduler = BehaviorScheduler(
            personality=personality,
            progress=progress,
            animation=AnimationStateMachine(clock=clock),
            events=self.events,
            config=self.config,
            rng=rng,
            clock=clock,
        )
        self.frame_budget = FrameBudget(clock=clock)
        self.active = True

        if load:
            self.load()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def load(self):
        """Restore personality, counters and achievements (non-fatal)."""
        self.scheduler.personality.load()
        stats = self.scheduler.progress.load_saved_data()
        if stats is not None:
            self.scheduler.stats = stats

    def save(self):
        scheduler = self.scheduler
        scheduler.personality.save()
        scheduler.progress.save_stats(scheduler.stats)
        scheduler.progress.save_achievements()

    def shutdown(self):
        logger.info("Shutting down pet, saving state")
        self.save()
        self.active = False

    def frame(self, now: Optional[float] = None) -> bool:
        """
        Display-refresh callback. Returns True if a simulation tick ran.
        """
        if not self.active or self.scheduler.paused:
            return False
        if now is None:
            now = self._clock()
        if not self.frame_budget.should_update(now):
            return False
        return self.scheduler.tick(now)

    def pause(self):
        if not self.scheduler.paused:
            self.scheduler.pause()
            logger.info("Pet paused")
            self.events.emit(PauseChanged(time=self._clock(), paused=True))

    def resume(self):
        if self.scheduler.paused:
            self.scheduler.resume()
            logger.info("Pet resumed")
            self.events.emit(PauseChanged(time=self._clock(), paused=False))

    def toggle(self) -> bool:
        """Show/hide the pet. Hiding saves state. Returns the new `active`."""
        if self.active:
            self.save()
            self.active = False
        else:
            self.active = True
            self.frame_budget.reset_metrics()
        return self.active

    # =========================================================================
    # MESSAGES
    # =========================================================================

    def handle_message(self, message: Dict[str, Any]) -> Dict[str, Any]:
        kind = message.get("type") if isinstance(message, dict) else None

        if kind == "TOGGLE_PET":
            return {"status": "success", "active": self.toggle()}

        if kind == "CHECK_STATUS":
            return self.status()

        if kind == "UPDATE_SETTINGS":
            return self._update_settings(message.get("settings") or {})

        if kind == "INTERACT":
            if not self.active:
                return {"status": "error", "message": "Pet not active"}
            handled = self.scheduler.handle_interaction(
                message.get("interaction", ""), message.get("target"))
            return {"status": "success", "handled": handled}

        if kind == "PAUSE":
            self.pause()
            return {"status": "success", "paused": True}

        if kind == "RESUME":
            self.resume()
            return {"status": "success", "paused": False}

        if kind == "VISIT_SITE":
            self.scheduler.progress.record_site_visit(message.get("host", ""))
            return {"status": "success",
                    "sitesVisited": self.scheduler.progress.sites_visited}

        return {"error": "Unknown message type"}

    def _update_settings(self, settings: Dict[str, Any]) -> Dict[str, Any]:
        if not self.active:
            return {"status": "error", "message": "Pet not active"}

        changes = {k: settings[k] for k in self.SETTINGS_KEYS if k in settings}
        try:
            self.scheduler.set_viewport(
                changes.get("viewport_width", self.config.viewport_width),
                changes.get("viewport_height", self.config.viewport_height),
                changes.get("viewport_margin"),
            )
        except (TypeError, ValueError) as e:
            return {"status": "error", "message": str(e)}

        self.config = self.scheduler.config
        return {"status": "success"}

    def status(self) -> Dict[str, Any]:
        scheduler = self.scheduler
        position = scheduler.position
        return {
            "initialized": True,
            "active": self.active,
            "paused": scheduler.paused,
            "fps": self.frame_budget.fps(),
            "action": scheduler.current_action.type.value,
            "frame": scheduler.current_frame(),
            "position": {"x": position.x, "y": position.y},
            "traits": scheduler.personality.effective_traits().to_dict(),
            "achievements": {
                a.id: scheduler.progress.achievement_progress(a.id)
                for a in scheduler.progress.all_achievements()
            },
        }
