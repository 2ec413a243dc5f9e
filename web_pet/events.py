"""
Event bus for notifications leaving the simulation core

The core never talks to a UI directly. It emits small event objects and
whoever cares (popup, viewer, logger, tests) subscribes to them:

    bus = EventBus()
    bus.subscribe(AchievementCompleted, lambda e: print(e.name))
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

logger = logging.getLogger(__name__)


@dataclass
class PetEvent:
    """Base class for all events. `time` is the simulation clock in ms."""
    time: float = 0.0


@dataclass
class AchievementCompleted(PetEvent):
    achievement_id: str = ""
    name: str = ""
    description: str = ""
    reward: Optional[str] = None


@dataclass
class ActionChanged(PetEvent):
    previous: Optional[str] = None
    current: str = ""
    duration: float = 0.0
    target: Any = None


@dataclass
class PauseChanged(PetEvent):
    paused: bool = False


T = TypeVar("T", bound=PetEvent)
EventHandler = Callable[[PetEvent], None]


class EventBus:
    """
    Simple pub/sub bus.

    Handlers for the exact event type run first, then global handlers.
    Handlers run synchronously inside emit(); a handler that raises
    propagates to the emitter.
    """

    def __init__(self):
        self._handlers: Dict[Type[PetEvent], List[EventHandler]] = defaultdict(list)
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: Type[T], handler: Callable[[T], None]):
        self._handlers[event_type].append(handler)

    def subscribe_all(self, handler: EventHandler):
        self._global_handlers.append(handler)

    def unsubscribe(self, event_type: Type[T], handler: Callable[[T], None]):
        if handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)

    def emit(self, event: PetEvent):
        logger.debug("emit %s", event)
        for handler in list(self._handlers[type(event)]):
            handler(event)
        for handler in list(self._global_handlers):
            handler(event)

    def handler_count(self, event_type: Optional[Type[PetEvent]] = None) -> int:
        if event_type is None:
            return sum(len(h) for h in self._handlers.values()) + len(self._global_handlers)
        return len(self._handlers[event_type])
