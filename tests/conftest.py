"""Shared pytest fixtures for Web Pet tests."""

import random

import pytest

from web_pet.animation.state_machine import AnimationStateMachine
from web_pet.character.personality import PersonalityModel
from web_pet.character.progress import ProgressTracker
from web_pet.character.scheduler import BehaviorScheduler
from web_pet.config import CompanionConfig
from web_pet.events import EventBus
from web_pet.runtime.storage import MemoryStorage


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: float = 10_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now


# =============================================================================
# Infrastructure Fixtures
# =============================================================================

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def config():
    return CompanionConfig(seed=1234)


# =============================================================================
# Character Fixtures
# =============================================================================

@pytest.fixture
def make_personality(clock, rng, storage):
    """Factory: personality with fixed traits on the shared clock."""
    def _make(playfulness=50, energy_level=50, friendliness=50):
        return PersonalityModel(
            {"playfulness": playfulness, "energy_level": energy_level,
             "friendliness": friendliness},
            rng=rng, clock=clock, storage=storage,
        )
    return _make


@pytest.fixture
def progress(storage, events, clock):
    return ProgressTracker(storage=storage, events=events, clock=clock)


@pytest.fixture
def make_scheduler(make_personality, progress, events, config, rng, clock):
    """Factory: scheduler with fixed traits, sharing all fixtures."""
    def _make(**traits):
        return BehaviorScheduler(
            personality=make_personality(**traits),
            progress=progress,
            animation=AnimationStateMachine(clock=clock),
            events=events,
            config=config,
            rng=rng,
            clock=clock,
        )
    return _make
