"""Tests for PetController: lifecycle, messages and persistence."""

import random

import pytest

from web_pet.config import CompanionConfig
from web_pet.controller import PetController
from web_pet.events import PauseChanged
from web_pet.runtime.storage import JsonFileStorage, PERSONALITY_TRAITS_KEY


@pytest.fixture
def make_controller(storage, clock):
    def _make(seed=5, **config):
        return PetController(CompanionConfig(seed=seed, **config), storage=storage,
                             clock=clock, rng=random.Random(seed))
    return _make


# =============================================================================
# Test: frame driving
# =============================================================================

class TestFrames:

    def test_frame_runs_a_tick(self, make_controller, clock):
        controller = make_controller()
        assert controller.frame(clock.advance(20)) is True
        assert controller.scheduler.stats.time_active == pytest.approx(20)

    def test_paused_controller_skips_frames(self, make_controller, clock):
        controller = make_controller()
        seen = []
        controller.events.subscribe(PauseChanged, seen.append)

        assert controller.handle_message({"type": "PAUSE"}) == {"status": "success", "paused": True}
        assert controller.frame(clock.advance(20)) is False
        controller.handle_message({"type": "PAUSE"})

        controller.handle_message({"type": "RESUME"})
        assert controller.frame(clock.advance(20)) is True
        assert [e.paused for e in seen] == [True, False]


# =============================================================================
# Test: messages
# =============================================================================

class TestMessages:

    def test_unknown_message(self, make_controller):
        controller = make_controller()
        assert controller.handle_message({"type": "FLY"}) == {"error": "Unknown message type"}
        assert controller.handle_message("TOGGLE_PET") == {"error": "Unknown message type"}

    def test_status(self, make_controller):
        status = make_controller().handle_message({"type": "CHECK_STATUS"})
        assert status["active"] is True
        assert status["paused"] is False
        assert status["action"] == "idle"
        assert status["frame"] == "idle1_right"
        assert set(status["traits"]) == {"playfulness", "energyLevel", "friendliness"}
        assert status["achievements"]["explorer"] == 0.0

    def test_toggle_hides_and_saves(self, make_controller, storage, clock):
        controller = make_controller()
        assert controller.handle_message({"type": "TOGGLE_PET"}) == {
            "status": "success", "active": False}
        assert PERSONALITY_TRAITS_KEY in storage.data
        assert controller.frame(clock.advance(20)) is False

        assert controller.handle_message({"type": "TOGGLE_PET"})["active"] is True

    def test_interact(self, make_controller):
        controller = make_controller()
        reply = controller.handle_message({"type": "INTERACT", "interaction": "pet"})
        assert reply == {"status": "success", "handled": True}
        assert controller.scheduler.stats.total_pets == 1

    def test_interact_while_hidden(self, make_controller):
        controller = make_controller()
        controller.toggle()
        reply = controller.handle_message({"type": "INTERACT", "interaction": "pet"})
        assert reply["status"] == "error"
        assert controller.scheduler.stats.total_pets == 0

    def test_update_settings_reclamps(self, make_controller):
        controller = make_controller()
        reply = controller.handle_message({
            "type": "UPDATE_SETTINGS",
            "settings": {"viewport_width": 300, "viewport_height": 200, "theme": "dark"},
        })
        assert reply == {"status": "success"}
        assert controller.config.viewport_width == 300
        position = controller.scheduler.position
        assert 50 <= position.x <= 250
        assert 50 <= position.y <= 150

    def test_update_settings_rejects_bad_viewport(self, make_controller):
        controller = make_controller()
        reply = controller.handle_message({
            "type": "UPDATE_SETTINGS", "settings": {"viewport_width": 0}})
        assert reply["status"] == "error"
        assert controller.config.viewport_width == 1280

    def test_visit_site(self, make_controller):
        controller = make_controller()
        reply = controller.handle_message({"type": "VISIT_SITE", "host": "example.org"})
        assert reply == {"status": "success", "sitesVisited": 1}


# =============================================================================
# Test: persistence
# =============================================================================

class TestPersistence:

    def test_state_survives_restart(self, make_controller):
        first = make_controller(seed=1)
        for _ in range(3):
            first.handle_message({"type": "INTERACT", "interaction": "pet"})
        first.handle_message({"type": "VISIT_SITE", "host": "a.org"})
        traits = first.scheduler.personality.base_traits
        first.shutdown()
        assert first.active is False

        second = make_controller(seed=2)
        assert second.scheduler.stats.total_pets == 3
        assert second.scheduler.personality.base_traits == traits
        assert second.scheduler.progress.sites_visited == 1

    def test_json_file_backend_from_config(self, tmp_path, clock):
        path = tmp_path / "state.json"
        controller = PetController(CompanionConfig(seed=3, storage_path=str(path)), clock=clock)
        assert isinstance(controller.storage, JsonFileStorage)
        controller.shutdown()
        assert path.exists()

    def test_corrupt_state_file_is_not_fatal(self, tmp_path, clock):
        path = tmp_path / "state.json"
        path.write_text("{broken")
        controller = PetController(CompanionConfig(seed=3, storage_path=str(path)), clock=clock)
        assert controller.frame(clock.advance(20)) is True
