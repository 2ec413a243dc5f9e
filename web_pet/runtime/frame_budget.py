"""
Adaptive frame pacing

=============================================================================
FRAME BUDGET OVERVIEW
=============================================================================

The host calls us on every display refresh, which may be 60, 120 or 144
times a second - or far less on a struggling page. FrameBudget decides
which of those callbacks are worth a simulation step.

    budget = 1000 / 60 ms       (target: 60 updates per second)

Once per second it measures the real callback rate:

    fps < 30          -> budget grows to min(1000 / (30 * 0.8), 1000 / 30)
                         i.e. skip frames to give the page some air
    fps > 60 * 1.1    -> budget back to 1000 / 60

The very first call is always admitted.

=============================================================================
"""

from typing import Callable, Dict

from ..character.types import monotonic_ms


class FrameBudget:

    TARGET_FPS = 60
    MIN_FPS = 30
    FPS_UPDATE_INTERVAL = 1000.0

    def __init__(self, clock: Callable[[], float] = monotonic_ms):
        self._clock = clock
        self.reset_metrics()

    def reset_metrics(self):
        self.last_update = 0.0
        self.frame_count = 0
        self.last_fps_update = self._clock()
        self.current_fps = float(self.TARGET_FPS)
        self.frame_budget = 1000.0 / self.TARGET_FPS
        self._first_frame = True

    def should_update(self, now: float) -> bool:
        """True if a simulation step should run for this callback."""
        if self._first_frame:
            self._first_frame = False
            self.last_update = now
            return True

        delta_time = now - self.last_update

        self.frame_count += 1
        if now - self.last_fps_update >= self.FPS_UPDATE_INTERVAL:
            self.current_fps = (self.frame_count * 1000.0) / (now - self.last_fps_update)
            self.frame_count = 0
            self.last_fps_update = now
            self._adjust_budget()

        if delta_time >= self.frame_budget:
            self.last_update = now
            return True
        return False

    def _adjust_budget(self):
        if self.current_fps < self.MIN_FPS:
            self.frame_budget = min(1000.0 / (self.MIN_FPS * 0.8), 1000.0 / 30)
        elif self.current_fps > self.TARGET_FPS * 1.1:
            self.frame_budget = 1000.0 / self.TARGET_FPS

    def fps(self) -> int:
        return round(self.current_fps)

    def metrics(self) -> Dict[str, float]:
        return {
            "fps": self.current_fps,
            "frameTime": self.frame_budget,
            "lastUpdate": self.last_update,
        }
