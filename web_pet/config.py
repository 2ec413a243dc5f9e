"""
Companion configuration

All tunables in one dataclass. Defaults reproduce the stock pet; a JSON
file (or a dict from the popup's settings message) can override any of
them:

    {
        "viewport_width": 1920,
        "viewport_height": 1080,
        "seed": 42,
        "storage_path": "~/.web_pet/state.json"
    }
"""

import json
import logging
from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class CompanionConfig:
    # Minimum gap between processed ticks (ms) - 60 updates per second
    tick_interval_ms: float = 1000.0 / 60.0

    # Viewport supplied by the renderer, only used for clamping
    viewport_width: float = 1280.0
    viewport_height: float = 720.0
    viewport_margin: float = 50.0

    # Stats persistence cadence (ms)
    save_interval_ms: float = 60_000.0

    # Action durations are jittered by +/- this fraction
    duration_jitter: float = 0.3

    seed: Optional[int] = None
    storage_path: Optional[str] = None

    def __post_init__(self):
        if self.viewport_width <= 0 or self.viewport_height <= 0:
            raise ValueError(f"Viewport must be positive, got "
                             f"{self.viewport_width}x{self.viewport_height}")
        if not 0.0 <= self.duration_jitter < 1.0:
            raise ValueError(f"duration_jitter must be in [0, 1), got {self.duration_jitter}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompanionConfig":
        """Build a config from a mapping, ignoring unknown keys."""
        if not isinstance(data, dict):
            raise ValueError(f"Config must be a JSON object, got {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(unknown)))
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def load(cls, path: Union[str, Path]) -> "CompanionConfig":
        """Read a JSON config file. A missing file gives the defaults."""
        path = Path(path).expanduser()
        if not path.exists():
            logger.info("No config at %s, using defaults", path)
            return cls()
        with path.open("r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def updated(self, changes: Dict[str, Any]) -> "CompanionConfig":
        """Copy of this config with `changes` applied (unknown keys ignored)."""
        merged = asdict(self)
        merged.update(changes)
        return self.from_dict(merged)
