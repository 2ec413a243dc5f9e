"""
Sprite sheet - resolves frame identifiers to images (Pillow)

=============================================================================
SPRITESHEET LAYOUT
=============================================================================

The pet's sheet is a grid of 64x64 cells, one ROW per animation and one
COLUMN per frame, all drawn FACING RIGHT:

    row 0   idle1 .. idle4
    row 1   walk1 .. walk6
    row 2   run1  .. run6
    row 3   sleep1 .. sleep4
    row 4   play1 .. play6
    row 5   pet1  .. pet4
    row 6   climb1 .. climb4
    row 7+  one row per bridge (idle_walk1 idle_walk2, walk_idle1 ..., ...)

Left-facing frames are the right-facing ones mirrored horizontally, so the
artist only draws half of the frames.

=============================================================================
FRAME IDENTIFIERS
=============================================================================

The animation state machine hands out strings like "walk3_left". That
string is the WHOLE contract:

    "walk3_left"  ->  row 1, column 2, mirrored

Unknown identifiers fall back to "idle1_right" (with a warning), and a
sheet that cannot be loaded yields magenta placeholder frames. Neither
case ever reaches back into the simulation.

=============================================================================
CACHE
=============================================================================

Cropping + mirroring allocates a new image, so resolved frames are cached
per identifier. Entries unused for CACHE_LIFETIME ms are evicted, and the
cache never holds more than MAX_CACHE_SIZE frames (oldest access first).

=============================================================================
"""

import logging
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple, Union

from PIL import Image, ImageOps

from . import catalog
from ..character.types import Facing, monotonic_ms

logger = logging.getLogger(__name__)


PLACEHOLDER_COLOR = (255, 0, 255, 255)
FALLBACK_FRAME = "idle1_right"


def build_frame_map() -> Dict[str, Tuple[int, int]]:
    """Frame name -> (row, column) for every action and bridge frame."""
    frame_map = {}
    row = 0
    for action in catalog.FRAME_COUNTS:
        for col, name in enumerate(catalog.SEQUENCES[action]):
            frame_map[name] = (row, col)
        row += 1
    for bridge in catalog.BRIDGES.values():
        for col, name in enumerate(bridge):
            frame_map[name] = (row, col)
        row += 1
    return frame_map


def split_frame_id(frame_id: str) -> Tuple[str, Facing]:
    """Split "walk3_left" into ("walk3", Facing.LEFT). No suffix means right."""
    name, _, suffix = frame_id.rpartition("_")
    if name and suffix in (Facing.LEFT.value, Facing.RIGHT.value):
        return name, Facing(suffix)
    return frame_id, Facing.RIGHT


class SpriteSheet:
    """
    Loads the pet's spritesheet and serves frames by identifier.

    Parameters:
    -----------
    path : str or Path, optional
        Spritesheet image. None (or an unreadable file) means placeholder
        frames only.
    frame_width, frame_height : int
        Cell size in pixels
    scale : int
        Integer upscale applied to served frames (nearest neighbour)
    clock : callable
        Returns "now" in ms, for cache ageing
    """

    CACHE_LIFETIME = 30_000.0
    MAX_CACHE_SIZE = 50

    def __init__(self, path: Optional[Union[str, Path]] = None,
                 frame_width: int = 64, frame_height: int = 64,
                 scale: int = 1,
                 clock: Callable[[], float] = monotonic_ms):
        self.frame_width = frame_width
        self.frame_height = frame_height
        self.scale = max(1, int(scale))
        self._clock = clock

        self.frame_map = build_frame_map()
        # frame id -> (image, last accessed)
        self._cache: Dict[str, Tuple[Image.Image, float]] = {}

        self.sheet: Optional[Image.Image] = None
        if path is not None:
            try:
                self.sheet = Image.open(path).convert("RGBA")
                logger.info("Loaded spritesheet: %s (%dx%d per frame)",
                            Path(path).name, frame_width, frame_height)
            except (OSError, ValueError) as e:
                logger.error("Could not load spritesheet %s: %s", path, e)

    @property
    def loaded(self) -> bool:
        return self.sheet is not None

    @property
    def size(self) -> Tuple[int, int]:
        return self.frame_width * self.scale, self.frame_height * self.scale

    # =========================================================================
    # FRAME ACCESS
    # =========================================================================

    def region(self, frame_id: str) -> Optional[Tuple[int, int, int, int]]:
        """Crop box (left, top, right, bottom) for a frame id, or None."""
        name, _ = split_frame_id(frame_id)
        cell = self.frame_map.get(name)
        if cell is None:
            return None
        row, col = cell
        x = col * self.frame_width
        y = row * self.frame_height
        return (x, y, x + self.frame_width, y + self.frame_height)

    def get_frame(self, frame_id: str) -> Image.Image:
        """Image for a frame id, served from the cache when possible."""
        now = self._clock()
        cached = self._cache.get(frame_id)
        if cached is not None:
            self._cache[frame_id] = (cached[0], now)
            return cached[0]

        image = self._create_frame(frame_id)
        self._clean_cache(now)
        self._cache[frame_id] = (image, now)
        return image

    def _create_frame(self, frame_id: str) -> Image.Image:
        if self.sheet is None:
            return self._placeholder()

        box = self.region(frame_id)
        if box is None:
            logger.warning("Sprite not found: %s", frame_id)
            box = self.region(FALLBACK_FRAME)
            frame_id = FALLBACK_FRAME

        if box[2] > self.sheet.width or box[3] > self.sheet.height:
            logger.warning("Frame %s lies outside the sheet", frame_id)
            return self._placeholder()

        frame = self.sheet.crop(box)
        if split_frame_id(frame_id)[1] == Facing.LEFT:
            frame = ImageOps.mirror(frame)
        if self.scale > 1:
            frame = frame.resize(self.size, Image.Resampling.NEAREST)
        return frame

    def _placeholder(self) -> Image.Image:
        return Image.new("RGBA", self.size, PLACEHOLDER_COLOR)

    def _clean_cache(self, now: float):
        expired = [fid for fid, (_, seen) in self._cache.items()
                   if now - seen > self.CACHE_LIFETIME]
        for fid in expired:
            del self._cache[fid]

        # Make room for the entry about to be added
        overflow = len(self._cache) - (self.MAX_CACHE_SIZE - 1)
        if overflow > 0:
            oldest = sorted(self._cache.items(), key=lambda item: item[1][1])[:overflow]
            for fid, _ in oldest:
                del self._cache[fid]

    @property
    def cache_size(self) -> int:
        return len(self._cache)
