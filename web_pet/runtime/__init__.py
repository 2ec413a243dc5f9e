"""Host-facing runtime pieces: persistence and frame pacing"""

from .storage import StorageBackend, MemoryStorage, JsonFileStorage, StorageError
from .frame_budget import FrameBudget

__all__ = ["StorageBackend", "MemoryStorage", "JsonFileStorage", "StorageError", "FrameBudget"]
