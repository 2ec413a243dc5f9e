"""
Storage collaborator - key/value persistence

=============================================================================
STORAGE OVERVIEW
=============================================================================

The simulation persists a handful of records under a fixed key schema:

    personalityTraits     {playfulness, energyLevel, friendliness}
    personalityModifiers  [{trait, amount, duration, startTime}, ...]
    characterStats        {stats, characterStats, lastSaved}
    achievements          [Achievement, ...]

Two backends share one tiny interface (get / set, both dict based):

    MemoryStorage   - plain dict, used by tests and headless runs
    JsonFileStorage - one JSON document on disk

Backends RAISE StorageError on failure. The systems that call them catch
it, log it, and keep running on in-memory state: a broken disk must never
stop the pet.

=============================================================================
"""

import json
import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

logger = logging.getLogger(__name__)


PERSONALITY_TRAITS_KEY = "personalityTraits"
PERSONALITY_MODIFIERS_KEY = "personalityModifiers"
CHARACTER_STATS_KEY = "characterStats"
ACHIEVEMENTS_KEY = "achievements"


class StorageError(Exception):
    """Raised by a storage backend when a read or write fails."""


class StorageBackend:
    """
    Minimal key/value interface.

    get() returns only the keys that exist; missing keys are simply absent
    from the result (callers fall back to fresh values per field).
    """

    def get(self, keys: Iterable[str]) -> Dict[str, Any]:
        raise NotImplementedError

    def set(self, items: Dict[str, Any]) -> None:
        raise NotImplementedError


class MemoryStorage(StorageBackend):
    """In-process storage. Values are deep-copied in and out."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = deepcopy(initial) if initial else {}

    def get(self, keys: Iterable[str]) -> Dict[str, Any]:
        return {k: deepcopy(self._data[k]) for k in keys if k in self._data}

    def set(self, items: Dict[str, Any]) -> None:
        for key, value in items.items():
            self._data[key] = deepcopy(value)

    @property
    def data(self) -> Dict[str, Any]:
        return self._data


class JsonFileStorage(StorageBackend):
    """
    Stores every key in a single JSON document.

    Writes go to a temporary sibling file first and are then renamed over
    the real one, so a crash mid-write leaves the previous document intact.
    A missing file reads as empty.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Could not read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Unexpected document type in {self.path}: "
                               f"{type(data).__name__}")
        return data

    def get(self, keys: Iterable[str]) -> Dict[str, Any]:
        data = self._read_all()
        return {k: data[k] for k in keys if k in data}

    def set(self, items: Dict[str, Any]) -> None:
        data = self._read_all()
        data.update(items)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            tmp_path.replace(self.path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Could not write {self.path}: {e}") from e
        logger.debug("Saved keys %s to %s", sorted(items), self.path)
