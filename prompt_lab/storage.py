"""
Persistence port.

A tiny key-value interface with full-value overwrite semantics. The workspace
uses the ``prompts`` and ``categories`` namespaces; the session service adds
``users`` and ``session``.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Optional

log = logging.getLogger(__name__)

PROMPTS_KEY = "prompts"
CATEGORIES_KEY = "categories"
USERS_KEY = "users"
SESSION_KEY = "session"


class KeyValueStore(ABC):
    """Abstract key-value store. Values are JSON-compatible structures."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None when the key is absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Overwrite the value stored under ``key``."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""
        pass


class MemoryStore(KeyValueStore):
    """In-process store. Values are deep-copied so callers cannot alias them."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = deepcopy(initial) if initial else {}
        self.writes = 0

    def get(self, key: str) -> Optional[Any]:
        value = self._data.get(key)
        return deepcopy(value) if value is not None else None

    def set(self, key: str, value: Any) -> None:
        self._data[key] = deepcopy(value)
        self.writes += 1

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class JsonFileStore(KeyValueStore):
    """
    Directory-backed store: one ``<key>.json`` file per namespace.

    Writes go to a temp file in the same directory and are moved into place,
    so a crash mid-write never leaves a truncated namespace behind.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory).expanduser()
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            backup = self._quarantine(path)
            log.error("Namespace %s is not valid JSON (%s); moved it to %s", key, e, backup)
            return None

    def _quarantine(self, path: Path) -> Path:
        """Move an unreadable namespace file aside so a later write cannot clobber it."""
        backup = path.with_name(path.name + ".corrupt")
        n = 1
        while backup.exists():
            backup = path.with_name(f"{path.name}.corrupt.{n}")
            n += 1
        os.replace(path, backup)
        return backup

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2, ensure_ascii=False)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        log.debug("Wrote namespace %s (%s)", key, path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(directory={self.directory})"
