"""Client key/value store persisted as a single JSON document (localStorage semantics)."""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Protocol

from src.core.config import config

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class JsonFileStorage:
    """String values keyed by name, stored in one JSON file.

    Reads raise OSError / json.JSONDecodeError to the caller; writes replace the
    file atomically.
    """

    def __init__(self, path: Path | None = None):
        self.path = path or config.local_storage_path
        self._lock = threading.Lock()

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        tmp.replace(self.path)

    def get_item(self, key: str) -> str | None:
        with self._lock:
            value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            try:
                data = self._read_all()
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Local storage unreadable, rewriting %s: %s", self.path, e)
                data = {}
            data[key] = value
            self._write_all(data)

    def remove_item(self, key: str) -> None:
        with self._lock:
            try:
                data = self._read_all()
            except (OSError, json.JSONDecodeError):
                data = {}
            if key in data:
                del data[key]
                self._write_all(data)


class MemoryStorage:
    """Process-local KeyValueStore."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)
