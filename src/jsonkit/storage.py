"""Key-value persistence used for settings and user schemas."""

from __future__ import annotations

import copy
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)


class StorageError(OSError):
    """Raised when a store cannot be written."""


class KeyValueStore(ABC):
    """Load/save JSON-compatible values by string key."""

    @abstractmethod
    def get(self, key: str) -> object | None: ...

    @abstractmethod
    def set(self, key: str, value: object) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...


class MemoryStore(KeyValueStore):
    def __init__(self, data: dict[str, object] | None = None) -> None:
        self._data: dict[str, object] = copy.deepcopy(data) if data else {}

    def get(self, key: str) -> object | None:
        return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: object) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """Store backed by a single JSON object file.

    A missing or unreadable file behaves as an empty store. Every write
    rewrites the whole file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, object]:
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.warning("cannot read %s: %s", self.path, e)
            return {}

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning("ignoring corrupt store %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("ignoring non-object store %s", self.path)
            return {}
        return data

    def _write(self, data: dict[str, object]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8"
            )
        except OSError as e:
            raise StorageError(f"cannot write {self.path}: {e}") from e

    def get(self, key: str) -> object | None:
        return self._read().get(key)

    def set(self, key: str, value: object) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)
