"""Keeps a serialized copy of store state in a key-value medium.

A medium is anything with read(key) -> str | None and write(key, value).
PersistenceAdapter layers JSON on top and never raises: unreadable data is
treated as absent, failed writes are logged and dropped.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger("mutastore.persistence")


@runtime_checkable
class Medium(Protocol):
    def read(self, key: str) -> str | None: ...

    def write(self, key: str, value: str) -> None: ...


class MemoryMedium:
    """In-process medium. Shared between stores to model one browser profile."""

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(data) if data else {}

    def read(self, key: str) -> str | None:
        return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        self._data[key] = value

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __repr__(self) -> str:
        return f"MemoryMedium({sorted(self._data)!r})"


class FileMedium:
    """One <key>.json file per key inside a directory.

    Writes go through a temporary file and os.replace so a reader never sees
    a half-written entry. The directory is created on first write.
    """

    def __init__(self, directory: str | os.PathLike) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> str | None:
        try:
            return self.path_for(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def write(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp, self.path_for(key))
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def __repr__(self) -> str:
        return f"FileMedium({str(self.directory)!r})"


class PersistenceAdapter:
    """JSON load/save of a state mapping against a Medium."""

    def __init__(self, medium: Medium) -> None:
        self.medium = medium

    def load(self, key: str) -> dict[str, Any] | None:
        """Read and parse the snapshot under key. Absent or unreadable -> None."""
        try:
            raw = self.medium.read(key)
        except Exception:
            logger.exception("Failed to read persisted state %r", key)
            return None
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed persisted state %r", key, exc_info=True)
            return None
        if not isinstance(data, dict):
            logger.warning(
                "Ignoring persisted state %r: expected an object, got %s",
                key, type(data).__name__,
            )
            return None
        return data

    def save(self, key: str, state: dict[str, Any]) -> bool:
        """Serialize and write state under key. Returns False if the write failed."""
        try:
            payload = json.dumps(state)
        except (TypeError, ValueError):
            logger.warning("State for %r is not serializable; not persisted", key, exc_info=True)
            return False
        try:
            self.medium.write(key, payload)
        except Exception:
            logger.exception("Failed to persist state %r", key)
            return False
        return True
