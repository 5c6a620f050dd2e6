"""
Profile Config Store - JSON File Storage

File-backed adapters. One file per key under a directory; every write goes
to a temporary sibling first and is moved into place with ``os.replace`` so
a crash never leaves a half-written document behind.

Blocking file I/O runs in a worker thread (``asyncio.to_thread``) so the
event loop keeps serving queued callers.
"""

from __future__ import annotations

import asyncio
import json
import os
import re
from pathlib import Path
from typing import Any, Final

from config_store.core.exceptions import ConfigurationError
from config_store.core.logging import get_logger

logger = get_logger(__name__)

_KEY_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9_.-]+$")
FILE_SUFFIX: Final[str] = ".json"


class JsonFilePersistenceAdapter:
    """Persistence adapter storing each key as ``<directory>/<key>.json``.

    Implements PersistenceAdapterProtocol for duck typing.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        """Return the file holding *key*.

        Raises:
            ConfigurationError: If *key* is not a safe file name
        """
        if not _KEY_PATTERN.match(key) or key in {".", ".."}:
            raise ConfigurationError(f"Storage key {key!r} is not a valid file name")
        return self.directory / f"{key}{FILE_SUFFIX}"

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._read, self.path_for(key))

    async def set(self, key: str, blob: str) -> None:
        await asyncio.to_thread(self._write, self.path_for(key), blob)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._remove, self.path_for(key))

    @staticmethod
    def _read(path: Path) -> str | None:
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    @staticmethod
    def _write(path: Path, blob: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(blob, encoding="utf-8")
        os.replace(tmp, path)
        logger.debug("config_blob_written", path=str(path), size=len(blob))

    @staticmethod
    def _remove(path: Path) -> None:
        path.unlink(missing_ok=True)
        logger.debug("config_blob_deleted", path=str(path))


class JsonFileLegacyState:
    """Legacy global state read from a flat JSON object file.

    The file is re-read on every lookup; it is owned by someone else and may
    change between calls. A missing file means every key is absent.

    Implements LegacyStateSourceProtocol for duck typing.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def get(self, key: str) -> Any | None:
        data = await asyncio.to_thread(self._load)
        return data.get(key)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{self.path.name} root is not an object")
        return data
