"""
Profile Config Store - In-Memory Storage

Process-local adapters implementing the storage protocols. Used for the
``memory`` backend and as fakes in tests: they record every call and can be
told to fail or to stall, which makes interleavings reproducible.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class StorageCall:
    """One recorded adapter call."""

    method: str
    key: str
    blob: str | None = None


class InMemoryPersistenceAdapter:
    """Dict-backed persistence adapter.

    Implements PersistenceAdapterProtocol for duck typing.
    """

    def __init__(
        self,
        initial: dict[str, str] | None = None,
        delay: float = 0.0,
        record_calls: bool = False,
    ) -> None:
        """Initialize the adapter.

        Args:
            initial: Blobs present before the first call
            delay: Seconds every call sleeps before touching the data
            record_calls: Keep every call (with its blob) in ``calls``; for
                tests only, since the list grows with every write
        """
        self._data: dict[str, str] = dict(initial or {})
        self.delay = delay
        self.record_calls = record_calls
        self.calls: list[StorageCall] = []
        self._failures: dict[str, Exception] = {}

    async def get(self, key: str) -> str | None:
        await self._enter("get", key)
        return self._data.get(key)

    async def set(self, key: str, blob: str) -> None:
        await self._enter("set", key, blob)
        self._data[key] = blob

    async def delete(self, key: str) -> None:
        await self._enter("delete", key)
        self._data.pop(key, None)

    def fail_on(self, method: str, error: Exception) -> None:
        """Make every later call to *method* raise *error*."""
        self._failures[method] = error

    def clear_failures(self) -> None:
        self._failures.clear()

    def peek(self, key: str) -> str | None:
        """Read a blob without recording a call."""
        return self._data.get(key)

    @property
    def writes(self) -> list[StorageCall]:
        return [call for call in self.calls if call.method == "set"]

    async def _enter(self, method: str, key: str, blob: str | None = None) -> None:
        if self.record_calls:
            self.calls.append(StorageCall(method=method, key=key, blob=blob))
        if self.delay:
            await asyncio.sleep(self.delay)
        else:
            await asyncio.sleep(0)
        error = self._failures.get(method)
        if error is not None:
            raise error


class InMemoryLegacyState:
    """Dict-backed legacy global state source.

    Implements LegacyStateSourceProtocol for duck typing.
    """

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(values or {})
        self.reads: list[str] = []

    async def get(self, key: str) -> Any | None:
        self.reads.append(key)
        await asyncio.sleep(0)
        return self._values.get(key)
