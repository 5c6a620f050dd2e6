"""
Profile Config Store - Storage Protocols

Protocols for the two external collaborators the store consumes.

Pattern: Protocol typing so in-memory fakes and real adapters are
interchangeable (Repository Pattern + FakeClient).
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class PersistenceAdapterProtocol(Protocol):
    """Opaque key to blob store.

    Each call is assumed atomic on its own; nothing is assumed about a get
    followed by a later set.
    """

    async def get(self, key: str) -> str | None:
        """Return the blob stored under *key*, or None when absent."""
        ...

    async def set(self, key: str, blob: str) -> None:
        """Replace the blob stored under *key*."""
        ...

    async def delete(self, key: str) -> None:
        """Remove *key*; deleting an absent key is not an error."""
        ...


@runtime_checkable
class LegacyStateSourceProtocol(Protocol):
    """Read-only view of externally owned global state."""

    async def get(self, key: str) -> Any | None:
        """Return the legacy value for *key*, or None when absent."""
        ...
