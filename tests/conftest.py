"""
Shared fixtures for the profile config store tests.

Patterns Applied:
- FakeClient pattern: in-memory adapters stand in for real storage and
  record every call
- Documents seeded as JSON text, exactly as a real adapter would return them
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from config_store.storage.memory import InMemoryLegacyState, InMemoryPersistenceAdapter
from config_store.store.profiles import DEFAULT_STORAGE_KEY, ProfileStore


@pytest.fixture
def adapter() -> InMemoryPersistenceAdapter:
    """Empty in-memory persistence adapter."""
    return InMemoryPersistenceAdapter(record_calls=True)


@pytest.fixture
def legacy_state() -> InMemoryLegacyState:
    """Legacy global state without any values."""
    return InMemoryLegacyState()


@pytest.fixture
def store(adapter: InMemoryPersistenceAdapter, legacy_state: InMemoryLegacyState) -> ProfileStore:
    """Store over a fresh (never persisted) in-memory adapter."""
    return ProfileStore(adapter, legacy_state=legacy_state)


@pytest.fixture
def seeded_store() -> Callable[..., tuple[ProfileStore, InMemoryPersistenceAdapter]]:
    """Factory building a store over an adapter holding a given document."""

    def factory(
        blob: str,
        *,
        legacy: dict[str, Any] | None = None,
        delay: float = 0.0,
    ) -> tuple[ProfileStore, InMemoryPersistenceAdapter]:
        seeded = InMemoryPersistenceAdapter(
            {DEFAULT_STORAGE_KEY: blob}, delay=delay, record_calls=True
        )
        return ProfileStore(seeded, legacy_state=InMemoryLegacyState(legacy)), seeded

    return factory
