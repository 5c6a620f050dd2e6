"""
Helpers shared by the profile config store tests.
"""

from __future__ import annotations

import json
from typing import Any

from config_store.storage.memory import InMemoryPersistenceAdapter
from config_store.store.profiles import DEFAULT_STORAGE_KEY

MIGRATED: dict[str, bool] = {"rate_limit_inheritance": True}


def make_document(
    profiles: dict[str, dict[str, Any]],
    *,
    current: str = "default",
    mode_bindings: dict[str, str] | None = None,
    migrations: dict[str, bool] | None = None,
    **extra: Any,
) -> str:
    """Serialize a stored document the way the store writes it."""
    document: dict[str, Any] = {
        "current_profile_name": current,
        "profiles": profiles,
        "mode_bindings": mode_bindings or {},
        **extra,
    }
    if migrations is not None:
        document["migrations"] = migrations
    return json.dumps(document)


def read_stored(adapter: InMemoryPersistenceAdapter) -> dict[str, Any]:
    """Parse the document currently held by *adapter*."""
    blob = adapter.peek(DEFAULT_STORAGE_KEY)
    assert blob is not None, "no document persisted"
    return json.loads(blob)
