"""
Profile store: gated access, migrations and snapshot notifications.
"""

from config_store.store.events import ChangeNotifier, SnapshotListener
from config_store.store.gate import SerializedAccessGate
from config_store.store.migrations import (
    DEFAULT_RATE_LIMIT_SECONDS,
    MIGRATIONS,
    RATE_LIMIT_INHERITANCE,
    Migration,
    MigrationContext,
    MigrationEngine,
)
from config_store.store.profiles import DEFAULT_STORAGE_KEY, ProfileStore

__all__ = [
    "DEFAULT_RATE_LIMIT_SECONDS",
    "DEFAULT_STORAGE_KEY",
    "MIGRATIONS",
    "RATE_LIMIT_INHERITANCE",
    "ChangeNotifier",
    "Migration",
    "MigrationContext",
    "MigrationEngine",
    "ProfileStore",
    "SerializedAccessGate",
    "SnapshotListener",
]
