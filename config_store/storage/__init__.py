"""
Storage adapters for the profile config store.

- PersistenceAdapterProtocol: opaque key to blob store (get/set/delete)
- LegacyStateSourceProtocol: read-only legacy global state
- In-memory implementations (memory backend and test fakes)
- JSON file implementations (atomic replace on write)
"""

from config_store.storage.file import JsonFileLegacyState, JsonFilePersistenceAdapter
from config_store.storage.memory import (
    InMemoryLegacyState,
    InMemoryPersistenceAdapter,
    StorageCall,
)
from config_store.storage.protocols import (
    LegacyStateSourceProtocol,
    PersistenceAdapterProtocol,
)

__all__ = [
    "InMemoryLegacyState",
    "InMemoryPersistenceAdapter",
    "JsonFileLegacyState",
    "JsonFilePersistenceAdapter",
    "LegacyStateSourceProtocol",
    "PersistenceAdapterProtocol",
    "StorageCall",
]
