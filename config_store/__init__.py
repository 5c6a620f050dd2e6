"""Profile Config Store: persisted multi-profile configuration.

This package provides:
- A single JSON document holding named profiles, the current profile and
  mode bindings, accessed through a FIFO gate
- One-time, write-through schema migrations
- Per-profile overrides of global settings

The HTTP surface lives in ``config_store.main``.
"""

from config_store.overrides.resolver import OverrideResolver
from config_store.store.profiles import ProfileStore

__version__ = "0.1.0"
__all__ = ["OverrideResolver", "ProfileStore", "__version__"]
