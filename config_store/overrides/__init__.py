"""Per-profile setting overrides on top of global values."""

from config_store.overrides.resolver import (
    Inherited,
    OverrideResolver,
    Overridden,
    OverrideState,
)

__all__ = ["Inherited", "OverrideResolver", "OverrideState", "Overridden"]
