"""
Profile Config Store - Override Resolver

Two-level settings: a global value per setting, optionally superseded per
profile. Each (profile_id, setting) pair is in exactly one state:

- Inherited: the global value applies. A value written while inherited is
  kept as ``staged`` but has no effect on resolution.
- Overridden: the stored value applies (the global value if none is stored).

Toggling on seeds the override with the current global value, so the
effective value never jumps at the moment of toggling. Toggling off drops
the override value.

This state is process-local and not persisted; it is not guarded by the
store's gate and is meant to be driven from one event loop.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from config_store.core.logging import get_logger
from config_store.document.models import SettingValue

logger = get_logger(__name__)


# =============================================================================
# Override States
# =============================================================================


@dataclass(frozen=True)
class Inherited:
    """The profile follows the global value."""

    staged: SettingValue | None = None


@dataclass(frozen=True)
class Overridden:
    """The profile diverges from the global value."""

    value: SettingValue | None = None


OverrideState = Inherited | Overridden

INHERITED: Final[Inherited] = Inherited()


class _Unset:
    def __repr__(self) -> str:
        return "<unset>"


_UNSET: Final = _Unset()


# =============================================================================
# Resolver
# =============================================================================


class OverrideResolver:
    """Process-wide global values plus per-profile overrides."""

    def __init__(self, global_values: dict[str, SettingValue] | None = None) -> None:
        """Initialize the resolver.

        Args:
            global_values: Initial global setting values
        """
        self._globals: dict[str, SettingValue] = dict(global_values or {})
        self._states: dict[tuple[str, str], OverrideState] = {}

    # -------------------------------------------------------------------------
    # Global values
    # -------------------------------------------------------------------------

    def set_global(self, setting: str, value: SettingValue) -> None:
        self._globals[setting] = value

    def get_global(self, setting: str) -> SettingValue | None:
        return self._globals.get(setting)

    @property
    def global_values(self) -> dict[str, SettingValue]:
        return dict(self._globals)

    # -------------------------------------------------------------------------
    # Per-profile overrides
    # -------------------------------------------------------------------------

    def state_of(self, profile_id: str, setting: str) -> OverrideState:
        return self._states.get((profile_id, setting), INHERITED)

    def is_overridden(self, profile_id: str, setting: str) -> bool:
        return isinstance(self.state_of(profile_id, setting), Overridden)

    def resolve(
        self,
        profile_id: str,
        setting: str,
        global_value: SettingValue | None | _Unset = _UNSET,
    ) -> SettingValue | None:
        """Return the effective value of *setting* for *profile_id*.

        Args:
            profile_id: Profile id
            setting: Setting name
            global_value: Global value to fall back to; defaults to the
                stored global value

        Returns:
            The override value when overridden and recorded, else the
            global value
        """
        fallback = self._global_or(setting, global_value)
        state = self.state_of(profile_id, setting)
        if isinstance(state, Overridden) and state.value is not None:
            return state.value
        return fallback

    def set_override(self, profile_id: str, setting: str, value: SettingValue) -> None:
        """Record an override value.

        While the pair is inherited the value is only staged and does not
        change resolve() until the pair is toggled on.
        """
        key = (profile_id, setting)
        if isinstance(self._states.get(key), Overridden):
            self._states[key] = Overridden(value)
        else:
            self._states[key] = Inherited(staged=value)
            logger.debug("override_staged", profile_id=profile_id, setting=setting)

    def toggle(
        self,
        profile_id: str,
        setting: str,
        global_value: SettingValue | None | _Unset = _UNSET,
    ) -> bool:
        """Flip the profile-specific flag of *setting* for *profile_id*.

        Args:
            profile_id: Profile id
            setting: Setting name
            global_value: Current global value used to seed a new override;
                defaults to the stored global value

        Returns:
            True if the pair is overridden after the call
        """
        key = (profile_id, setting)
        if isinstance(self._states.get(key), Overridden):
            del self._states[key]
            logger.debug("override_cleared", profile_id=profile_id, setting=setting)
            return False

        seed = self._global_or(setting, global_value)
        self._states[key] = Overridden(seed)
        logger.debug("override_enabled", profile_id=profile_id, setting=setting)
        return True

    def overrides_for(self, profile_id: str) -> dict[str, SettingValue | None]:
        """Active override values of *profile_id*, by setting name."""
        return {
            setting: state.value
            for (pid, setting), state in self._states.items()
            if pid == profile_id and isinstance(state, Overridden)
        }

    def forget_profile(self, profile_id: str) -> int:
        """Drop every state recorded for *profile_id*.

        Returns:
            Number of entries removed
        """
        keys = [key for key in self._states if key[0] == profile_id]
        for key in keys:
            del self._states[key]
        if keys:
            logger.debug("profile_overrides_forgotten", profile_id=profile_id, count=len(keys))
        return len(keys)

    def _global_or(
        self,
        setting: str,
        global_value: SettingValue | None | _Unset,
    ) -> SettingValue | None:
        if isinstance(global_value, _Unset):
            return self._globals.get(setting)
        return global_value
