"""
Profile Config Store - Document Model

The single persisted configuration root (ProfileDocument) and its profiles.

Patterns Applied:
- Pydantic BaseModel for persisted, validated state
- Closed union for setting values instead of an open ``Any`` map
- Final constants for well-known setting keys
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import Annotated, Any, Final, Union

from pydantic import (
    AllowInfNan,
    BaseModel,
    ConfigDict,
    Field,
    Strict,
    StrictBool,
    StrictInt,
    StrictStr,
    field_validator,
)

# =============================================================================
# Constants
# =============================================================================

DEFAULT_PROFILE_NAME: Final[str] = "default"

# Setting keys with store-level meaning
PROVIDER_SETTING: Final[str] = "api_provider"
RATE_LIMIT_SETTING: Final[str] = "rate_limit_seconds"

# Numeric, boolean, string and string-set settings. Strict members keep
# True from becoming 1 and "5" from becoming 5 on load. NaN and infinity are
# rejected: JSON has no spelling for them and they would be written as null.
FiniteFloat = Annotated[float, Strict(), AllowInfNan(False)]
SettingValue = Union[StrictBool, StrictInt, FiniteFloat, StrictStr, list[StrictStr]]


# =============================================================================
# Identity
# =============================================================================


def generate_profile_id(existing: Iterable[str] = ()) -> str:
    """Generate a profile id distinct from every id in *existing*.

    Args:
        existing: Ids already in use

    Returns:
        32 character hex id
    """
    taken = set(existing)
    while True:
        candidate = uuid.uuid4().hex
        if candidate not in taken:
            return candidate


# =============================================================================
# Persisted Models
# =============================================================================


class Profile(BaseModel):
    """One named configuration set.

    The name is the key in ``ProfileDocument.profiles``; ``id`` is the stable
    identity used by mode bindings and the override layer.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = ""
    settings: dict[str, SettingValue] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _null_id(cls, value: Any) -> Any:
        # A null id is repaired by the migration engine like a missing one.
        return "" if value is None else value

    @field_validator("settings", mode="before")
    @classmethod
    def _null_settings(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def provider_tag(self) -> str | None:
        """Provider identifier shown next to the profile name."""
        value = self.settings.get(PROVIDER_SETTING)
        return value if isinstance(value, str) else None


class ProfileDocument(BaseModel):
    """The full configuration document.

    Unknown top-level keys written by newer versions are kept and written
    back untouched.
    """

    model_config = ConfigDict(extra="allow")

    current_profile_name: str = DEFAULT_PROFILE_NAME
    profiles: dict[str, Profile] = Field(default_factory=dict)
    mode_bindings: dict[str, str] = Field(default_factory=dict)
    migrations: dict[str, bool] = Field(default_factory=dict)

    @field_validator("profiles", "mode_bindings", "migrations", mode="before")
    @classmethod
    def _null_section(cls, value: Any) -> Any:
        # Stored null sections read as empty, same as absent ones.
        return {} if value is None else value

    def profile_ids(self) -> set[str]:
        """Return every non-empty profile id."""
        return {profile.id for profile in self.profiles.values() if profile.id}

    def is_migrated(self, name: str) -> bool:
        """Whether the named migration has already been applied."""
        return bool(self.migrations.get(name, False))


# =============================================================================
# Projections (never persisted)
# =============================================================================


class ProfileMeta(BaseModel):
    """Listing entry for one profile."""

    name: str
    id: str
    provider_tag: str | None = None


class ConfigSnapshot(BaseModel):
    """State published to the UI layer after each mutation."""

    profiles: list[ProfileMeta] = Field(default_factory=list)
    current_profile_name: str
    mode_bindings: dict[str, str] = Field(default_factory=dict)


def list_profile_meta(document: ProfileDocument) -> list[ProfileMeta]:
    """Project profiles to listing entries in insertion order."""
    return [
        ProfileMeta(name=name, id=profile.id, provider_tag=profile.provider_tag)
        for name, profile in document.profiles.items()
    ]


def build_snapshot(document: ProfileDocument) -> ConfigSnapshot:
    """Build the UI snapshot for *document*."""
    return ConfigSnapshot(
        profiles=list_profile_meta(document),
        current_profile_name=document.current_profile_name,
        mode_bindings=dict(document.mode_bindings),
    )


def create_default_document(
    *,
    rate_limit_seconds: int = 0,
    applied_migrations: Iterable[str] = (),
) -> ProfileDocument:
    """Create the document used when nothing has been persisted yet.

    Fresh installs start with one ``default`` profile and every known
    migration marked applied, since there is no older state to upgrade.

    Args:
        rate_limit_seconds: Rate limit for the default profile
        applied_migrations: Migration names to mark as applied

    Returns:
        New ProfileDocument
    """
    return ProfileDocument(
        current_profile_name=DEFAULT_PROFILE_NAME,
        profiles={
            DEFAULT_PROFILE_NAME: Profile(
                id=generate_profile_id(),
                settings={RATE_LIMIT_SETTING: rate_limit_seconds},
            )
        },
        migrations={name: True for name in applied_migrations},
    )
