"""
Profile Config Store - Migration Engine

One-time upgrades of the persisted document, tracked by name in
``ProfileDocument.migrations``.

Rules every step follows:
- runs on a deep copy; the copy is adopted only after it was written
- is marked applied in the same write that persists its effect, so a crash
  can never replay it
- reads legacy global state through the context and falls back to the
  documented default when that state is absent or unreadable

Patterns Applied:
- Fixed, ordered registry of frozen Migration records
- Write-through per step (no batching of one-time effects)
"""

from __future__ import annotations

import math
import numbers
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Final

from config_store.core.exceptions import MigrationError
from config_store.core.logging import get_logger
from config_store.document.models import (
    RATE_LIMIT_SETTING,
    ProfileDocument,
    generate_profile_id,
)
from config_store.storage.protocols import LegacyStateSourceProtocol

logger = get_logger(__name__)

DEFAULT_RATE_LIMIT_SECONDS: Final[int] = 5
LEGACY_RATE_LIMIT_KEY: Final[str] = "rate_limit_seconds"

DocumentWriter = Callable[[ProfileDocument], Awaitable[None]]


# =============================================================================
# Migration Context
# =============================================================================


@dataclass(frozen=True)
class MigrationContext:
    """External inputs a migration step may consult."""

    legacy_state: LegacyStateSourceProtocol | None = None
    legacy_rate_limit_key: str = LEGACY_RATE_LIMIT_KEY
    default_rate_limit_seconds: int = DEFAULT_RATE_LIMIT_SECONDS


async def read_legacy_rate_limit(context: MigrationContext) -> int | float | None:
    """Read the legacy global rate limit.

    Returns None when there is no legacy source, the key is absent, the value
    is not a finite number, or the source could not be read.
    """
    if context.legacy_state is None:
        return None

    try:
        value = await context.legacy_state.get(context.legacy_rate_limit_key)
    except Exception as e:
        logger.warning(
            "legacy_rate_limit_unreadable",
            key=context.legacy_rate_limit_key,
            error=f"{type(e).__name__}: {e}",
        )
        return None

    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        logger.warning(
            "legacy_rate_limit_ignored",
            key=context.legacy_rate_limit_key,
            value_type=type(value).__name__,
        )
        return None
    if isinstance(value, float) and not math.isfinite(value):
        logger.warning(
            "legacy_rate_limit_ignored",
            key=context.legacy_rate_limit_key,
            value=str(value),
        )
        return None
    return value


async def inherited_rate_limit(context: MigrationContext) -> int | float:
    """Legacy global rate limit, else the documented default."""
    value = await read_legacy_rate_limit(context)
    if value is None:
        return context.default_rate_limit_seconds
    return value


# =============================================================================
# Migrations
# =============================================================================


@dataclass(frozen=True)
class Migration:
    """A named one-time upgrade step.

    ``apply`` mutates the document it is given; the engine hands it a copy.
    """

    name: str
    description: str
    apply: Callable[[ProfileDocument, MigrationContext], Awaitable[None]]


async def migrate_rate_limit_inheritance(
    document: ProfileDocument,
    context: MigrationContext,
) -> None:
    """Copy the global rate limit into every profile that lacks one."""
    rate_limit = await inherited_rate_limit(context)
    for name, profile in document.profiles.items():
        if RATE_LIMIT_SETTING in profile.settings:
            continue
        profile.settings[RATE_LIMIT_SETTING] = rate_limit
        logger.info(
            "rate_limit_migration_applied",
            profile=name,
            rate_limit_seconds=rate_limit,
        )


RATE_LIMIT_INHERITANCE: Final[Migration] = Migration(
    name="rate_limit_inheritance",
    description="Move the global rate limit into each profile",
    apply=migrate_rate_limit_inheritance,
)

MIGRATIONS: Final[tuple[Migration, ...]] = (RATE_LIMIT_INHERITANCE,)


# =============================================================================
# Engine
# =============================================================================


class MigrationEngine:
    """Applies pending migrations and repairs missing profile ids."""

    def __init__(
        self,
        context: MigrationContext | None = None,
        migrations: Sequence[Migration] = MIGRATIONS,
    ) -> None:
        names = [migration.name for migration in migrations]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate migration names: {names}")
        self.context = context or MigrationContext()
        self.migrations: tuple[Migration, ...] = tuple(migrations)

    @property
    def names(self) -> list[str]:
        return [migration.name for migration in self.migrations]

    def pending(self, document: ProfileDocument) -> list[Migration]:
        """Migrations not yet applied to *document*, in registry order."""
        return [m for m in self.migrations if not document.is_migrated(m.name)]

    async def ensure_migrated(
        self,
        document: ProfileDocument,
        write: DocumentWriter,
    ) -> ProfileDocument:
        """Bring *document* up to date, persisting each change as it happens.

        Idempotent: a document that is already current is returned unchanged
        and nothing is written.

        Args:
            document: Document as read from storage
            write: Coroutine persisting a whole document

        Returns:
            The up-to-date document (a new object if anything changed)

        Raises:
            MigrationError: If a step fails; nothing of that step is written
        """
        if any(not profile.id for profile in document.profiles.values()):
            document = await self._assign_missing_ids(document, write)

        for migration in self.pending(document):
            candidate = document.model_copy(deep=True)
            try:
                await migration.apply(candidate, self.context)
            except Exception as e:
                logger.error("migration_failed", migration=migration.name, error=str(e))
                raise MigrationError(migration.name, f"{type(e).__name__}: {e}") from e

            candidate.migrations[migration.name] = True
            await write(candidate)
            document = candidate
            logger.info("migration_complete", migration=migration.name)

        return document

    async def _assign_missing_ids(
        self,
        document: ProfileDocument,
        write: DocumentWriter,
    ) -> ProfileDocument:
        candidate = document.model_copy(deep=True)
        taken = candidate.profile_ids()
        for name, profile in candidate.profiles.items():
            if profile.id:
                continue
            profile.id = generate_profile_id(taken)
            taken.add(profile.id)
            logger.info("profile_id_assigned", profile=name, profile_id=profile.id)
        await write(candidate)
        return candidate
