"""
Profile Config Store - Profile Store

Public operation surface over the persisted document. Every operation:

1. enters the SerializedAccessGate
2. reads the document (creating the default one, or migrating it, as needed)
3. applies its change in memory
4. writes the whole document back
5. leaves the gate, then publishes a snapshot if anything changed

Patterns Applied:
- Dependency injection of storage adapters (Protocol duck typing)
- Namespaced exceptions, re-raised with the failing operation named
- One tracing span per public operation
"""

from __future__ import annotations

import numbers
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Final, TypeVar

from config_store.core.config import Settings
from config_store.core.exceptions import (
    ConfigStoreError,
    InvalidProfileError,
    LastProfileError,
    ProfileNotFoundError,
    StorageError,
)
from config_store.core.logging import get_logger, operation_context
from config_store.core.tracing import get_tracer, operation_span
from config_store.document.models import (
    RATE_LIMIT_SETTING,
    ConfigSnapshot,
    Profile,
    ProfileDocument,
    ProfileMeta,
    SettingValue,
    build_snapshot,
    create_default_document,
    generate_profile_id,
    list_profile_meta,
)
from config_store.document.serializer import (
    deserialize_document,
    serialize_document,
    validate_settings,
)
from config_store.storage.file import JsonFileLegacyState, JsonFilePersistenceAdapter
from config_store.storage.memory import InMemoryPersistenceAdapter
from config_store.storage.protocols import (
    LegacyStateSourceProtocol,
    PersistenceAdapterProtocol,
)
from config_store.store.events import ChangeNotifier, SnapshotListener
from config_store.store.gate import SerializedAccessGate
from config_store.store.migrations import (
    DEFAULT_RATE_LIMIT_SECONDS,
    MigrationContext,
    MigrationEngine,
    inherited_rate_limit,
)

logger = get_logger(__name__)
tracer = get_tracer(__name__)

T = TypeVar("T")

# =============================================================================
# Constants
# =============================================================================

DEFAULT_STORAGE_KEY: Final[str] = "profile_config_store_document"

OP_INITIALIZE: Final[str] = "initialize config"
OP_LIST: Final[str] = "list configs"
OP_SAVE: Final[str] = "save config"
OP_LOAD: Final[str] = "load config"
OP_DELETE: Final[str] = "delete config"
OP_SET_CURRENT: Final[str] = "set current config"
OP_EXISTS: Final[str] = "check config existence"
OP_GET_ID: Final[str] = "get config id"
OP_SET_MODE: Final[str] = "set mode config"
OP_GET_MODE: Final[str] = "get mode config"
OP_SNAPSHOT: Final[str] = "read config snapshot"
OP_RESET: Final[str] = "reset configs"


class ProfileStore:
    """Multi-profile configuration store with serialized access.

    Attributes:
        key: Storage key of the document
        gate: The SerializedAccessGate shared by every operation
        migrations: MigrationEngine run on every document load
    """

    def __init__(
        self,
        adapter: PersistenceAdapterProtocol,
        *,
        key: str = DEFAULT_STORAGE_KEY,
        legacy_state: LegacyStateSourceProtocol | None = None,
        default_rate_limit_seconds: int = DEFAULT_RATE_LIMIT_SECONDS,
        fresh_install_rate_limit_seconds: int = 0,
        migrations: MigrationEngine | None = None,
        gate: SerializedAccessGate | None = None,
        notifier: ChangeNotifier | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            adapter: Persistence adapter holding the document blob
            key: Storage key of the document
            legacy_state: Optional read-only legacy global state
            default_rate_limit_seconds: Rate limit used when nothing else is known
            fresh_install_rate_limit_seconds: Rate limit of a newly created default profile
            migrations: Engine to use instead of the default registry
            gate: Gate to use instead of a private one
            notifier: Snapshot hub to use instead of a private one
        """
        self.key = key
        self.gate = gate or SerializedAccessGate()
        self.migrations = migrations or MigrationEngine(
            MigrationContext(
                legacy_state=legacy_state,
                default_rate_limit_seconds=default_rate_limit_seconds,
            )
        )
        self.notifier = notifier or ChangeNotifier()
        self._adapter = adapter
        self._fresh_install_rate_limit = fresh_install_rate_limit_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> ProfileStore:
        """Build a store wired to the backend named in *settings*."""
        adapter: PersistenceAdapterProtocol
        if settings.storage_backend == "memory":
            adapter = InMemoryPersistenceAdapter()
        else:
            adapter = JsonFilePersistenceAdapter(settings.storage_dir)

        legacy_state: LegacyStateSourceProtocol | None = None
        if settings.legacy_state_file:
            legacy_state = JsonFileLegacyState(settings.legacy_state_file)

        migrations = MigrationEngine(
            MigrationContext(
                legacy_state=legacy_state,
                legacy_rate_limit_key=settings.legacy_rate_limit_key,
                default_rate_limit_seconds=settings.default_rate_limit_seconds,
            )
        )
        return cls(
            adapter,
            key=settings.storage_key,
            fresh_install_rate_limit_seconds=settings.fresh_install_rate_limit_seconds,
            migrations=migrations,
        )

    # =========================================================================
    # Public Operations
    # =========================================================================

    async def initialize(self) -> None:
        """Create or migrate the stored document."""

        async def body() -> None:
            await self._read_document()

        await self._run(OP_INITIALIZE, body)

    async def list_profiles(self) -> list[ProfileMeta]:
        """List profiles as ``{name, id, provider_tag}`` in insertion order."""

        async def body() -> list[ProfileMeta]:
            return list_profile_meta(await self._read_document())

        return await self._run(OP_LIST, body)

    async def save_profile(self, name: str, settings: Mapping[str, Any]) -> ConfigSnapshot:
        """Create or replace the profile *name*.

        An existing profile keeps its id; a new one gets a fresh id. A
        missing rate limit is inherited (see _inherit_rate_limit).

        Returns:
            The snapshot of the document as this call wrote it

        Raises:
            InvalidProfileError: If *name* is empty or a value is unsupported
        """

        async def body() -> tuple[ConfigSnapshot, ConfigSnapshot]:
            _check_name(name)
            values = validate_settings(settings)
            values.pop("id", None)

            document = await self._read_document()
            existing = document.profiles.get(name)

            if RATE_LIMIT_SETTING not in values:
                values[RATE_LIMIT_SETTING] = await self._inherit_rate_limit(document)

            if existing is not None and existing.id:
                profile_id = existing.id
            else:
                profile_id = generate_profile_id(document.profile_ids())

            document.profiles[name] = Profile(id=profile_id, settings=values)
            await self._write_document(document)
            logger.info(
                "profile_saved",
                profile=name,
                profile_id=profile_id,
                created=existing is None,
            )
            snapshot = build_snapshot(document)
            return snapshot, snapshot

        return await self._mutate(OP_SAVE, body, profile=name)

    async def load_profile(self, name: str) -> dict[str, SettingValue]:
        """Return the settings of *name* and make it the current profile.

        Raises:
            ProfileNotFoundError: If *name* does not exist
        """

        async def body() -> tuple[dict[str, SettingValue], ConfigSnapshot]:
            document = await self._read_document()
            profile = _require_profile(document, name)
            document.current_profile_name = name
            await self._write_document(document)
            return dict(profile.settings), build_snapshot(document)

        return await self._mutate(OP_LOAD, body, profile=name)

    async def delete_profile(self, name: str) -> str:
        """Delete *name* and return the id it had.

        Deleting the current profile moves the current pointer to the first
        remaining profile.

        Raises:
            ProfileNotFoundError: If *name* does not exist
            LastProfileError: If *name* is the only profile
        """

        async def body() -> tuple[str, ConfigSnapshot]:
            document = await self._read_document()
            profile_id = _require_profile(document, name).id
            if len(document.profiles) == 1:
                raise LastProfileError(name)

            del document.profiles[name]
            if document.current_profile_name == name:
                document.current_profile_name = next(iter(document.profiles))
            await self._write_document(document)
            logger.info("profile_deleted", profile=name, profile_id=profile_id)
            return profile_id, build_snapshot(document)

        return await self._mutate(OP_DELETE, body, profile=name)

    async def set_current_profile(self, name: str) -> ConfigSnapshot:
        """Make *name* the active profile and return the resulting snapshot.

        Raises:
            ProfileNotFoundError: If *name* does not exist
        """

        async def body() -> tuple[ConfigSnapshot, ConfigSnapshot]:
            document = await self._read_document()
            _require_profile(document, name)
            document.current_profile_name = name
            await self._write_document(document)
            snapshot = build_snapshot(document)
            return snapshot, snapshot

        return await self._mutate(OP_SET_CURRENT, body, profile=name)

    async def has_profile(self, name: str) -> bool:
        """Whether a profile called *name* exists."""

        async def body() -> bool:
            return name in (await self._read_document()).profiles

        return await self._run(OP_EXISTS, body, profile=name)

    async def get_profile_id(self, name: str) -> str:
        """Return the stable id of *name*.

        Raises:
            ProfileNotFoundError: If *name* does not exist
        """

        async def body() -> str:
            return _require_profile(await self._read_document(), name).id

        return await self._run(OP_GET_ID, body, profile=name)

    async def set_mode_binding(self, mode: str, profile_id: str) -> None:
        """Bind *mode* to *profile_id*; the id is not checked against profiles."""

        async def body() -> tuple[None, ConfigSnapshot]:
            document = await self._read_document()
            document.mode_bindings[mode] = profile_id
            await self._write_document(document)
            return None, build_snapshot(document)

        await self._mutate(OP_SET_MODE, body, mode=mode)

    async def get_mode_binding(self, mode: str) -> str | None:
        """Return the profile id bound to *mode*, or None."""

        async def body() -> str | None:
            return (await self._read_document()).mode_bindings.get(mode)

        return await self._run(OP_GET_MODE, body, mode=mode)

    async def snapshot(self) -> ConfigSnapshot:
        """Return the current UI snapshot."""

        async def body() -> ConfigSnapshot:
            return build_snapshot(await self._read_document())

        return await self._run(OP_SNAPSHOT, body)

    async def reset_all(self) -> None:
        """Delete the stored document; the next read recreates the default."""

        async def body() -> None:
            try:
                await self._adapter.delete(self.key)
            except ConfigStoreError:
                raise
            except Exception as e:
                raise StorageError(f"Failed to delete config from storage: {e}") from e
            logger.info("config_reset", key=self.key)

        await self._run(OP_RESET, body)
        if not len(self.notifier):
            return
        # The blob is already gone; a failed re-read only skips this notification.
        try:
            snapshot = await self.snapshot()
        except ConfigStoreError as e:
            logger.warning("reset_snapshot_unavailable", error=e.message)
            return
        await self.notifier.publish(snapshot)

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Receive a snapshot after every successful mutation."""
        return self.notifier.subscribe(listener)

    # =========================================================================
    # Gate Plumbing
    # =========================================================================

    async def _run(
        self,
        operation: str,
        body: Callable[[], Awaitable[T]],
        **attributes: Any,
    ) -> T:
        with operation_span(tracer, operation, **attributes), operation_context(
            operation, **attributes
        ):
            try:
                return await self.gate.run(body, name=operation)
            except ConfigStoreError as e:
                logger.warning(
                    "config_operation_failed",
                    error_type=type(e).__name__,
                    error=e.message,
                )
                e.bind_operation(operation)
                raise
            except Exception as e:
                logger.error(
                    "config_operation_crashed",
                    error_type=type(e).__name__,
                    error=str(e),
                )
                raise ConfigStoreError(
                    f"{type(e).__name__}: {e}", operation=operation
                ) from e

    async def _mutate(
        self,
        operation: str,
        body: Callable[[], Awaitable[tuple[T, ConfigSnapshot]]],
        **attributes: Any,
    ) -> T:
        result, snapshot = await self._run(operation, body, **attributes)
        await self.notifier.publish(snapshot)
        return result

    # =========================================================================
    # Document I/O (only called while holding the gate)
    # =========================================================================

    async def _read_document(self) -> ProfileDocument:
        try:
            blob = await self._adapter.get(self.key)
        except ConfigStoreError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read config from storage: {e}") from e

        if not blob:
            document = create_default_document(
                rate_limit_seconds=self._fresh_install_rate_limit,
                applied_migrations=self.migrations.names,
            )
            await self._write_document(document)
            logger.info("default_config_created", key=self.key)
            return document

        document = deserialize_document(blob)
        return await self.migrations.ensure_migrated(document, self._write_document)

    async def _write_document(self, document: ProfileDocument) -> None:
        blob = serialize_document(document)
        try:
            await self._adapter.set(self.key, blob)
        except ConfigStoreError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write config to storage: {e}") from e

    async def _inherit_rate_limit(self, document: ProfileDocument) -> int | float:
        # Existing profiles first, by name so that disagreeing profiles
        # always resolve the same way; then legacy state; then the default.
        for name in sorted(document.profiles):
            value = document.profiles[name].settings.get(RATE_LIMIT_SETTING)
            if isinstance(value, numbers.Real) and not isinstance(value, bool):
                logger.debug("rate_limit_inherited_from_profile", profile=name, value=value)
                return value
        return await inherited_rate_limit(self.migrations.context)


# =============================================================================
# Helpers
# =============================================================================


def _check_name(name: str) -> None:
    if not isinstance(name, str) or not name.strip():
        raise InvalidProfileError("Profile name must be a non-empty string")


def _require_profile(document: ProfileDocument, name: str) -> Profile:
    profile = document.profiles.get(name)
    if profile is None:
        raise ProfileNotFoundError(name)
    return profile
