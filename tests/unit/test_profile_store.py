"""
Profile Store Tests

- Fresh install: default profile, written through on first access
- save/load/delete/set-current/exists/id/mode bindings
- Rate limit back-fill on save
- Error taxonomy and "Failed to <operation>: ..." messages
- Corrupt, null-valued and forward-compatible stored documents
- Mutations return the snapshot they wrote; reset notifies best-effort

Patterns Applied:
- FakeClient pattern: InMemoryPersistenceAdapter with injected failures
- Documents seeded as JSON, read back through the adapter
"""

import asyncio
import json

import pytest

from config_store.core.exceptions import (
    ConfigStoreError,
    InvalidProfileError,
    LastProfileError,
    ProfileNotFoundError,
    SerializationError,
    StorageError,
)
from config_store.document.models import ConfigSnapshot
from config_store.storage.memory import InMemoryLegacyState, InMemoryPersistenceAdapter
from config_store.store.profiles import DEFAULT_STORAGE_KEY, ProfileStore
from tests.support import MIGRATED, make_document, read_stored

# =============================================================================
# Fresh Install
# =============================================================================


class TestFreshInstall:
    """Behavior when nothing has been persisted yet."""

    @pytest.mark.asyncio
    async def test_first_access_creates_default_profile(
        self, store: ProfileStore, adapter: InMemoryPersistenceAdapter
    ) -> None:
        """A single "default" profile exists and is current."""
        snapshot = await store.snapshot()

        assert [meta.name for meta in snapshot.profiles] == ["default"]
        assert snapshot.current_profile_name == "default"
        assert snapshot.mode_bindings == {}

        stored = read_stored(adapter)
        assert stored["profiles"]["default"]["settings"] == {"rate_limit_seconds": 0}
        assert stored["migrations"] == MIGRATED

    @pytest.mark.asyncio
    async def test_default_profile_id_is_stable(self, store: ProfileStore) -> None:
        """The written-through default keeps its id across reads."""
        first = await store.get_profile_id("default")
        second = await store.get_profile_id("default")
        assert first and first == second

    @pytest.mark.asyncio
    async def test_fresh_install_ignores_legacy_rate_limit(self) -> None:
        """Migrations are pre-marked, so a legacy value is never consulted."""
        legacy = InMemoryLegacyState({"rate_limit_seconds": 10})
        store = ProfileStore(InMemoryPersistenceAdapter(), legacy_state=legacy)

        settings = await store.load_profile("default")

        assert settings == {"rate_limit_seconds": 0}
        assert legacy.reads == []

    @pytest.mark.asyncio
    async def test_initialize_persists_default(
        self, store: ProfileStore, adapter: InMemoryPersistenceAdapter
    ) -> None:
        """initialize() writes the default document once."""
        await store.initialize()
        await store.initialize()
        assert len(adapter.writes) == 1


# =============================================================================
# Save
# =============================================================================


class TestSaveProfile:
    """save_profile creates or replaces a profile."""

    @pytest.mark.asyncio
    async def test_save_new_profile_gets_new_id(self, store: ProfileStore) -> None:
        """Every created profile gets an id distinct from all others."""
        await store.save_profile("a", {"rate_limit_seconds": 1})
        await store.save_profile("b", {"rate_limit_seconds": 2})

        ids = {meta.id for meta in await store.list_profiles()}
        assert len(ids) == 3

    @pytest.mark.asyncio
    async def test_resave_keeps_id_and_replaces_settings(self, store: ProfileStore) -> None:
        """Saving an existing name keeps its id and replaces its settings."""
        await store.save_profile("work", {"api_provider": "openai", "rate_limit_seconds": 3})
        original_id = await store.get_profile_id("work")

        await store.save_profile("work", {"api_provider": "anthropic", "rate_limit_seconds": 4})

        assert await store.get_profile_id("work") == original_id
        assert await store.load_profile("work") == {
            "api_provider": "anthropic",
            "rate_limit_seconds": 4,
        }

    @pytest.mark.asyncio
    async def test_supplied_id_is_ignored(self, store: ProfileStore) -> None:
        """An "id" key in the settings never replaces the stored id."""
        await store.save_profile("work", {"rate_limit_seconds": 1})
        original_id = await store.get_profile_id("work")

        await store.save_profile("work", {"id": "forged", "rate_limit_seconds": 1})

        assert await store.get_profile_id("work") == original_id
        assert "id" not in await store.load_profile("work")

    @pytest.mark.asyncio
    async def test_list_preserves_insertion_order_and_provider(self, store: ProfileStore) -> None:
        """Listing follows insertion order and exposes the provider tag."""
        await store.save_profile("zeta", {"api_provider": "openrouter"})
        await store.save_profile("alpha", {})

        metas = await store.list_profiles()

        assert [meta.name for meta in metas] == ["default", "zeta", "alpha"]
        assert metas[1].provider_tag == "openrouter"
        assert metas[2].provider_tag is None

    @pytest.mark.asyncio
    async def test_save_does_not_change_current_profile(self, store: ProfileStore) -> None:
        """Saving another profile leaves the current pointer alone."""
        await store.save_profile("other", {})
        assert (await store.snapshot()).current_profile_name == "default"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "   "])
    async def test_empty_name_rejected(self, store: ProfileStore, name: str) -> None:
        """Blank names are invalid."""
        with pytest.raises(InvalidProfileError, match="^Failed to save config: "):
            await store.save_profile(name, {})

    @pytest.mark.asyncio
    async def test_unsupported_value_rejected(self, store: ProfileStore) -> None:
        """Nested objects are not a supported setting kind."""
        with pytest.raises(InvalidProfileError):
            await store.save_profile("bad", {"nested": {"a": 1}})
        assert not await store.has_profile("bad")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    async def test_non_finite_value_rejected(
        self, store: ProfileStore, adapter: InMemoryPersistenceAdapter, value: float
    ) -> None:
        """NaN and infinity are refused before anything is written."""
        await store.initialize()
        before = adapter.peek(DEFAULT_STORAGE_KEY)

        with pytest.raises(InvalidProfileError, match="^Failed to save config: "):
            await store.save_profile("bad", {"temperature": value})

        assert adapter.peek(DEFAULT_STORAGE_KEY) == before
        assert [meta.name for meta in await store.list_profiles()] == ["default"]

    @pytest.mark.asyncio
    async def test_save_returns_snapshot_of_its_own_write(self, store: ProfileStore) -> None:
        """Each save returns the document as it wrote it, not a later state."""
        await store.initialize()

        first, second = await asyncio.gather(
            store.save_profile("a", {}),
            store.save_profile("b", {}),
        )

        assert [meta.name for meta in first.profiles] == ["default", "a"]
        assert [meta.name for meta in second.profiles] == ["default", "a", "b"]

    @pytest.mark.asyncio
    async def test_string_set_values_kept(self, store: ProfileStore) -> None:
        """Lists of strings round-trip through storage."""
        await store.save_profile("tools", {"allowed_commands": ["git", "npm"]})
        assert (await store.load_profile("tools"))["allowed_commands"] == ["git", "npm"]


class TestRateLimitBackfill:
    """A saved profile without a rate limit inherits one."""

    @pytest.mark.asyncio
    async def test_inherits_from_existing_profile(self, seeded_store) -> None:
        """An existing profile's rate limit wins over legacy state."""
        store, _ = seeded_store(
            make_document(
                {"default": {"id": "d", "settings": {"rate_limit_seconds": 7}}},
                migrations=MIGRATED,
            ),
            legacy={"rate_limit_seconds": 10},
        )

        await store.save_profile("new", {"api_provider": "anthropic"})

        assert (await store.load_profile("new"))["rate_limit_seconds"] == 7

    @pytest.mark.asyncio
    async def test_disagreeing_profiles_resolve_by_name(self, seeded_store) -> None:
        """The lexicographically smallest profile name supplies the value."""
        store, _ = seeded_store(
            make_document(
                {
                    "zulu": {"id": "z", "settings": {"rate_limit_seconds": 9}},
                    "bravo": {"id": "b", "settings": {"rate_limit_seconds": 3}},
                    "alpha": {"id": "a", "settings": {"api_provider": "openai"}},
                },
                current="zulu",
                migrations=MIGRATED,
            )
        )

        await store.save_profile("new", {})

        assert (await store.load_profile("new"))["rate_limit_seconds"] == 3

    @pytest.mark.asyncio
    async def test_falls_back_to_legacy_then_default(self, seeded_store) -> None:
        """Without any profile value, legacy state and then 5 are used."""
        blob = make_document(
            {"default": {"id": "d", "settings": {}}},
            migrations=MIGRATED,
        )
        with_legacy, _ = seeded_store(blob, legacy={"rate_limit_seconds": 10})
        without_legacy, _ = seeded_store(blob)

        await with_legacy.save_profile("new", {})
        await without_legacy.save_profile("new", {})

        assert (await with_legacy.load_profile("new"))["rate_limit_seconds"] == 10
        assert (await without_legacy.load_profile("new"))["rate_limit_seconds"] == 5

    @pytest.mark.asyncio
    async def test_explicit_rate_limit_kept(self, store: ProfileStore) -> None:
        """A supplied rate limit is never replaced."""
        await store.save_profile("slow", {"rate_limit_seconds": 30})
        assert (await store.load_profile("slow"))["rate_limit_seconds"] == 30


# =============================================================================
# Load / Delete / Current
# =============================================================================


class TestLoadAndCurrent:
    """load_profile and set_current_profile."""

    @pytest.mark.asyncio
    async def test_load_makes_profile_current(
        self, store: ProfileStore, adapter: InMemoryPersistenceAdapter
    ) -> None:
        """Loading a profile persists it as the current one."""
        await store.save_profile("work", {"rate_limit_seconds": 1})

        await store.load_profile("work")

        assert read_stored(adapter)["current_profile_name"] == "work"

    @pytest.mark.asyncio
    async def test_load_unknown_profile(self, store: ProfileStore) -> None:
        """Loading a missing profile raises ProfileNotFoundError."""
        with pytest.raises(ProfileNotFoundError) as exc_info:
            await store.load_profile("ghost")

        assert str(exc_info.value) == "Failed to load config: Config 'ghost' not found"
        assert exc_info.value.operation == "load config"

    @pytest.mark.asyncio
    async def test_loaded_settings_are_a_copy(self, store: ProfileStore) -> None:
        """Mutating returned settings does not affect the store."""
        settings = await store.load_profile("default")
        settings["rate_limit_seconds"] = 999
        assert (await store.load_profile("default"))["rate_limit_seconds"] == 0

    @pytest.mark.asyncio
    async def test_set_current_profile(self, store: ProfileStore) -> None:
        """set_current_profile switches the active profile."""
        await store.save_profile("work", {})
        await store.set_current_profile("work")
        assert (await store.snapshot()).current_profile_name == "work"

    @pytest.mark.asyncio
    async def test_set_current_returns_snapshot(self, store: ProfileStore) -> None:
        """The returned snapshot already shows the new current profile."""
        await store.save_profile("work", {})

        snapshot = await store.set_current_profile("work")

        assert snapshot.current_profile_name == "work"
        assert [meta.name for meta in snapshot.profiles] == ["default", "work"]

    @pytest.mark.asyncio
    async def test_set_current_unknown_profile(self, store: ProfileStore) -> None:
        """The pointer only moves to existing profiles."""
        with pytest.raises(ProfileNotFoundError, match="^Failed to set current config: "):
            await store.set_current_profile("ghost")
        assert (await store.snapshot()).current_profile_name == "default"


class TestDeleteProfile:
    """delete_profile."""

    @pytest.mark.asyncio
    async def test_delete_removes_profile(self, store: ProfileStore) -> None:
        """A deleted profile no longer exists."""
        await store.save_profile("work", {})
        await store.delete_profile("work")
        assert not await store.has_profile("work")

    @pytest.mark.asyncio
    async def test_delete_returns_profile_id(self, store: ProfileStore) -> None:
        """The id the profile had is returned for cleanup elsewhere."""
        await store.save_profile("work", {})
        profile_id = await store.get_profile_id("work")

        assert await store.delete_profile("work") == profile_id

    @pytest.mark.asyncio
    async def test_cannot_delete_last_profile(
        self, store: ProfileStore, adapter: InMemoryPersistenceAdapter
    ) -> None:
        """The only profile is protected."""
        await store.initialize()
        writes_before = len(adapter.writes)

        with pytest.raises(LastProfileError) as exc_info:
            await store.delete_profile("default")

        assert str(exc_info.value) == (
            "Failed to delete config: Cannot delete the last remaining configuration."
        )
        assert len(adapter.writes) == writes_before
        assert await store.has_profile("default")

    @pytest.mark.asyncio
    async def test_delete_unknown_profile(self, store: ProfileStore) -> None:
        """Deleting a missing profile raises ProfileNotFoundError."""
        with pytest.raises(ProfileNotFoundError):
            await store.delete_profile("ghost")

    @pytest.mark.asyncio
    async def test_deleting_current_moves_pointer(self, store: ProfileStore) -> None:
        """The current pointer moves to the first remaining profile."""
        await store.save_profile("work", {})
        await store.save_profile("play", {})
        await store.set_current_profile("work")

        await store.delete_profile("work")

        assert (await store.snapshot()).current_profile_name == "default"


class TestIdentityAndModes:
    """has_profile, get_profile_id and mode bindings."""

    @pytest.mark.asyncio
    async def test_has_profile(self, store: ProfileStore) -> None:
        """Existence check reflects saved profiles."""
        assert await store.has_profile("default")
        assert not await store.has_profile("ghost")

    @pytest.mark.asyncio
    async def test_get_profile_id_unknown(self, store: ProfileStore) -> None:
        """Asking for a missing profile's id raises ProfileNotFoundError."""
        with pytest.raises(ProfileNotFoundError, match="^Failed to get config id: "):
            await store.get_profile_id("ghost")

    @pytest.mark.asyncio
    async def test_mode_binding_roundtrip(self, store: ProfileStore) -> None:
        """A bound mode returns its profile id; an unbound one returns None."""
        profile_id = await store.get_profile_id("default")
        await store.set_mode_binding("architect", profile_id)

        assert await store.get_mode_binding("architect") == profile_id
        assert await store.get_mode_binding("code") is None
        assert (await store.snapshot()).mode_bindings == {"architect": profile_id}

    @pytest.mark.asyncio
    async def test_mode_binding_not_validated(self, store: ProfileStore) -> None:
        """Any id may be bound; dangling bindings are allowed."""
        await store.set_mode_binding("code", "no-such-id")
        assert await store.get_mode_binding("code") == "no-such-id"


class TestReset:
    """reset_all."""

    @pytest.mark.asyncio
    async def test_reset_recreates_default(
        self, store: ProfileStore, adapter: InMemoryPersistenceAdapter
    ) -> None:
        """After a reset the next read starts from a fresh default document."""
        await store.save_profile("work", {})
        await store.set_mode_binding("code", "x")

        await store.reset_all()
        assert adapter.peek(DEFAULT_STORAGE_KEY) is None

        snapshot = await store.snapshot()
        assert [meta.name for meta in snapshot.profiles] == ["default"]
        assert snapshot.mode_bindings == {}

    @pytest.mark.asyncio
    async def test_reset_failure(
        self, store: ProfileStore, adapter: InMemoryPersistenceAdapter
    ) -> None:
        """A failing delete surfaces as a StorageError."""
        adapter.fail_on("delete", OSError("disk gone"))

        with pytest.raises(StorageError) as exc_info:
            await store.reset_all()

        assert str(exc_info.value) == (
            "Failed to reset configs: Failed to delete config from storage: disk gone"
        )


    @pytest.mark.asyncio
    async def test_reset_notifies_listeners(self, store: ProfileStore) -> None:
        """Subscribers receive the recreated default document."""
        await store.save_profile("work", {})
        received: list[ConfigSnapshot] = []
        store.subscribe(received.append)

        await store.reset_all()

        assert [[meta.name for meta in s.profiles] for s in received] == [["default"]]

    @pytest.mark.asyncio
    async def test_reset_succeeds_when_follow_up_read_fails(
        self, store: ProfileStore, adapter: InMemoryPersistenceAdapter
    ) -> None:
        """A failing re-read after the delete skips the notification only."""
        await store.save_profile("work", {})
        received: list[ConfigSnapshot] = []
        store.subscribe(received.append)
        adapter.fail_on("get", RuntimeError("Storage failed"))

        await store.reset_all()

        assert adapter.peek(DEFAULT_STORAGE_KEY) is None
        assert received == []

        adapter.clear_failures()
        assert [meta.name for meta in await store.list_profiles()] == ["default"]


# =============================================================================
# Errors
# =============================================================================


class TestStorageErrors:
    """Adapter failures are wrapped and named after the operation."""

    @pytest.mark.asyncio
    async def test_read_failure(
        self, store: ProfileStore, adapter: InMemoryPersistenceAdapter
    ) -> None:
        """A failing get becomes a StorageError for the calling operation."""
        adapter.fail_on("get", RuntimeError("Storage failed"))

        with pytest.raises(StorageError) as exc_info:
            await store.list_profiles()

        assert str(exc_info.value) == (
            "Failed to list configs: Failed to read config from storage: Storage failed"
        )
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_write_failure(
        self, store: ProfileStore, adapter: InMemoryPersistenceAdapter
    ) -> None:
        """A failing set becomes a StorageError and nothing is stored."""
        await store.initialize()
        before = adapter.peek(DEFAULT_STORAGE_KEY)
        adapter.fail_on("set", OSError("read-only"))

        with pytest.raises(StorageError, match="^Failed to save config: Failed to write config"):
            await store.save_profile("work", {})

        assert adapter.peek(DEFAULT_STORAGE_KEY) == before

    @pytest.mark.asyncio
    async def test_store_usable_after_failure(
        self, store: ProfileStore, adapter: InMemoryPersistenceAdapter
    ) -> None:
        """A failed operation does not block later ones."""
        adapter.fail_on("get", RuntimeError("Storage failed"))
        with pytest.raises(StorageError):
            await store.snapshot()

        adapter.clear_failures()
        assert (await store.snapshot()).current_profile_name == "default"

    @pytest.mark.asyncio
    async def test_all_errors_share_base(self, store: ProfileStore) -> None:
        """Every store error can be caught as ConfigStoreError."""
        with pytest.raises(ConfigStoreError):
            await store.load_profile("ghost")


class TestStoredDocuments:
    """Loading documents written earlier or by other versions."""

    @pytest.mark.asyncio
    async def test_corrupt_blob(self, seeded_store) -> None:
        """Unparseable JSON raises SerializationError and is left in place."""
        store, adapter = seeded_store("{not json")

        with pytest.raises(SerializationError, match="^Failed to read config snapshot: "):
            await store.snapshot()

        assert adapter.peek(DEFAULT_STORAGE_KEY) == "{not json"
        assert adapter.writes == []

    @pytest.mark.asyncio
    async def test_unknown_top_level_keys_preserved(self, seeded_store) -> None:
        """Fields written by newer versions survive a save."""
        store, adapter = seeded_store(
            make_document(
                {"default": {"id": "d", "settings": {"rate_limit_seconds": 1}}},
                migrations=MIGRATED,
                ui_theme="dark",
            )
        )

        await store.save_profile("work", {})

        assert read_stored(adapter)["ui_theme"] == "dark"

    @pytest.mark.asyncio
    async def test_legacy_document_migrated_on_first_read(self, seeded_store) -> None:
        """A pre-migration document is upgraded before the operation sees it."""
        store, adapter = seeded_store(
            make_document({"default": {"id": "d", "settings": {}}}),
            legacy={"rate_limit_seconds": 10},
        )

        settings = await store.load_profile("default")

        assert settings["rate_limit_seconds"] == 10
        assert read_stored(adapter)["migrations"] == MIGRATED

    @pytest.mark.asyncio
    async def test_null_migrations_section_is_migrated(self, seeded_store) -> None:
        """A null migrations map reads as "nothing applied yet"."""
        blob = json.dumps(
            {
                "current_profile_name": "default",
                "profiles": {"default": {"id": "d", "settings": {}}},
                "mode_bindings": {},
                "migrations": None,
            }
        )
        store, adapter = seeded_store(blob, legacy={"rate_limit_seconds": 10})

        profiles = await store.list_profiles()

        assert [meta.name for meta in profiles] == ["default"]
        assert (await store.load_profile("default"))["rate_limit_seconds"] == 10
        assert read_stored(adapter)["migrations"] == MIGRATED

    @pytest.mark.asyncio
    async def test_null_profile_id_is_assigned(self, seeded_store) -> None:
        """A profile stored with a null id gets a fresh one, persisted."""
        store, adapter = seeded_store(
            make_document(
                {"default": {"id": None, "settings": {"rate_limit_seconds": 1}}},
                migrations=MIGRATED,
            )
        )

        profile_id = await store.get_profile_id("default")

        assert profile_id
        assert read_stored(adapter)["profiles"]["default"]["id"] == profile_id

    @pytest.mark.asyncio
    async def test_infinite_legacy_rate_limit_keeps_document_readable(
        self, seeded_store
    ) -> None:
        """An infinite legacy value migrates as the default 5."""
        store, adapter = seeded_store(
            make_document({"default": {"id": "d", "settings": {}}}),
            legacy={"rate_limit_seconds": float("inf")},
        )

        assert (await store.load_profile("default"))["rate_limit_seconds"] == 5

        reopened = ProfileStore(adapter)
        assert (await reopened.load_profile("default"))["rate_limit_seconds"] == 5

    @pytest.mark.asyncio
    async def test_snapshot_type(self, store: ProfileStore) -> None:
        """snapshot() returns a ConfigSnapshot model."""
        assert isinstance(await store.snapshot(), ConfigSnapshot)

    @pytest.mark.asyncio
    async def test_custom_storage_key(self) -> None:
        """The document is stored under the configured key."""
        adapter = InMemoryPersistenceAdapter()
        store = ProfileStore(adapter, key="alt_key")

        await store.initialize()

        assert json.loads(adapter.peek("alt_key") or "{}")["current_profile_name"] == "default"
        assert adapter.peek(DEFAULT_STORAGE_KEY) is None
