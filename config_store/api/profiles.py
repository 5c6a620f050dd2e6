"""
Profile Config Store - Profile API Routes

GET    /v1/profiles                 - list profiles
GET    /v1/profiles/snapshot        - current UI snapshot
PUT    /v1/profiles/{name}          - create or replace a profile
POST   /v1/profiles/{name}/load     - load a profile (also activates it)
DELETE /v1/profiles/{name}          - delete a profile and its overrides
GET    /v1/profiles/{name}/exists   - existence check
POST   /v1/profiles/reset           - delete the stored document
PUT    /v1/current-profile          - activate a profile
PUT    /v1/modes/{mode}             - bind a mode to a profile id
GET    /v1/modes/{mode}             - read a mode binding

Patterns Applied:
- FastAPI router pattern
- Pydantic request/response models
- Dependency injection for the store and the override resolver
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from config_store.api.dependencies import (
    get_override_resolver,
    get_profile_store,
    to_http_exception,
)
from config_store.core.exceptions import ConfigStoreError
from config_store.document.models import ConfigSnapshot, ProfileMeta, SettingValue
from config_store.overrides.resolver import OverrideResolver
from config_store.store.profiles import ProfileStore

StoreDep = Annotated[ProfileStore, Depends(get_profile_store)]
ResolverDep = Annotated[OverrideResolver, Depends(get_override_resolver)]

# =============================================================================
# Request/Response Models
# =============================================================================


class SaveProfileRequest(BaseModel):
    """Request body for saving a profile."""

    settings: dict[str, SettingValue] = Field(default_factory=dict)


class ProfileSettingsResponse(BaseModel):
    """Settings of a loaded profile."""

    name: str
    settings: dict[str, SettingValue]


class ExistsResponse(BaseModel):
    """Existence check result."""

    name: str
    exists: bool


class CurrentProfileRequest(BaseModel):
    """Request body for activating a profile."""

    name: str = Field(..., min_length=1)


class ModeBindingRequest(BaseModel):
    """Request body for binding a mode."""

    profile_id: str = Field(..., min_length=1)


class ModeBindingResponse(BaseModel):
    """A mode binding; profile_id is None when the mode is unbound."""

    mode: str
    profile_id: str | None = None


# =============================================================================
# Router
# =============================================================================

profiles_router = APIRouter(prefix="/v1", tags=["profiles"])


@profiles_router.get("/profiles", response_model=list[ProfileMeta])
async def list_profiles(store: StoreDep) -> list[ProfileMeta]:
    """List profiles in insertion order."""
    try:
        return await store.list_profiles()
    except ConfigStoreError as e:
        raise to_http_exception(e) from e


@profiles_router.get("/profiles/snapshot", response_model=ConfigSnapshot)
async def read_snapshot(store: StoreDep) -> ConfigSnapshot:
    """Return profiles, current profile and mode bindings."""
    try:
        return await store.snapshot()
    except ConfigStoreError as e:
        raise to_http_exception(e) from e


@profiles_router.post("/profiles/reset", status_code=status.HTTP_204_NO_CONTENT)
async def reset_profiles(store: StoreDep) -> None:
    """Delete the stored document."""
    try:
        await store.reset_all()
    except ConfigStoreError as e:
        raise to_http_exception(e) from e


@profiles_router.put("/profiles/{name}", response_model=ConfigSnapshot)
async def save_profile(name: str, request: SaveProfileRequest, store: StoreDep) -> ConfigSnapshot:
    """Create or replace a profile and return the resulting snapshot."""
    try:
        return await store.save_profile(name, request.settings)
    except ConfigStoreError as e:
        raise to_http_exception(e) from e


@profiles_router.post("/profiles/{name}/load", response_model=ProfileSettingsResponse)
async def load_profile(name: str, store: StoreDep) -> ProfileSettingsResponse:
    """Load a profile's settings and make it current."""
    try:
        settings = await store.load_profile(name)
    except ConfigStoreError as e:
        raise to_http_exception(e) from e
    return ProfileSettingsResponse(name=name, settings=settings)


@profiles_router.delete("/profiles/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_profile(name: str, store: StoreDep, resolver: ResolverDep) -> None:
    """Delete a profile and drop its overrides; the last profile cannot be deleted."""
    try:
        profile_id = await store.delete_profile(name)
    except ConfigStoreError as e:
        raise to_http_exception(e) from e
    resolver.forget_profile(profile_id)


@profiles_router.get("/profiles/{name}/exists", response_model=ExistsResponse)
async def profile_exists(name: str, store: StoreDep) -> ExistsResponse:
    """Check whether a profile exists."""
    try:
        exists = await store.has_profile(name)
    except ConfigStoreError as e:
        raise to_http_exception(e) from e
    return ExistsResponse(name=name, exists=exists)


@profiles_router.put("/current-profile", response_model=ConfigSnapshot)
async def set_current_profile(request: CurrentProfileRequest, store: StoreDep) -> ConfigSnapshot:
    """Activate a profile."""
    try:
        return await store.set_current_profile(request.name)
    except ConfigStoreError as e:
        raise to_http_exception(e) from e


@profiles_router.put("/modes/{mode}", response_model=ModeBindingResponse)
async def set_mode_binding(mode: str, request: ModeBindingRequest, store: StoreDep) -> ModeBindingResponse:
    """Bind a mode to a profile id."""
    try:
        await store.set_mode_binding(mode, request.profile_id)
    except ConfigStoreError as e:
        raise to_http_exception(e) from e
    return ModeBindingResponse(mode=mode, profile_id=request.profile_id)


@profiles_router.get("/modes/{mode}", response_model=ModeBindingResponse)
async def get_mode_binding(mode: str, store: StoreDep) -> ModeBindingResponse:
    """Read a mode binding."""
    try:
        profile_id = await store.get_mode_binding(mode)
    except ConfigStoreError as e:
        raise to_http_exception(e) from e
    return ModeBindingResponse(mode=mode, profile_id=profile_id)
