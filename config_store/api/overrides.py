"""
Profile Config Store - Override API Routes

GET  /v1/overrides/{profile_id}                   - active overrides of a profile
GET  /v1/overrides/{profile_id}/{setting}         - effective value and flag
PUT  /v1/overrides/{profile_id}/{setting}         - record an override value
POST /v1/overrides/{profile_id}/{setting}/toggle  - flip the profile-specific flag
PUT  /v1/globals/{setting}                        - set a global value
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from config_store.api.dependencies import get_override_resolver
from config_store.document.models import SettingValue
from config_store.overrides.resolver import OverrideResolver

ResolverDep = Annotated[OverrideResolver, Depends(get_override_resolver)]


class SettingValueRequest(BaseModel):
    """Request body carrying one setting value."""

    value: SettingValue


class OverrideResponse(BaseModel):
    """Resolution of one (profile, setting) pair."""

    profile_id: str
    setting: str
    is_overridden: bool
    value: SettingValue | None = None
    global_value: SettingValue | None = None


class ProfileOverridesResponse(BaseModel):
    """Active overrides of one profile, keyed by setting."""

    profile_id: str
    overrides: dict[str, SettingValue | None]


class GlobalValueResponse(BaseModel):
    """A global setting value."""

    setting: str
    value: SettingValue


overrides_router = APIRouter(prefix="/v1", tags=["overrides"])


def _describe(resolver: OverrideResolver, profile_id: str, setting: str) -> OverrideResponse:
    return OverrideResponse(
        profile_id=profile_id,
        setting=setting,
        is_overridden=resolver.is_overridden(profile_id, setting),
        value=resolver.resolve(profile_id, setting),
        global_value=resolver.get_global(setting),
    )


@overrides_router.get("/overrides/{profile_id}", response_model=ProfileOverridesResponse)
async def read_profile_overrides(profile_id: str, resolver: ResolverDep) -> ProfileOverridesResponse:
    """List the settings a profile currently overrides."""
    return ProfileOverridesResponse(profile_id=profile_id, overrides=resolver.overrides_for(profile_id))


@overrides_router.get("/overrides/{profile_id}/{setting}", response_model=OverrideResponse)
async def read_override(profile_id: str, setting: str, resolver: ResolverDep) -> OverrideResponse:
    """Return the effective value of a setting for a profile."""
    return _describe(resolver, profile_id, setting)


@overrides_router.put("/overrides/{profile_id}/{setting}", response_model=OverrideResponse)
async def set_override(
    profile_id: str,
    setting: str,
    request: SettingValueRequest,
    resolver: ResolverDep,
) -> OverrideResponse:
    """Record an override value (staged while the flag is off)."""
    resolver.set_override(profile_id, setting, request.value)
    return _describe(resolver, profile_id, setting)


@overrides_router.post("/overrides/{profile_id}/{setting}/toggle", response_model=OverrideResponse)
async def toggle_override(profile_id: str, setting: str, resolver: ResolverDep) -> OverrideResponse:
    """Flip between inherited and profile-specific."""
    resolver.toggle(profile_id, setting)
    return _describe(resolver, profile_id, setting)


@overrides_router.put("/globals/{setting}", response_model=GlobalValueResponse)
async def set_global_value(setting: str, request: SettingValueRequest, resolver: ResolverDep) -> GlobalValueResponse:
    """Set the global value of a setting."""
    resolver.set_global(setting, request.value)
    return GlobalValueResponse(setting=setting, value=request.value)
