"""Document model: the persisted configuration root and its JSON form."""

from config_store.document.models import (
    DEFAULT_PROFILE_NAME,
    PROVIDER_SETTING,
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

__all__ = [
    "DEFAULT_PROFILE_NAME",
    "PROVIDER_SETTING",
    "RATE_LIMIT_SETTING",
    "ConfigSnapshot",
    "Profile",
    "ProfileDocument",
    "ProfileMeta",
    "SettingValue",
    "build_snapshot",
    "create_default_document",
    "deserialize_document",
    "generate_profile_id",
    "list_profile_meta",
    "serialize_document",
    "validate_settings",
]
