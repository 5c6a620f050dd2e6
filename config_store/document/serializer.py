"""
Profile Config Store - Document Serialization

JSON encode/decode of ProfileDocument plus validation of incoming setting
payloads.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import TypeAdapter, ValidationError

from config_store.core.exceptions import InvalidProfileError, SerializationError
from config_store.document.models import ProfileDocument, SettingValue

_SETTINGS_ADAPTER: TypeAdapter[dict[str, SettingValue]] = TypeAdapter(dict[str, SettingValue])


def serialize_document(document: ProfileDocument) -> str:
    """Encode *document* as indented JSON."""
    return document.model_dump_json(indent=2)


def deserialize_document(blob: str) -> ProfileDocument:
    """Decode a stored blob.

    Args:
        blob: JSON text previously written by serialize_document()

    Returns:
        Parsed ProfileDocument

    Raises:
        SerializationError: If the blob is not a valid document
    """
    try:
        return ProfileDocument.model_validate_json(blob)
    except ValidationError as e:
        raise SerializationError(
            f"Stored config is corrupt ({e.error_count()} validation errors): {e}"
        ) from e


def validate_settings(settings: Mapping[str, Any]) -> dict[str, SettingValue]:
    """Validate an incoming settings payload.

    Args:
        settings: Setting name to value mapping

    Returns:
        A new dict containing only supported value kinds

    Raises:
        InvalidProfileError: If a value is not a supported setting kind
    """
    try:
        return _SETTINGS_ADAPTER.validate_python(dict(settings))
    except ValidationError as e:
        raise InvalidProfileError(f"Unsupported setting value: {e}") from e
