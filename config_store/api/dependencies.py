"""
Profile Config Store - API Dependencies

FastAPI dependency providers and the mapping from store exceptions to HTTP
status codes.
"""

from fastapi import HTTPException, Request, status

from config_store.core.exceptions import (
    ConfigStoreError,
    InvalidProfileError,
    LastProfileError,
    ProfileNotFoundError,
    StorageError,
)
from config_store.overrides.resolver import OverrideResolver
from config_store.store.profiles import ProfileStore

_STATUS_BY_ERROR: tuple[tuple[type[ConfigStoreError], int], ...] = (
    (ProfileNotFoundError, status.HTTP_404_NOT_FOUND),
    (LastProfileError, status.HTTP_409_CONFLICT),
    (InvalidProfileError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (StorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def get_profile_store(request: Request) -> ProfileStore:
    """Profile store attached to the application state."""
    return request.app.state.profile_store


def get_override_resolver(request: Request) -> OverrideResolver:
    """Override resolver attached to the application state."""
    return request.app.state.override_resolver


def to_http_exception(error: ConfigStoreError) -> HTTPException:
    """Translate a store error into an HTTPException.

    Serialization and migration failures, and anything unexpected, are
    reported as 500.
    """
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(error),
    )
