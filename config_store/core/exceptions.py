"""
Profile Config Store - Custom Exceptions

Anti-Patterns Avoided:
- Exception shadowing: namespaced exceptions instead of builtins like
  LookupError or IOError
- Lost root causes: every wrapper is raised with ``from`` so ``__cause__``
  keeps the original failure
"""

from __future__ import annotations


class ConfigStoreError(Exception):
    """Base exception for the profile config store.

    All custom exceptions inherit from this base class. Once a failure has
    crossed a public store operation it is bound to that operation, and its
    message reads ``"Failed to <operation>: <message>"``.
    """

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        self.message = message
        self.operation: str | None = None
        super().__init__(message)
        if operation is not None:
            self.bind_operation(operation)

    def bind_operation(self, operation: str) -> ConfigStoreError:
        """Name the public operation that failed.

        The first binding wins, so an error re-raised through several layers
        keeps the outermost operation that actually reported it.

        Args:
            operation: Human readable operation label, e.g. "save config"

        Returns:
            The same exception instance, for ``raise exc.bind_operation(...)``
        """
        if self.operation is None:
            self.operation = operation
            self.args = (f"Failed to {operation}: {self.message}",)
        return self


class ProfileNotFoundError(ConfigStoreError):
    """Raised when a referenced profile name does not exist."""

    def __init__(self, name: str, *, operation: str | None = None) -> None:
        self.name = name
        super().__init__(f"Config '{name}' not found", operation=operation)


class LastProfileError(ConfigStoreError):
    """Raised when deleting the sole remaining profile."""

    def __init__(self, name: str, *, operation: str | None = None) -> None:
        self.name = name
        super().__init__(
            "Cannot delete the last remaining configuration.", operation=operation
        )


class InvalidProfileError(ConfigStoreError):
    """Raised when a profile name or its setting values are rejected."""


class StorageError(ConfigStoreError):
    """Raised when the persistence adapter fails on get, set or delete."""


class SerializationError(ConfigStoreError):
    """Raised when a stored blob cannot be parsed as a document.

    Treated as corruption: the blob is left untouched for inspection.
    """


class MigrationError(ConfigStoreError):
    """Raised when a one-time migration step fails.

    Partial effects of the failed step are never persisted.
    """

    def __init__(self, migration: str, message: str) -> None:
        self.migration = migration
        super().__init__(f"Migration '{migration}' failed: {message}")


class ConfigurationError(ConfigStoreError):
    """Raised when service configuration is invalid or missing."""
