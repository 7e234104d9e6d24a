"""Domain error hierarchy for clean exception handling."""
from __future__ import annotations


class DomainError(Exception):
    """Base for all domain errors."""


class NotFoundError(DomainError):
    """Resource not found."""


class ConfigurationError(DomainError):
    """Storage backend used before it was configured or initialized."""


class StorageError(DomainError):
    """Underlying storage engine or transport failed."""


class RemoteStorageError(StorageError):
    """The companion service answered with a non-success status or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ReferentialIntegrityError(StorageError):
    """A write referenced a parent row that does not exist."""
