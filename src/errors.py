"""Exception types shared across the registry-sync pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contract.validation import ValidationResult


class RegistrySyncError(Exception):
    """Base class for pipeline failures surfaced to the caller."""


class FetchError(RegistrySyncError):
    """Raised when a remote document cannot be fetched after all retries."""


class EmptyDocumentError(RegistrySyncError):
    """Raised when the registry document is absent or blank."""


class EmptyScanError(RegistrySyncError):
    """Raised when a scan yields no entries and the policy is to abort."""


class CatalogValidationError(RegistrySyncError):
    """Raised when the approved catalog fails validation."""

    def __init__(self, result: ValidationResult) -> None:
        self.result = result
        count = len(result.errors)
        super().__init__(f"Catalog validation failed with {count} error(s).")


class SyncError(RegistrySyncError):
    """Raised when a catalog API request fails."""

    def __init__(self, identity: str, message: str) -> None:
        self.identity = identity
        super().__init__(f"{identity}: {message}")


__all__ = [
    "CatalogValidationError",
    "EmptyDocumentError",
    "EmptyScanError",
    "FetchError",
    "RegistrySyncError",
    "SyncError",
]
