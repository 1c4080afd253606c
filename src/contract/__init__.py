"""Stable catalog contract surface for registry-sync.

This module exposes the layout constants and validation entry points that
the review tooling and the catalog sync depend on.
"""

from contract.catalog import (
    CATALOG_SCHEMA_VERSION,
    CHANGESET_JSON,
    PARTITION_SPECS,
    PENDING_DIR,
    RECORD_SUFFIX,
    SCAN_RESULT_JSON,
    PartitionSpec,
    partition_for,
)


def __getattr__(name: str) -> object:
    if name in {"ValidationMessage", "ValidationResult", "validate_catalog"}:
        from contract.validation import (
            ValidationMessage,
            ValidationResult,
            validate_catalog,
        )

        return {
            "ValidationMessage": ValidationMessage,
            "ValidationResult": ValidationResult,
            "validate_catalog": validate_catalog,
        }[name]

    msg = f"module 'contract' has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "CATALOG_SCHEMA_VERSION",
    "CHANGESET_JSON",
    "PARTITION_SPECS",
    "PENDING_DIR",
    "RECORD_SUFFIX",
    "SCAN_RESULT_JSON",
    "PartitionSpec",
    "ValidationMessage",
    "ValidationResult",
    "partition_for",
    "validate_catalog",
]
