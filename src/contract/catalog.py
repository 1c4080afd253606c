"""Catalog contract definitions.

This module defines the stable layout shared by the scraper, the review
tooling and the catalog sync: partition directory names and output filenames.
"""

from __future__ import annotations

from dataclasses import dataclass

from catalog.models.candidates import SCHEMA_VERSION, Category

# Schema version stamped on scan results and candidates.
CATALOG_SCHEMA_VERSION = SCHEMA_VERSION

# Output filename constants (stable contract identifiers).
SCAN_RESULT_JSON = "scan_result.json"
CHANGESET_JSON = "changeset.json"
PENDING_DIR = "pending"
RECORD_SUFFIX = ".json"


@dataclass(frozen=True)
class PartitionSpec:
    """Layout of one catalog partition directory.

    Every record stored under ``dirname`` must carry ``category``.
    """

    dirname: str
    category: Category
    description: str


PARTITION_SPECS: dict[str, PartitionSpec] = {
    "official": PartitionSpec(
        dirname="official",
        category=Category.OFFICIAL,
        description="Official integrations maintained by the vendor.",
    ),
    "community": PartitionSpec(
        dirname="community",
        category=Category.COMMUNITY,
        description="Community-maintained servers.",
    ),
}


def partition_for(category: Category) -> PartitionSpec:
    """Return the partition a record of ``category`` must live in."""
    for spec in PARTITION_SPECS.values():
        if spec.category is category:
            return spec
    msg = f"No partition for category {category!r}"
    raise ValueError(msg)


__all__ = [
    "CATALOG_SCHEMA_VERSION",
    "CHANGESET_JSON",
    "PARTITION_SPECS",
    "PENDING_DIR",
    "RECORD_SUFFIX",
    "SCAN_RESULT_JSON",
    "PartitionSpec",
    "partition_for",
]
