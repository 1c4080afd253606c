"""Validation helpers for approved catalog records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import orjson
from pydantic import ValidationError

from catalog.models.approved import ApprovedRecord
from catalog.models.candidates import Category
from contract.catalog import PARTITION_SPECS, RECORD_SUFFIX, PartitionSpec
from utils import storage_key

if TYPE_CHECKING:
    from pathlib import Path


@dataclass(frozen=True)
class ValidationMessage:
    partition: str
    path: Path
    message: str
    field: str | None = None

    def location(self) -> str:
        if self.field is None:
            return str(self.path)
        return f"{self.path}#{self.field}"

    def to_dict(self) -> dict[str, object]:
        return {
            "partition": self.partition,
            "path": str(self.path),
            "field": self.field,
            "message": self.message,
        }


@dataclass
class ValidationResult:
    errors: list[ValidationMessage] = field(default_factory=list)
    warnings: list[ValidationMessage] = field(default_factory=list)
    records: dict[str, ApprovedRecord] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def validate_catalog(catalog_dir: Path) -> ValidationResult:
    """Validate every approved record under ``catalog_dir``.

    Records that pass all checks are collected in ``result.records`` keyed
    by identity, whether or not other files failed.
    """
    result = ValidationResult()

    if not catalog_dir.exists():
        result.errors.append(
            ValidationMessage(
                partition="catalog_dir",
                path=catalog_dir,
                message="Catalog directory does not exist.",
            )
        )
        return result

    if not catalog_dir.is_dir():
        result.errors.append(
            ValidationMessage(
                partition="catalog_dir",
                path=catalog_dir,
                message="Catalog path is not a directory.",
            )
        )
        return result

    for stray in sorted(catalog_dir.glob(f"*{RECORD_SUFFIX}")):
        result.warnings.append(
            ValidationMessage(
                partition="catalog_dir",
                path=stray,
                message="Record file is outside of a partition directory; ignored.",
            )
        )

    seen: dict[str, Path] = {}
    for partition_name, spec in PARTITION_SPECS.items():
        partition_dir = catalog_dir / spec.dirname
        if not partition_dir.is_dir():
            result.warnings.append(
                ValidationMessage(
                    partition=partition_name,
                    path=partition_dir,
                    message="Partition directory is missing.",
                )
            )
            continue

        for path in sorted(partition_dir.glob(f"*{RECORD_SUFFIX}")):
            if not path.is_file():
                continue
            record = _validate_record_file(partition_name, spec, path, result)
            if record is None:
                continue

            previous = seen.get(record.identity)
            if previous is not None:
                result.errors.append(
                    ValidationMessage(
                        partition=partition_name,
                        path=path,
                        field="identity",
                        message=(
                            f"Duplicate identity '{record.identity}'; "
                            f"already defined in {previous}."
                        ),
                    )
                )
                continue

            seen[record.identity] = path
            result.records[record.identity] = record

    return result


def _validate_record_file(
    partition_name: str,
    spec: PartitionSpec,
    path: Path,
    result: ValidationResult,
) -> ApprovedRecord | None:
    try:
        raw = orjson.loads(path.read_bytes())
    except (OSError, orjson.JSONDecodeError) as exc:
        result.errors.append(
            ValidationMessage(
                partition=partition_name,
                path=path,
                message=f"Invalid JSON: {exc}.",
            )
        )
        return None

    if not isinstance(raw, dict):
        result.errors.append(
            ValidationMessage(
                partition=partition_name,
                path=path,
                message="Expected JSON object for approved record.",
            )
        )
        return None

    try:
        record = ApprovedRecord.model_validate(raw)
    except ValidationError as exc:
        for error in exc.errors():
            result.errors.append(
                ValidationMessage(
                    partition=partition_name,
                    path=path,
                    field=".".join(str(part) for part in error["loc"]) or None,
                    message=_describe_error(error),
                )
            )
        return None

    valid = True
    if record.category is not spec.category:
        result.errors.append(
            ValidationMessage(
                partition=partition_name,
                path=path,
                field="category",
                message=(
                    "Partition mismatch on field 'category': "
                    f"expected '{spec.category.value}', got '{record.category.value}'."
                ),
            )
        )
        valid = False

    key = storage_key(record.identity)
    if key != path.stem:
        stored_as = "" if key == record.identity else f" (stored as '{key}')"
        result.errors.append(
            ValidationMessage(
                partition=partition_name,
                path=path,
                field="identity",
                message=(
                    "Identity does not match storage key: "
                    f"expected '{path.stem}', got '{record.identity}'{stored_as}."
                ),
            )
        )
        valid = False

    return record if valid else None


_EXPECTED_TYPES = {
    "identity": "non-empty string",
    "description": "string",
    "source_url": "absolute http(s) URL",
    "category": "one of " + ", ".join(f"'{category.value}'" for category in Category),
    "approver_id": "non-empty string",
    "approval_date": "ISO date YYYY-MM-DD",
    "security_review.reviewer_id": "string",
    "security_review.review_date": "ISO date YYYY-MM-DD",
    "security_review.approved": "boolean",
}


def _describe_error(error: Any) -> str:
    kind = error.get("type")
    if kind == "missing":
        expected = _EXPECTED_TYPES.get(".".join(str(part) for part in error["loc"]))
        if expected is None:
            return "Missing required field."
        return f"Missing required field (expected {expected})."
    if kind == "extra_forbidden":
        return "Unexpected field."
    return f"{error.get('msg')} (got {error.get('input')!r})."


__all__ = [
    "ValidationMessage",
    "ValidationResult",
    "validate_catalog",
]
