"""Loading persisted catalog state: approved records and scan results."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import orjson
from pydantic import ValidationError

from catalog.models.scan import ScanResult
from catalog.utils import _load_json
from contract.validation import validate_catalog
from errors import CatalogValidationError, RegistrySyncError

if TYPE_CHECKING:
    from pathlib import Path

    from catalog.models.approved import ApprovedRecord

logger = logging.getLogger(__name__)


def load_catalog(catalog_dir: Path) -> dict[str, ApprovedRecord]:
    """Load the approved catalog keyed by identity.

    Raises:
        CatalogValidationError: If any record fails validation.
    """
    result = validate_catalog(catalog_dir)
    for warning in result.warnings:
        logger.warning("%s: %s", warning.location(), warning.message)
    if not result.ok:
        raise CatalogValidationError(result)
    logger.info("Loaded %d approved record(s) from %s", len(result.records), catalog_dir)
    return result.records


def load_scan_result(path: Path) -> ScanResult:
    """Load a scan result written by a previous scrape.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        RegistrySyncError: If the file is not a valid scan result.
    """
    if not path.is_file():
        msg = f"Scan result does not exist: {path}"
        raise FileNotFoundError(msg)
    try:
        return ScanResult.model_validate(_load_json(path))
    except (orjson.JSONDecodeError, ValidationError) as exc:
        msg = f"Invalid scan result in {path}: {exc}"
        raise RegistrySyncError(msg) from exc


__all__ = ["load_catalog", "load_scan_result"]
