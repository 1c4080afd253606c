from __future__ import annotations

import logging
import shutil
from typing import TYPE_CHECKING, Any

from catalog.store import load_catalog, load_scan_result
from catalog.utils import _write_json
from contract.catalog import (
    CHANGESET_JSON,
    PENDING_DIR,
    RECORD_SUFFIX,
    SCAN_RESULT_JSON,
    partition_for,
)
from enrich.github import enrich_entries
from reconcile.diff import reconcile
from rules.config import load_config, resolve_catalog_dir, resolve_output_dir
from scan.fetch import fetch_document
from scan.registry import build_scan_result, enforce_empty_policy, scan_registry
from utils import storage_key

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from pathlib import Path

    import httpx

    from catalog.models.candidates import CandidateEntry, Category
    from catalog.models.changeset import ChangedEntry, Changeset
    from catalog.models.scan import ScanResult
    from rules.config import RegistrySyncConfig

logger = logging.getLogger(__name__)


def write_scan_result(result: ScanResult, out_dir: Path) -> Path:
    path = out_dir / SCAN_RESULT_JSON
    _write_json(path, result)
    return path


def write_changeset(changeset: Changeset, out_dir: Path) -> Path:
    path = out_dir / CHANGESET_JSON
    _write_json(path, changeset)
    return path


def _draft_for_new(candidate: CandidateEntry) -> dict[str, Any]:
    metadata = {}
    if candidate.owner is not None and candidate.repo is not None:
        metadata = {"owner": candidate.owner, "repo": candidate.repo}
    return {
        "identity": candidate.identity,
        "description": candidate.description,
        "source_url": candidate.source_url,
        "category": candidate.category.value,
        "approver_id": None,
        "approval_date": None,
        "tags": [],
        "metadata": metadata,
        "review_state": candidate.review_state.value,
    }


def _draft_for_changed(changed: ChangedEntry) -> dict[str, Any]:
    draft = changed.approved.model_dump(mode="json")
    draft.update(
        {
            "source_url": changed.candidate.source_url,
            "description": changed.candidate.description,
            "approver_id": None,
            "approval_date": None,
            "review_state": changed.candidate.review_state.value,
        }
    )
    return draft


def stage_drafts(changeset: Changeset, out_dir: Path) -> list[Path]:
    """Write one draft record per new or changed entry for human review.

    Drafts for changed entries keep the approved tags, metadata and security
    review, take the scanned source_url and description, and clear the
    approval fields so the record must be approved again. Drafts from earlier
    runs are removed first.

    Every draft keeps the scanned identity; only the filename is sanitized.
    When two identities map to the same filename the first one staged wins
    (changed entries before new ones) and the other is skipped with a warning.
    """
    pending_dir = out_dir / PENDING_DIR
    if pending_dir.exists():
        shutil.rmtree(pending_dir)

    staged: list[tuple[str, Category, dict[str, Any]]] = [
        (changed.identity, changed.approved.category, _draft_for_changed(changed))
        for changed in changeset.changed
    ]
    staged.extend(
        (candidate.identity, candidate.category, _draft_for_new(candidate))
        for candidate in changeset.new
    )

    written: list[Path] = []
    claimed: dict[str, str] = {}

    for identity, category, draft in staged:
        key = storage_key(identity)
        owner = claimed.get(key)
        if owner is not None:
            logger.warning(
                "Identities '%s' and '%s' share storage key '%s'; '%s' was not staged",
                owner,
                identity,
                key,
                identity,
            )
            continue
        claimed[key] = identity

        if key != identity:
            logger.warning("Identity '%s' is not a safe filename; staged as '%s'", identity, key)
        path = pending_dir / partition_for(category).dirname / f"{key}{RECORD_SUFFIX}"
        _write_json(path, draft)
        written.append(path)

    return written


def generate_scan(
    *,
    root: Path,
    out_dir: Path | None = None,
    config: RegistrySyncConfig | None = None,
    document: str | None = None,
    enrich: bool | None = None,
    clock: Callable[[], datetime] | None = None,
    http_client: httpx.Client | None = None,
) -> dict[str, object]:
    """Scan the registry and write scan_result.json.

    Args:
        root: Repository root holding registry-sync.toml
        out_dir: Optional output directory (default: config output dir)
        config: Optional configuration (default: loaded from root)
        document: Registry text; fetched from config.source_url when None
        enrich: Override for config.enrichment.enabled
        clock: Optional clock for deterministic timestamps
        http_client: Optional client used to fetch the document

    Returns:
        Dictionary with counts and the written scan result path.
    """
    if config is None:
        config = load_config(root)

    if out_dir is None:
        out_dir = resolve_output_dir(root, config.output_dir)

    if document is None:
        document = fetch_document(config.source_url, retry=config.retry, client=http_client)

    result = scan_registry(document, categories=config.categories, clock=clock)
    enforce_empty_policy(result, config.on_empty_scan)

    should_enrich = config.enrichment.enabled if enrich is None else enrich
    if should_enrich and result.servers:
        enriched = enrich_entries(result.servers, config=config.enrichment)
        result = build_scan_result(enriched, generated_at=result.generated_at)

    path = write_scan_result(result, out_dir)

    return {
        "total_servers": result.total_servers,
        "categories": dict(result.categories),
        "enriched": sum(1 for entry in result.servers if entry.is_enriched),
        "scan_result": str(path),
    }


def generate_changeset(
    *,
    root: Path,
    out_dir: Path | None = None,
    config: RegistrySyncConfig | None = None,
    scan_path: Path | None = None,
    catalog_dir: Path | None = None,
    stage: bool = True,
) -> dict[str, object]:
    """Reconcile the latest scan against the catalog and write changeset.json.

    Raises:
        CatalogValidationError: If the approved catalog is invalid.
        FileNotFoundError: If the scan result is missing.
    """
    if config is None:
        config = load_config(root)

    if out_dir is None:
        out_dir = resolve_output_dir(root, config.output_dir)

    if catalog_dir is None:
        catalog_dir = resolve_catalog_dir(root, config.catalog_dir)

    if scan_path is None:
        scan_path = out_dir / SCAN_RESULT_JSON

    scan = load_scan_result(scan_path)
    approved = load_catalog(catalog_dir)
    changeset = reconcile(scan.servers, approved)

    changeset_path = write_changeset(changeset, out_dir)
    drafts = stage_drafts(changeset, out_dir) if stage else []

    return {
        "new_count": len(changeset.new),
        "changed_count": len(changeset.changed),
        "unchanged_count": len(changeset.unchanged),
        "conflict_count": len(changeset.conflicts),
        "absent_count": len(changeset.absent),
        "changeset": str(changeset_path),
        "drafts": [str(path) for path in drafts],
    }
