"""Reproducibility verification for registry-sync scan results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from catalog.store import load_scan_result
from scan.registry import scan_document

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

    from catalog.models.candidates import CandidateEntry, Category

# Fields that legitimately differ between two scans of the same document.
VOLATILE_FIELDS = frozenset({"id", "discovered_at", "enrichment"})


@dataclass(frozen=True)
class DeterminismResult:
    ok: bool
    mismatches: tuple[str, ...] = field(default_factory=tuple)
    missing: tuple[str, ...] = field(default_factory=tuple)
    extra: tuple[str, ...] = field(default_factory=tuple)


def entry_fingerprint(entry: CandidateEntry) -> dict[str, object]:
    """Return the entry's content without per-scan volatile fields."""
    return entry.model_dump(mode="json", exclude=set(VOLATILE_FIELDS))


def _label(index: int, entry: CandidateEntry) -> str:
    return f"{index}:{entry.identity}"


def compare_scans(
    expected: Sequence[CandidateEntry],
    actual: Sequence[CandidateEntry],
) -> DeterminismResult:
    """Compare two candidate sequences position by position.

    Entries present only in ``expected`` are reported as missing, entries
    present only in ``actual`` as extra.
    """
    mismatches: list[str] = []
    missing: list[str] = []
    extra: list[str] = []

    for index in range(max(len(expected), len(actual))):
        if index >= len(actual):
            missing.append(_label(index, expected[index]))
        elif index >= len(expected):
            extra.append(_label(index, actual[index]))
        elif entry_fingerprint(expected[index]) != entry_fingerprint(actual[index]):
            mismatches.append(_label(index, expected[index]))

    ok = not missing and not extra and not mismatches
    return DeterminismResult(
        ok=ok,
        mismatches=tuple(mismatches),
        missing=tuple(missing),
        extra=tuple(extra),
    )


def verify_scan(
    *,
    document: str,
    scan_path: Path,
    categories: Iterable[Category] | None = None,
) -> DeterminismResult:
    """Verify that a stored scan result is reproducible from ``document``.

    Re-scans the document and compares the candidates against the stored
    scan result, ignoring identifiers, scan dates and enrichment.

    Args:
        document: Registry text the stored scan was produced from.
        scan_path: Path to an existing scan_result.json.
        categories: Categories the stored scan was restricted to.

    Returns:
        DeterminismResult with ok status and lists of missing, extra, and
        mismatched entries labelled ``index:identity``.

    Raises:
        FileNotFoundError: If scan_path does not exist.
    """
    stored = load_scan_result(scan_path)
    regenerated = scan_document(document, categories=categories)
    return compare_scans(stored.servers, regenerated)
