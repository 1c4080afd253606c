"""Registry scanning: a single forward fold over the document lines."""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from functools import partial, reduce
from typing import TYPE_CHECKING

from catalog.models.candidates import CandidateEntry, Category
from catalog.models.scan import ScanResult
from errors import EmptyDocumentError, EmptyScanError
from parse.entries import extract_entry
from parse.headers import match_heading
from parse.repo_refs import resolve_repository

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from rules.config import EmptyScanPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanState:
    """Accumulator threaded through the fold; each step returns a new one."""

    category: Category | None = None
    level: int | None = None
    entries: tuple[CandidateEntry, ...] = ()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def scan_line(
    state: ScanState,
    line: str,
    *,
    categories: frozenset[Category],
    today: date,
    id_factory: Callable[[], str],
) -> ScanState:
    """Advance the scan by one line."""
    heading = match_heading(line)
    if heading is not None:
        if heading.category is not None:
            return replace(state, category=heading.category, level=heading.level)
        # A sibling or parent heading ends the section; deeper ones nest in it.
        if state.level is not None and heading.level <= state.level:
            return replace(state, category=None, level=None)
        return state

    if state.category is None or state.category not in categories:
        return state

    extracted = extract_entry(line)
    if extracted is None:
        return state

    owner, repo = resolve_repository(extracted.source_url)
    if owner is None:
        logger.debug("No repository reference for %s", extracted.source_url)

    entry = CandidateEntry(
        id=id_factory(),
        identity=extracted.identity,
        description=extracted.description,
        category=state.category,
        source_url=extracted.source_url,
        owner=owner,
        repo=repo,
        icon_url=extracted.icon_url,
        discovered_at=today,
    )
    return replace(state, entries=(*state.entries, entry))


def scan_document(
    text: str | None,
    *,
    categories: Iterable[Category] | None = None,
    clock: Callable[[], datetime] | None = None,
    id_factory: Callable[[], str] | None = None,
) -> list[CandidateEntry]:
    """Scan a registry document and return candidates in document order.

    Duplicate identities are kept as separate entries.

    Raises:
        EmptyDocumentError: If the document is None or blank.
    """
    if text is None or not text.strip():
        msg = "Registry document is empty."
        raise EmptyDocumentError(msg)

    accepted = frozenset(categories) if categories is not None else frozenset(Category)
    now = (clock or _utcnow)()

    step = partial(
        scan_line,
        categories=accepted,
        today=now.date(),
        id_factory=id_factory or _new_id,
    )
    final = reduce(step, text.splitlines(), ScanState())

    duplicates = [
        name for name, count in Counter(e.identity for e in final.entries).items()
        if count > 1
    ]
    if duplicates:
        logger.debug("Duplicate identities in scan: %s", ", ".join(sorted(duplicates)))

    return list(final.entries)


def build_scan_result(
    entries: list[CandidateEntry],
    *,
    generated_at: datetime,
) -> ScanResult:
    """Assemble the scan summary; every category gets a count, even zero."""
    counts = Counter(entry.category for entry in entries)
    return ScanResult(
        generated_at=generated_at,
        total_servers=len(entries),
        categories={category.summary_key: counts[category] for category in Category},
        servers=entries,
    )


def scan_registry(
    text: str | None,
    *,
    categories: Iterable[Category] | None = None,
    clock: Callable[[], datetime] | None = None,
    id_factory: Callable[[], str] | None = None,
) -> ScanResult:
    """Scan a document and wrap the candidates in a ScanResult."""
    clock = clock or _utcnow
    entries = scan_document(
        text,
        categories=categories,
        clock=clock,
        id_factory=id_factory,
    )
    result = build_scan_result(entries, generated_at=clock())
    logger.info(
        "Scanned %d server(s): %s",
        result.total_servers,
        ", ".join(f"{key}={value}" for key, value in result.categories.items()),
    )
    return result


def enforce_empty_policy(result: ScanResult, policy: EmptyScanPolicy) -> None:
    """Apply the configured zero-result policy to a scan.

    Raises:
        EmptyScanError: If the scan found nothing and the policy is "abort".
    """
    if result.total_servers:
        return
    if policy == "abort":
        msg = (
            "Scan found no servers; the registry layout may have changed. "
            "Set on_empty_scan = \"proceed\" to continue anyway."
        )
        raise EmptyScanError(msg)
    logger.warning("Scan found no servers; continuing with an empty result.")


__all__ = [
    "ScanState",
    "build_scan_result",
    "enforce_empty_policy",
    "scan_document",
    "scan_line",
    "scan_registry",
]
