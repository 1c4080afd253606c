"""Reconciliation of scanned candidates against the approved catalog."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from catalog.models.changeset import ChangedEntry, Changeset, FieldChange, NameConflict

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from catalog.models.approved import ApprovedRecord
    from catalog.models.candidates import CandidateEntry
    from catalog.models.changeset import TrackedField

logger = logging.getLogger(__name__)

# Only these fields are owned by the upstream registry. Tags, metadata and
# enrichment belong to the review workflow and are never compared.
TRACKED_FIELDS: tuple[TrackedField, ...] = ("source_url", "description")


def split_conflicts(
    candidates: Iterable[CandidateEntry],
) -> tuple[list[CandidateEntry], list[NameConflict]]:
    """Collapse identical duplicates and separate out conflicting ones.

    Entries sharing an identity collapse to the first occurrence when they
    agree on source_url, description and category. Otherwise every entry
    for that identity is kept in a NameConflict for human disambiguation.
    """
    groups: dict[str, list[CandidateEntry]] = {}
    for candidate in candidates:
        groups.setdefault(candidate.identity, []).append(candidate)

    resolved: list[CandidateEntry] = []
    conflicts: list[NameConflict] = []
    for identity, members in groups.items():
        signatures = {(m.source_url, m.description, m.category) for m in members}
        if len(signatures) == 1:
            resolved.append(members[0])
            continue
        logger.warning(
            "Identity '%s' appears %d times with differing content: %s",
            identity,
            len(members),
            ", ".join(sorted({m.source_url for m in members})),
        )
        conflicts.append(NameConflict(identity=identity, entries=members))

    return resolved, conflicts


def diff_fields(candidate: CandidateEntry, approved: ApprovedRecord) -> list[FieldChange]:
    """Return the tracked fields that differ, by exact string comparison."""
    changes: list[FieldChange] = []
    for name in TRACKED_FIELDS:
        approved_value = getattr(approved, name)
        candidate_value = getattr(candidate, name)
        if approved_value != candidate_value:
            changes.append(
                FieldChange(field=name, approved=approved_value, candidate=candidate_value)
            )
    return changes


def reconcile(
    candidates: Iterable[CandidateEntry],
    approved: Mapping[str, ApprovedRecord],
) -> Changeset:
    """Compute the proposed changeset for a scan.

    The approved mapping is read only; applying the changeset is left to the
    review workflow.
    """
    resolved, conflicts = split_conflicts(candidates)
    changeset = Changeset(conflicts=conflicts)

    for candidate in resolved:
        record = approved.get(candidate.identity)
        if record is None:
            changeset.new.append(candidate)
            continue

        differences = diff_fields(candidate, record)
        if differences:
            changeset.changed.append(
                ChangedEntry(
                    identity=candidate.identity,
                    candidate=candidate,
                    approved=record,
                    differences=differences,
                )
            )
        else:
            changeset.unchanged.append(candidate.identity)

    scanned = {c.identity for c in resolved} | {c.identity for c in conflicts}
    changeset.absent.extend(sorted(set(approved) - scanned))

    logger.info(
        "Reconciled: %d new, %d changed, %d unchanged, %d conflict(s), %d absent",
        len(changeset.new),
        len(changeset.changed),
        len(changeset.unchanged),
        len(changeset.conflicts),
        len(changeset.absent),
    )
    return changeset


__all__ = ["TRACKED_FIELDS", "diff_fields", "reconcile", "split_conflicts"]
