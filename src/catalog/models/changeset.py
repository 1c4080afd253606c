"""Changeset models describing a scan reconciled against the catalog."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from catalog.models.approved import ApprovedRecord  # noqa: TC001
from catalog.models.candidates import CandidateEntry  # noqa: TC001

TrackedField = Literal["source_url", "description"]


class FieldChange(BaseModel):
    """A tracked field whose scanned value differs from the approved one."""

    field: TrackedField
    approved: str
    candidate: str


class ChangedEntry(BaseModel):
    """An approved record whose listing changed upstream."""

    identity: str
    candidate: CandidateEntry
    approved: ApprovedRecord
    differences: list[FieldChange]


class NameConflict(BaseModel):
    """Scanned entries sharing an identity but disagreeing on their content."""

    identity: str
    entries: list[CandidateEntry]


class Changeset(BaseModel):
    """Proposed additions and changes for the review workflow."""

    new: list[CandidateEntry] = Field(default_factory=list)
    changed: list[ChangedEntry] = Field(default_factory=list)
    unchanged: list[str] = Field(default_factory=list)
    conflicts: list[NameConflict] = Field(default_factory=list)
    absent: list[str] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.new or self.changed or self.conflicts)


__all__ = [
    "ChangedEntry",
    "Changeset",
    "FieldChange",
    "NameConflict",
    "TrackedField",
]
