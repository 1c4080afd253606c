"""Model namespace for registry-sync catalog schemas."""

from catalog.models.approved import ApprovedRecord, SecurityReview
from catalog.models.candidates import (
    CandidateEntry,
    Category,
    RepositoryMetadata,
    ReviewState,
)
from catalog.models.changeset import (
    ChangedEntry,
    Changeset,
    FieldChange,
    NameConflict,
)
from catalog.models.scan import ScanResult

__all__ = [
    "ApprovedRecord",
    "CandidateEntry",
    "Category",
    "ChangedEntry",
    "Changeset",
    "FieldChange",
    "NameConflict",
    "RepositoryMetadata",
    "ReviewState",
    "ScanResult",
    "SecurityReview",
]
