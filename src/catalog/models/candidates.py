"""Candidate models for freshly scanned registry entries.

A candidate is regenerated on every scan and never mutated afterwards; the
enrichment step returns a copy instead of updating in place.
"""

from __future__ import annotations

from datetime import date  # noqa: TC003
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Schema version constant
SCHEMA_VERSION = 1


class Category(str, Enum):
    """Registry section an entry was listed under."""

    OFFICIAL = "official"
    COMMUNITY = "community"

    @property
    def header_label(self) -> str:
        """Section header text that switches the scan into this category."""
        return _HEADER_LABELS[self]

    @property
    def summary_key(self) -> str:
        """Key used for this category in the scan summary counts."""
        return _SUMMARY_KEYS[self]


_HEADER_LABELS = {
    Category.OFFICIAL: "Official Integrations",
    Category.COMMUNITY: "Community Servers",
}

_SUMMARY_KEYS = {
    Category.OFFICIAL: "OfficialIntegrations",
    Category.COMMUNITY: "CommunityServers",
}


class ReviewState(str, Enum):
    """Approval status of a record; only PENDING_REVIEW is set by the scanner."""

    PENDING_REVIEW = "PendingReview"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class RepositoryMetadata(BaseModel):
    """Metadata fetched from the hosting service for one repository.

    Presence of this object means the lookup happened. Individual fields are
    None (or an empty list) when the service reported nothing for them.
    """

    model_config = ConfigDict(frozen=True)

    language: str | None = None
    license: str | None = None
    star_count: int | None = None
    updated_at: str | None = None
    topics: list[str] = Field(default_factory=list)


class CandidateEntry(BaseModel):
    """A server listing extracted from the registry document."""

    model_config = ConfigDict(frozen=True)

    schema_version: int = Field(default=SCHEMA_VERSION)
    id: str
    identity: str
    description: str = ""
    category: Category
    source_url: str
    owner: str | None = None
    repo: str | None = None
    icon_url: str | None = None
    discovered_at: date
    enrichment: RepositoryMetadata | None = None
    review_state: ReviewState = ReviewState.PENDING_REVIEW

    @model_validator(mode="after")
    def _owner_and_repo_together(self) -> CandidateEntry:
        if (self.owner is None) != (self.repo is None):
            msg = "owner and repo must both be set or both be None"
            raise ValueError(msg)
        return self

    @property
    def is_enriched(self) -> bool:
        return self.enrichment is not None


__all__ = [
    "SCHEMA_VERSION",
    "CandidateEntry",
    "Category",
    "RepositoryMetadata",
    "ReviewState",
]
