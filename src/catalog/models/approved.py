"""Approved record models for the version-controlled catalog.

Approved records are created and edited by the review workflow. The models
here are strict: unknown keys are rejected and nothing is coerced, so a
malformed file surfaces as a validation error instead of a silent default.
"""

from __future__ import annotations

import re
from datetime import date
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator

from catalog.models.candidates import Category

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _check_iso_date(value: str) -> str:
    if not _ISO_DATE.match(value):
        msg = f"expected ISO date YYYY-MM-DD, got {value!r}"
        raise ValueError(msg)
    try:
        date.fromisoformat(value)
    except ValueError as exc:
        msg = f"expected a real calendar date, got {value!r}"
        raise ValueError(msg) from exc
    return value


class SecurityReview(BaseModel):
    """Outcome of a security review attached to an approved record."""

    model_config = ConfigDict(extra="forbid")

    reviewer_id: StrictStr
    review_date: StrictStr
    notes: StrictStr = ""
    approved: StrictBool

    @field_validator("review_date")
    @classmethod
    def validate_review_date(cls, v: str) -> str:
        return _check_iso_date(v)


class ApprovedRecord(BaseModel):
    """A human-approved catalog entry stored as one JSON file."""

    model_config = ConfigDict(extra="forbid")

    identity: StrictStr = Field(min_length=1)
    description: StrictStr
    source_url: StrictStr
    category: Category
    approver_id: StrictStr = Field(min_length=1)
    approval_date: StrictStr
    security_review: SecurityReview | None = None
    tags: list[StrictStr] = Field(default_factory=list)
    metadata: dict[str, StrictStr] = Field(default_factory=dict)

    @field_validator("source_url")
    @classmethod
    def validate_source_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            msg = f"expected an absolute http(s) URL, got {v!r}"
            raise ValueError(msg)
        return v

    @field_validator("approval_date")
    @classmethod
    def validate_approval_date(cls, v: str) -> str:
        return _check_iso_date(v)


__all__ = ["ApprovedRecord", "SecurityReview"]
