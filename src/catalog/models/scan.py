"""Scan result model handed to the change-request tooling."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field

from catalog.models.candidates import SCHEMA_VERSION, CandidateEntry


class ScanResult(BaseModel):
    """Summary and ordered entries produced by one registry scan.

    Field aliases are the serialized JSON keys.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    schema_version: int = Field(default=SCHEMA_VERSION, alias="SchemaVersion")
    generated_at: datetime = Field(alias="GeneratedAt")
    total_servers: int = Field(alias="TotalServers")
    categories: dict[str, int] = Field(alias="Categories")
    servers: list[CandidateEntry] = Field(default_factory=list, alias="Servers")


__all__ = ["ScanResult"]
