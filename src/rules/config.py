from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import tomllib
from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalog.models.candidates import Category

CONFIG_FILENAME = "registry-sync.toml"

DEFAULT_SOURCE_URL = (
    "https://raw.githubusercontent.com/modelcontextprotocol/servers/main/README.md"
)

EmptyScanPolicy = Literal["abort", "proceed"]
BackoffKind = Literal["fixed", "exponential"]


class RetryPolicy(BaseModel):
    """Capped retry policy for network calls."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    max_attempts: int = Field(
        default=3,
        ge=1,
        description="Total attempts including the first call",
    )
    delay_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Delay before the first retry",
    )
    backoff: BackoffKind = Field(
        default="fixed",
        description="Fixed delay, or delay multiplied on every retry",
    )
    multiplier: float = Field(
        default=2.0,
        ge=1,
        description="Growth factor for exponential backoff",
    )

    def delays(self) -> list[float]:
        """Return the sleep before each retry, in order.

        The list has ``max_attempts - 1`` items; the first attempt is never
        delayed.
        """
        result: list[float] = []
        delay = self.delay_seconds
        for _ in range(self.max_attempts - 1):
            result.append(delay)
            if self.backoff == "exponential":
                delay *= self.multiplier
        return result


class EnrichmentConfig(BaseModel):
    """Configuration for GitHub repository metadata enrichment."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = Field(default=False, description="Enrich entries after a scan")
    api_base: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL",
    )
    token_env: str = Field(
        default="GITHUB_TOKEN",
        description="Environment variable holding an optional API token",
    )
    concurrency: int = Field(
        default=4,
        ge=1,
        description="Maximum concurrent metadata requests",
    )
    delay_seconds: float = Field(
        default=0.5,
        ge=0,
        description="Pause after each request for rate-limit compliance",
    )
    timeout: float = Field(default=15.0, gt=0, description="Request timeout")


class CatalogApiConfig(BaseModel):
    """Configuration for the destination catalog API."""

    model_config = ConfigDict(extra="forbid")

    base_url: str | None = Field(
        default=None,
        description="Catalog API root; sync is unavailable when unset",
    )
    token_env: str = Field(
        default="CATALOG_API_TOKEN",
        description="Environment variable holding the bearer token",
    )
    timeout: float = Field(default=30.0, gt=0, description="Request timeout")


class RegistrySyncConfig(BaseModel):
    """Configuration for scraping, reconciling and syncing the catalog."""

    model_config = ConfigDict(extra="forbid")

    source_url: str = Field(
        default=DEFAULT_SOURCE_URL,
        description="Markdown registry document to scan",
    )
    catalog_dir: str = Field(
        default="catalog",
        description="Directory holding approved records, partitioned by category",
    )
    output_dir: str = Field(
        default=".registry-sync",
        description="Output directory for scan results, changesets and drafts",
    )
    categories: list[Category] = Field(
        default_factory=lambda: list(Category),
        description="Registry sections to accept entries from",
    )
    on_empty_scan: EmptyScanPolicy = Field(
        default="abort",
        description="Whether a scan with zero entries stops the pipeline",
    )
    retry: RetryPolicy = Field(
        default_factory=RetryPolicy,
        description="Retry policy for fetching the registry document",
    )
    enrichment: EnrichmentConfig = Field(
        default_factory=EnrichmentConfig,
        description="GitHub metadata enrichment",
    )
    catalog_api: CatalogApiConfig = Field(
        default_factory=CatalogApiConfig,
        description="Destination catalog API",
    )

    @field_validator("categories", mode="before")
    @classmethod
    def validate_categories(cls, v: Any) -> Any:
        """Reject an empty category list up front.

        Note: this runs in `mode="before"` so the message refers to the raw
        TOML value rather than a coerced list.
        """

        if v is None:
            return list(Category)

        if not isinstance(v, list) or not v:
            msg = (
                "categories must be a non-empty list; valid values: "
                f"{', '.join(c.value for c in Category)}"
            )
            raise ValueError(msg)

        return v


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def _resolve_within_root(root: Path, value: str, label: str) -> Path:
    if not value:
        msg = f"{label} must be a non-empty relative path"
        raise ConfigError(msg)

    if value.startswith("~"):
        msg = f"{label} must be a relative path within the repo root"
        raise ConfigError(msg)

    candidate = Path(value)
    if candidate.is_absolute():
        msg = f"{label} must be a relative path within the repo root"
        raise ConfigError(msg)

    try:
        resolved_root = root.resolve()
        resolved = (resolved_root / candidate).resolve()
    except OSError as exc:
        msg = f"Failed to resolve {label} '{value}': {exc}"
        raise ConfigError(msg) from exc

    try:
        resolved.relative_to(resolved_root)
    except ValueError as exc:
        msg = f"{label} '{value}' escapes the repository root"
        raise ConfigError(msg) from exc

    return resolved


def resolve_output_dir(root: Path, output_dir: str) -> Path:
    """Resolve a config-provided output_dir safely within the repo root.

    The config output_dir must be a non-empty relative path that remains
    within the repository root after resolution. Absolute paths and paths
    that escape the root are rejected.
    """
    return _resolve_within_root(root, output_dir, "output_dir")


def resolve_catalog_dir(root: Path, catalog_dir: str) -> Path:
    """Resolve a config-provided catalog_dir with the same rules as output_dir."""
    return _resolve_within_root(root, catalog_dir, "catalog_dir")


def load_config(root: Path) -> RegistrySyncConfig:
    """Load configuration from registry-sync.toml if it exists."""
    config_path = Path(root) / CONFIG_FILENAME

    if not config_path.is_file():
        return RegistrySyncConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return RegistrySyncConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e
