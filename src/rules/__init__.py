"""Configuration for registry-sync."""

from rules.config import (
    CatalogApiConfig,
    ConfigError,
    EnrichmentConfig,
    RegistrySyncConfig,
    RetryPolicy,
    load_config,
)

__all__ = [
    "CatalogApiConfig",
    "ConfigError",
    "EnrichmentConfig",
    "RegistrySyncConfig",
    "RetryPolicy",
    "load_config",
]
