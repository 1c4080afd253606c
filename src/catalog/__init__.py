"""Catalog generation entry points."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from rules.config import RegistrySyncConfig


def generate_scan(
    *,
    root: Path,
    out_dir: Path | None = None,
    config: RegistrySyncConfig | None = None,
    document: str | None = None,
) -> dict[str, object]:
    """Generate a scan result via lazy import to avoid package import cycles."""
    from catalog.write import generate_scan as _generate_scan

    return _generate_scan(root=root, out_dir=out_dir, config=config, document=document)


__all__ = ["generate_scan"]
