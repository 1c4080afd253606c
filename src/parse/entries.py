"""Listing line extraction for the registry document.

A listing looks like::

    - <img src="https://example.com/logo.svg" /> **[Name](https://github.com/o/r)** - What it does

The leading image is decorative and optional; the bold link is required; the
description follows an optional hyphen, en-dash or em-dash separator.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_ENTRY_RE = re.compile(
    r"^\s*[-*+]\s+"
    # Decorative prefix: HTML or markdown images, symbols such as emoji.
    r"(?:<img\b[^>]*>|!\[[^\]]*\]\([^)\s]*\)|[^\w\s*<!\[]|\s)*"
    r"\*\*\[(?P<name>[^\]]+)\]"
    # Link target; one level of balanced parentheses is allowed.
    r"\((?P<url>(?:[^()\s]|\([^()\s]*\))+)\)\*\*"
    r"(?:\s*[-–—]\s*(?P<description>.*))?"
)

_HTML_IMG_RE = re.compile(r"<img\b[^>]*?\bsrc=[\"'](?P<src>[^\"']+)[\"']", re.IGNORECASE)
_MD_IMG_RE = re.compile(r"!\[[^\]]*\]\((?P<src>[^)\s]+)\)")


@dataclass(frozen=True)
class ExtractedEntry:
    identity: str
    source_url: str
    description: str
    icon_url: str | None = None


def find_icon(line: str) -> str | None:
    """Return the first embedded image URL on the line, if any."""
    matches = [
        match
        for match in (_HTML_IMG_RE.search(line), _MD_IMG_RE.search(line))
        if match is not None
    ]
    if not matches:
        return None
    first = min(matches, key=lambda m: m.start())
    return first.group("src")


def extract_entry(line: str) -> ExtractedEntry | None:
    """Parse one listing line, returning None when it is not a listing.

    The link target is kept verbatim. A missing description yields an empty
    string.
    """
    match = _ENTRY_RE.match(line)
    if match is None:
        return None

    identity = match.group("name").strip()
    if not identity:
        return None

    description = (match.group("description") or "").strip()
    return ExtractedEntry(
        identity=identity,
        source_url=match.group("url"),
        description=description,
        icon_url=find_icon(line),
    )


__all__ = ["ExtractedEntry", "extract_entry", "find_icon"]
