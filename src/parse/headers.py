"""Section header recognition for the registry document."""

from __future__ import annotations

import re
from dataclasses import dataclass

from catalog.models.candidates import Category

_LABEL_TO_CATEGORY = {category.header_label: category for category in Category}

_HEADING_RE = re.compile(r"^\s*(?P<hashes>#+)(?P<text>.*)$")

# Optional decorative glyphs (emoji, symbols), then the label.
_LABEL_RE = re.compile(
    r"^[^\w#]*"
    r"(?P<label>" + "|".join(re.escape(label) for label in _LABEL_TO_CATEGORY) + r")"
    r"\s*$"
)


@dataclass(frozen=True)
class Heading:
    """A markdown heading; ``category`` is None for unrecognized labels."""

    level: int
    category: Category | None = None


def match_heading(line: str) -> Heading | None:
    """Return the heading on ``line``, or None when it is not a heading.

    Any ATX heading is reported with its depth so that the scanner can close
    a section when a sibling or parent heading starts. A line of hashes
    directly followed by text (``#tag``) is only a heading when the text is
    a recognized label.
    """
    match = _HEADING_RE.match(line)
    if match is None:
        return None

    level = len(match.group("hashes"))
    text = match.group("text")
    label = _LABEL_RE.match(text)
    if label is not None:
        return Heading(level=level, category=_LABEL_TO_CATEGORY[label.group("label")])
    if text and not text[0].isspace():
        return None
    return Heading(level=level)


def match_header(line: str) -> Category | None:
    """Return the category a section header switches to, or None.

    Recognition is case-sensitive on the label and ignores heading depth.
    """
    heading = match_heading(line)
    if heading is None:
        return None
    return heading.category


__all__ = ["Heading", "match_header", "match_heading"]
