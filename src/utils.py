"""Shared utilities for registry-sync."""

from __future__ import annotations

import re

_UNSAFE_KEY_CHARS = re.compile(r"[\x00-\x1f/\\:*?\"<>|]+")


def storage_key(identity: str) -> str:
    """Convert an identity into a filename stem for the catalog.

    Identities are used verbatim whenever they are safe as a filename. Path
    separators and other characters that are invalid on common filesystems
    become '-'; the record keeps its original identity either way.

    Examples:
        >>> storage_key("GitHub")
        'GitHub'
        >>> storage_key("owner/tool")
        'owner-tool'
        >>> storage_key("..")
        '-'
    """
    key = _UNSAFE_KEY_CHARS.sub("-", identity.strip())
    if key in {"", ".", ".."}:
        return "-"
    return key
