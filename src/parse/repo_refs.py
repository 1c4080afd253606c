"""Owner/repository resolution for hosting URLs."""

from __future__ import annotations

import re

# Accepts https://github.com/o/r[/...], github.com/o/r, and git@github.com:o/r.git
_GITHUB_RE = re.compile(
    r"^(?:[a-z][a-z0-9+.-]*://)?(?:[^@/\s]+@)?(?:www\.)?github\.com[:/]"
    r"(?P<owner>[A-Za-z0-9_.-]+)/(?P<repo>[A-Za-z0-9_.-]+)"
    r"(?:[/?#]|$)",
    re.IGNORECASE,
)

RepositoryRef = tuple[str, str] | tuple[None, None]


def resolve_repository(url: str) -> RepositoryRef:
    """Derive ``(owner, repo)`` from a hosting URL.

    Returns ``(None, None)`` for URLs that are not a recognized GitHub
    repository location. A trailing ``.git`` on the repository name is removed.
    """
    match = _GITHUB_RE.match(url.strip())
    if match is None:
        return None, None

    owner = match.group("owner")
    repo = match.group("repo")
    if repo.lower().endswith(".git"):
        repo = repo[:-4]
    if not repo:
        return None, None
    return owner, repo


__all__ = ["RepositoryRef", "resolve_repository"]
