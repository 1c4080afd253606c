"""Line-level parsers for the markdown registry document."""

from parse.entries import ExtractedEntry, extract_entry, find_icon
from parse.headers import Heading, match_header, match_heading
from parse.repo_refs import RepositoryRef, resolve_repository

__all__ = [
    "ExtractedEntry",
    "Heading",
    "RepositoryRef",
    "extract_entry",
    "find_icon",
    "match_header",
    "match_heading",
    "resolve_repository",
]
