"""Repository metadata enrichment from the GitHub REST API."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from catalog.models.candidates import RepositoryMetadata
from scan.fetch import USER_AGENT

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from catalog.models.candidates import CandidateEntry
    from rules.config import EnrichmentConfig

logger = logging.getLogger(__name__)


def _headers(config: EnrichmentConfig) -> dict[str, str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": USER_AGENT,
    }
    token = os.environ.get(config.token_env)
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def parse_repository_metadata(data: Any) -> RepositoryMetadata:
    """Map a ``GET /repos/{owner}/{repo}`` payload onto RepositoryMetadata.

    Raises:
        ValueError: If the payload is not a JSON object or a field has the
            wrong type (pydantic's ValidationError is a ValueError).
    """
    if not isinstance(data, dict):
        msg = f"expected a JSON object, got {type(data).__name__}"
        raise ValueError(msg)

    license_info = data.get("license")
    if isinstance(license_info, dict):
        license_id = license_info.get("spdx_id") or license_info.get("name")
    else:
        license_id = license_info or None

    topics = data.get("topics") or []
    if not isinstance(topics, list):
        msg = f"expected 'topics' to be a list, got {type(topics).__name__}"
        raise ValueError(msg)

    return RepositoryMetadata(
        language=data.get("language"),
        license=license_id,
        star_count=data.get("stargazers_count"),
        updated_at=data.get("pushed_at") or data.get("updated_at"),
        topics=[str(topic) for topic in topics],
    )


async def fetch_repository_metadata(
    client: httpx.AsyncClient, owner: str, repo: str
) -> RepositoryMetadata:
    """Fetch metadata for one repository.

    A 404 yields an empty RepositoryMetadata: the lookup happened and found
    nothing. Other HTTP failures propagate as ``httpx.HTTPError``; a body that
    is not valid repository JSON raises ``ValueError``.
    """
    response = await client.get(f"/repos/{owner}/{repo}")
    if response.status_code == httpx.codes.NOT_FOUND:
        logger.info("Repository %s/%s not found", owner, repo)
        return RepositoryMetadata()
    response.raise_for_status()
    return parse_repository_metadata(response.json())


async def enrich_entries_async(
    entries: Sequence[CandidateEntry],
    *,
    config: EnrichmentConfig,
    transport: httpx.AsyncBaseTransport | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> list[CandidateEntry]:
    """Return copies of ``entries`` with enrichment filled in where possible.

    At most ``config.concurrency`` requests run at once and each request
    holds its slot for ``config.delay_seconds`` afterwards. Entries without
    an owner/repo, or whose lookup fails, are returned unchanged.
    """
    semaphore = asyncio.Semaphore(config.concurrency)

    async with httpx.AsyncClient(
        base_url=config.api_base,
        headers=_headers(config),
        timeout=config.timeout,
        transport=transport,
    ) as client:

        async def _enrich(entry: CandidateEntry) -> CandidateEntry:
            if entry.owner is None or entry.repo is None:
                return entry
            async with semaphore:
                try:
                    metadata = await fetch_repository_metadata(
                        client, entry.owner, entry.repo
                    )
                except (httpx.HTTPError, ValidationError, ValueError) as exc:
                    logger.warning(
                        "Enrichment failed for %s/%s: %s", entry.owner, entry.repo, exc
                    )
                    return entry
                finally:
                    await sleep(config.delay_seconds)
            return entry.model_copy(update={"enrichment": metadata})

        enriched = await asyncio.gather(*(_enrich(entry) for entry in entries))

    logger.info(
        "Enriched %d of %d entries",
        sum(1 for entry in enriched if entry.is_enriched),
        len(enriched),
    )
    return list(enriched)


def enrich_entries(
    entries: Sequence[CandidateEntry],
    *,
    config: EnrichmentConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[CandidateEntry]:
    """Synchronous entry point for :func:`enrich_entries_async`."""
    return asyncio.run(enrich_entries_async(entries, config=config, transport=transport))


__all__ = [
    "enrich_entries",
    "enrich_entries_async",
    "fetch_repository_metadata",
    "parse_repository_metadata",
]
