"""Registry document loading from HTTP or the local filesystem."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

import httpx

from errors import FetchError
from scan.retry import call_with_retry

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from rules.config import RetryPolicy

logger = logging.getLogger(__name__)

USER_AGENT = "registry-sync/0.1"


def fetch_document(
    url: str,
    *,
    retry: RetryPolicy,
    client: httpx.Client | None = None,
    timeout: float = 30.0,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """Fetch a registry document, retrying transport and HTTP status errors.

    Raises:
        FetchError: If every attempt fails.
    """
    owns_client = client is None
    http = client or httpx.Client(
        timeout=timeout,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
    )

    def _get() -> str:
        response = http.get(url)
        response.raise_for_status()
        return response.text

    try:
        text = call_with_retry(
            _get,
            retry,
            retry_on=(httpx.HTTPError,),
            sleep=sleep,
            description=f"GET {url}",
        )
    except httpx.HTTPError as exc:
        msg = f"Failed to fetch {url} after {retry.max_attempts} attempt(s): {exc}"
        raise FetchError(msg) from exc
    finally:
        if owns_client:
            http.close()

    logger.info("Fetched %s (%d bytes)", url, len(text))
    return text


def read_document(path: Path) -> str:
    """Read a registry document from disk.

    Raises:
        FetchError: If the file cannot be read.
    """
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise FetchError(msg) from exc


__all__ = ["USER_AGENT", "fetch_document", "read_document"]
