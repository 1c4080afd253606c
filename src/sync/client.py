"""HTTP client for the destination catalog API."""

from __future__ import annotations

import logging
import os
import time
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx

from errors import SyncError
from rules.config import ConfigError
from scan.fetch import USER_AGENT
from scan.retry import call_with_retry

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from catalog.models.approved import ApprovedRecord
    from rules.config import CatalogApiConfig, RetryPolicy

logger = logging.getLogger(__name__)


class CatalogClient:
    """Synchronous client that upserts approved records into the catalog API.

    Transport errors, 429 and 5xx responses are retried according to the
    retry policy. Other 4xx responses fail immediately.
    """

    def __init__(
        self,
        base_url: str,
        *,
        retry: RetryPolicy,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._retry = retry
        self._sleep = sleep
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: CatalogApiConfig,
        *,
        retry: RetryPolicy,
        transport: httpx.BaseTransport | None = None,
    ) -> CatalogClient:
        if not config.base_url:
            msg = "catalog_api.base_url is not configured"
            raise ConfigError(msg)
        token = os.environ.get(config.token_env)
        if not token:
            logger.warning("%s is not set; sending unauthenticated requests", config.token_env)
        return cls(
            config.base_url,
            retry=retry,
            token=token,
            timeout=config.timeout,
            transport=transport,
        )

    def __enter__(self) -> CatalogClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def put_record(self, record: ApprovedRecord) -> None:
        """Create or replace one record at ``PUT /servers/{identity}``.

        Raises:
            SyncError: If the API rejects the record or retries run out.
        """
        path = f"/servers/{quote(record.identity, safe='')}"
        payload = record.model_dump(mode="json")

        def _put() -> None:
            response = self._client.put(path, json=payload)
            status = response.status_code
            if 400 <= status < 500 and status != httpx.codes.TOO_MANY_REQUESTS:
                raise SyncError(record.identity, f"rejected with HTTP {status}: {response.text}")
            response.raise_for_status()

        try:
            call_with_retry(
                _put,
                self._retry,
                retry_on=(httpx.HTTPError,),
                sleep=self._sleep,
                description=f"PUT {path}",
            )
        except httpx.HTTPError as exc:
            raise SyncError(record.identity, str(exc)) from exc


__all__ = ["CatalogClient"]
