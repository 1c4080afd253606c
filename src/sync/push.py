"""One-record-at-a-time push of the approved catalog."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from errors import SyncError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from catalog.models.approved import ApprovedRecord
    from sync.client import CatalogClient

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    pushed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[SyncError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def sync_catalog(
    records: Mapping[str, ApprovedRecord],
    client: CatalogClient | None,
    *,
    dry_run: bool = False,
) -> SyncReport:
    """Push every record in identity order.

    A failed record is reported and the remaining records are still pushed;
    there is no rollback. With ``dry_run`` nothing is sent.
    """
    report = SyncReport()
    for identity in sorted(records):
        if dry_run or client is None:
            report.skipped.append(identity)
            continue
        try:
            client.put_record(records[identity])
        except SyncError as exc:
            logger.error("Sync failed for %s", exc)
            report.failed.append(exc)
            continue
        report.pushed.append(identity)

    logger.info(
        "Sync finished: %d pushed, %d skipped, %d failed",
        len(report.pushed),
        len(report.skipped),
        len(report.failed),
    )
    return report


__all__ = ["SyncReport", "sync_catalog"]
