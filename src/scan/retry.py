"""Retry helper driven by a RetryPolicy configuration value."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

    from rules.config import RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")


def call_with_retry(
    func: Callable[[], T],
    policy: RetryPolicy,
    *,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
    description: str = "call",
) -> T:
    """Call ``func`` until it succeeds or the policy runs out of attempts.

    Only exceptions listed in ``retry_on`` are retried; the last one is
    re-raised once attempts are exhausted.
    """
    delays = policy.delays()
    attempt = 1
    while True:
        try:
            return func()
        except retry_on as exc:
            if attempt >= policy.max_attempts:
                logger.error(
                    "%s failed after %d attempt(s): %s",
                    description,
                    attempt,
                    exc,
                )
                raise
            delay = delays[attempt - 1]
            logger.warning(
                "%s failed (attempt %d/%d): %s; retrying in %.1fs",
                description,
                attempt,
                policy.max_attempts,
                exc,
                delay,
            )
            sleep(delay)
            attempt += 1


__all__ = ["call_with_retry"]
