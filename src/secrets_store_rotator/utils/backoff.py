"""Bounded retry with exponential backoff for cluster writes."""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from tenacity import Retrying, before_sleep_log, stop_after_attempt, wait_exponential, wait_random

from ..constants import (
    WRITE_BACKOFF_DURATION_SECONDS,
    WRITE_BACKOFF_FACTOR,
    WRITE_BACKOFF_JITTER,
    WRITE_BACKOFF_STEPS,
)

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


def retry_with_backoff(
    func: Callable[[], _T],
    steps: int = WRITE_BACKOFF_STEPS,
    duration: float = WRITE_BACKOFF_DURATION_SECONDS,
    factor: float = WRITE_BACKOFF_FACTOR,
    jitter: float = WRITE_BACKOFF_JITTER,
    sleep: Callable[[float], Any] | None = None,
) -> _T:
    """Call ``func`` up to ``steps`` times, sleeping between failed attempts.

    The n-th sleep is ``duration * factor ** (n - 1)`` plus a random jitter of
    up to ``jitter * duration``. The exception of the last attempt is raised
    once the budget is spent.
    """
    kwargs: dict[str, Any] = {}
    if sleep is not None:
        kwargs["sleep"] = sleep
    retrying = Retrying(
        stop=stop_after_attempt(steps),
        wait=wait_exponential(multiplier=duration, exp_base=factor, min=duration)
        + wait_random(0, duration * jitter),
        before_sleep=before_sleep_log(logger, logging.DEBUG),
        reraise=True,
        **kwargs,
    )
    return retrying(func)
