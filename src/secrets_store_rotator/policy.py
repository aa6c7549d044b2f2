"""Retry policy applied to a key after each reconcile attempt."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from .constants import MAX_NUM_OF_REQUEUES, REQUEUE_DELAY_SECONDS


class Action(str, enum.Enum):
    """What the queue should do with a key."""

    FORGET = "forget"
    DELAY = "delay"
    RATE_LIMIT = "rate_limit"


@dataclass(frozen=True)
class Decision:
    """Retry decision; ``delay`` is only meaningful for ``Action.DELAY``."""

    action: Action
    delay: float = 0.0
    budget_exhausted: bool = False


def decide(
    failed: bool,
    not_found: bool,
    num_requeues: int,
    max_requeues: int = MAX_NUM_OF_REQUEUES,
    requeue_delay: float = REQUEUE_DELAY_SECONDS,
) -> Decision:
    """Decide how to re-queue a key.

    * success: forget the key's retry history.
    * not-found failure: rate limited re-queue while fewer than
      ``max_requeues`` retries were made, then forget the key. A deleted
      pod's status stops being listed, so the scheduler will not bring it
      back.
    * any other failure: re-queue after a fixed delay, without limit.
    """
    if not failed:
        return Decision(Action.FORGET)
    if not not_found:
        return Decision(Action.DELAY, delay=requeue_delay)
    if num_requeues < max_requeues:
        return Decision(Action.RATE_LIMIT)
    return Decision(Action.FORGET, budget_exhausted=True)
