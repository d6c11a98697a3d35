"""Polling loop and its retry policy (core domain).

The loop itself never decides how long to wait; it asks a RetryPolicy. The
default policy waits a fixed interval whether the cycle succeeded or failed,
which suits a low-volume mailbox. A backoff policy can be swapped in without
touching the poll cycle.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from core.poll_cycle import CycleResult

LOGGER = logging.getLogger(__name__)


class RetryPolicy(Protocol):
    def delay_after(self, result: Optional[CycleResult]) -> float:
        """Seconds to wait before the next cycle. ``result`` is None when the
        cycle raised instead of returning."""
        ...


@dataclass(frozen=True)
class FixedDelayPolicy:
    """Wait the same interval after every cycle."""

    interval_seconds: float

    def delay_after(self, result: Optional[CycleResult]) -> float:
        return self.interval_seconds


def run_forever(
    cycle: Callable[[], CycleResult],
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
    max_cycles: Optional[int] = None,
) -> int:
    """Run ``cycle`` repeatedly, sleeping per ``policy`` between runs.

    Exceptions escaping a cycle are logged and the loop keeps going. The loop
    only ends after ``max_cycles`` iterations (tests, one-shot runs) or when
    the process is interrupted. Returns the number of cycles run.
    """

    completed = 0
    while max_cycles is None or completed < max_cycles:
        result: Optional[CycleResult] = None
        try:
            result = cycle()
        except Exception:
            LOGGER.exception("Failed to run email check")
        completed += 1

        if max_cycles is not None and completed >= max_cycles:
            break

        delay = policy.delay_after(result)
        LOGGER.info("Waiting for %s seconds before the next check...", delay)
        sleep(delay)
    return completed
