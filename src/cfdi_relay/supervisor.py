"""Bounded waits and the first-of-N race over page conditions.

A condition is an async predicate. ``race`` polls every condition in the
order given and returns the first one that holds. Listing the failure
condition first makes it win when both panels are visible on the same poll.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence, Tuple

from .constants import POLL_INTERVAL_SECS

logger = logging.getLogger(__name__)

Predicate = Callable[[], Awaitable[bool]]
Condition = Tuple[str, Predicate]


@dataclass(frozen=True)
class RaceOutcome:
    """Name of the condition that fired, or ``None`` if the budget ran out."""
    winner: Optional[str]
    elapsed: float

    @property
    def timed_out(self) -> bool:
        return self.winner is None


async def race(
    conditions: Sequence[Condition],
    timeout: float,
    *,
    interval: float = POLL_INTERVAL_SECS,
    clock: Optional[Callable[[], float]] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> RaceOutcome:
    """
    Wait until one of ``conditions`` holds or ``timeout`` seconds elapse.

    The conditions share one deadline. A final poll is made at the deadline
    itself, so a condition that becomes true exactly on the boundary still
    wins. Exceptions raised by a predicate propagate to the caller.

    Args:
        conditions: Ordered ``(name, predicate)`` pairs; earlier pairs win ties.
        timeout: Shared budget in seconds.
        interval: Delay between polls.
        clock: Monotonic clock; defaults to the running loop's clock.
        sleep: Coroutine used to suspend between polls.
    """
    if not conditions:
        raise ValueError("race() needs at least one condition")
    if clock is None:
        clock = asyncio.get_running_loop().time

    start = clock()
    deadline = start + timeout
    while True:
        for name, predicate in conditions:
            if await predicate():
                elapsed = clock() - start
                logger.debug("Condition %r fired after %.2fs", name, elapsed)
                return RaceOutcome(name, elapsed)
        remaining = deadline - clock()
        if remaining <= 0:
            elapsed = clock() - start
            logger.debug("No condition of %s fired within %.2fs", [n for n, _ in conditions], timeout)
            return RaceOutcome(None, elapsed)
        await sleep(min(interval, remaining))


async def wait_for(
    name: str,
    predicate: Predicate,
    timeout: float,
    **kwargs,
) -> RaceOutcome:
    """Single-condition bounded wait."""
    return await race([(name, predicate)], timeout, **kwargs)


__all__ = [
    "Predicate",
    "Condition",
    "RaceOutcome",
    "race",
    "wait_for",
]
