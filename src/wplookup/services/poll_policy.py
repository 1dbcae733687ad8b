"""
Polling policy for "wait until the page shows X" operations.

Replaces ad hoc fixed sleeps with one tunable policy: probe, and once the
condition first holds, confirm it for a number of debounce rounds before
believing it. Every non-confirming attempt consumes budget; running out of
budget is reported, not raised.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from loguru import logger

Sleep = Callable[[float], Awaitable[None]]


class PollPolicy:
    """Configuration for polling behavior."""

    def __init__(
        self,
        interval_seconds: float = 1.0,
        max_attempts: int = 30,
        debounce_rounds: int = 1,
    ):
        """Initialize polling configuration.

        Args:
            interval_seconds: Pause between probes (also between debounce probes)
            max_attempts: Attempts before giving up
            debounce_rounds: Extra confirming probes required after the
                condition first holds (0 = believe the first positive probe)
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if debounce_rounds < 0:
            raise ValueError("debounce_rounds must not be negative")
        if interval_seconds < 0:
            raise ValueError("interval_seconds must not be negative")

        self.interval = interval_seconds
        self.max_attempts = max_attempts
        self.debounce_rounds = debounce_rounds

    def __repr__(self) -> str:
        return (
            f"PollPolicy(interval={self.interval}s, max_attempts={self.max_attempts}, "
            f"debounce_rounds={self.debounce_rounds})"
        )


@dataclass
class PollResult:
    """Outcome of one polling run."""

    satisfied: bool
    attempts: int
    probes: int

    def __bool__(self) -> bool:
        return self.satisfied


async def poll_until(
    probe: Callable[[], Awaitable[bool]],
    policy: PollPolicy,
    label: str,
    sleep: Sleep = asyncio.sleep,
) -> PollResult:
    """Poll ``probe`` until it holds across the debounce window.

    A probe that raises counts as a failed attempt; the error is logged at
    debug level and polling continues.

    Args:
        probe: Async predicate, True when the awaited condition holds
        policy: Interval, attempt budget and debounce rounds
        label: Name used in log messages
        sleep: Awaitable sleep, replaceable in tests

    Returns:
        PollResult; ``satisfied`` is False when the budget ran out
    """
    probes = 0

    for attempt in range(1, policy.max_attempts + 1):
        try:
            probes += 1
            if await probe():
                confirmed = True
                for _ in range(policy.debounce_rounds):
                    await sleep(policy.interval)
                    probes += 1
                    if not await probe():
                        confirmed = False
                        break

                if confirmed:
                    logger.debug(f"[{label}] condition held after {attempt} attempt(s)")
                    return PollResult(satisfied=True, attempts=attempt, probes=probes)

                logger.debug(f"[{label}] condition flickered during debounce")

        except Exception as e:
            logger.debug(f"[{label}] probe failed on attempt {attempt}: {e}")

        if attempt < policy.max_attempts:
            await sleep(policy.interval)

    logger.warning(f"[{label}] condition not met after {policy.max_attempts} attempt(s)")
    return PollResult(satisfied=False, attempts=policy.max_attempts, probes=probes)
