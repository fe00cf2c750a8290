"""
Scheduling primitives for the sync job.

Clock abstracts time so cycles can be driven without a live timer.
Wait strategies (tenacity) set the delay between failed attempts of one cycle.
"""

import asyncio
import time
from typing import Protocol

from tenacity import wait_exponential, wait_fixed, wait_none
from tenacity.wait import wait_base


class Clock(Protocol):
    """Monotonic time source with an async sleep."""

    def now(self) -> float: ...

    async def sleep(self, seconds: float) -> None: ...


class SystemClock:
    """Real time."""

    def now(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


def wait_for(name: str, delay: float = 5.0, max_delay: float = 300.0) -> wait_base:
    """
    Look up a wait strategy by its configuration name.

    "none" retries immediately, "fixed" waits `delay` after every failure and
    "exponential" doubles from `delay` up to `max_delay`.
    """
    if name == "none":
        return wait_none()
    if name == "fixed":
        return wait_fixed(delay)
    if name == "exponential":
        return wait_exponential(multiplier=delay, max=max_delay)
    raise ValueError(f"Unknown backoff strategy: {name}")
