"""Fixed-interval polling loop.

One tick at a time: the next tick is scheduled only after the previous one
finished, so ticks never overlap. Each tick receives a monotonically
increasing sequence number that consumers use to discard stale results.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any

from fleettrack._constants import POLL_INTERVAL_SECONDS

_logger = logging.getLogger(__name__)

TickCallback = Callable[[int], Awaitable[Any]]


class PollingState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class PollingLoop:
    """Runs *tick* every *interval* seconds until stopped.

    A failing tick is logged and skipped; the loop keeps its cadence.
    """

    def __init__(
        self,
        tick: TickCallback,
        *,
        interval: float = POLL_INTERVAL_SECONDS,
        name: str = "fleet",
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._tick = tick
        self._interval = interval
        self._name = name
        self._sequence = 0
        self._task: asyncio.Task[None] | None = None
        self._state = PollingState.IDLE

    async def __aenter__(self) -> PollingLoop:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def sequence(self) -> int:
        """Sequence number of the most recently started tick (0 before any)."""
        return self._sequence

    @property
    def state(self) -> PollingState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is PollingState.RUNNING

    def start(self, *, immediate: bool = True) -> None:
        """Start ticking; with *immediate* the first tick runs right away."""
        if self._state is PollingState.RUNNING:
            return
        self._state = PollingState.RUNNING
        self._task = asyncio.get_running_loop().create_task(self._run(immediate), name=f"{self._name}-poll")
        _logger.debug("Started %s polling every %.1fs", self._name, self._interval)

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish. Safe to repeat."""
        if self._state is not PollingState.RUNNING:
            return
        self._state = PollingState.STOPPED
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        _logger.debug("Stopped %s polling after %d ticks", self._name, self._sequence)

    async def run_once(self) -> bool:
        """Run a single tick now. Returns ``False`` when it failed."""
        self._sequence += 1
        sequence = self._sequence
        try:
            await self._tick(sequence)
        except Exception as exc:
            _logger.warning("%s poll tick %d failed: %s", self._name, sequence, exc)
            _logger.debug("%s poll tick %d traceback", self._name, sequence, exc_info=True)
            return False
        return True

    async def _run(self, immediate: bool) -> None:
        if not immediate:
            await asyncio.sleep(self._interval)
        while self._state is PollingState.RUNNING:
            started = time.monotonic()
            await self.run_once()
            elapsed = time.monotonic() - started
            await asyncio.sleep(max(0.0, self._interval - elapsed))
