"""Cancellable scheduler for phase timers and periodic polling.

RoundEngine never touches asyncio timers directly; it asks a Scheduler for
deferred and periodic callbacks and keeps the returned handles. Production
uses AsyncioScheduler; tests inject a virtual-time implementation and advance
the clock explicitly.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Protocol

logger = logging.getLogger(__name__)

Callback = Callable[[], Awaitable[None]]


class ScheduledTask(Protocol):
    @property
    def cancelled(self) -> bool: ...

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def now(self) -> float: ...

    def call_later(self, delay: float, callback: Callback) -> ScheduledTask: ...

    def call_every(self, interval: float, callback: Callback) -> ScheduledTask: ...


class _TaskHandle:
    """Wraps the asyncio task driving one timer. cancel() is idempotent."""

    def __init__(self, task: asyncio.Task[None]) -> None:
        self._task = task
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._task.cancel()


async def run_callback(callback: Callback) -> None:
    """Await one scheduled callback; unexpected errors are logged with traceback."""
    try:
        await callback()
    except Exception:
        logger.exception("Scheduled callback %r failed", callback)


class AsyncioScheduler:
    """Wall-clock scheduler on the running event loop.

    call_every fires the first tick immediately. Each tick runs as its own
    task, so a slow tick never delays or cancels the next one; cancelling the
    handle stops future ticks but leaves in-flight ticks to finish.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._inflight: set[asyncio.Task[None]] = set()

    def now(self) -> float:
        return self._clock()

    def call_later(self, delay: float, callback: Callback) -> ScheduledTask:
        return _TaskHandle(asyncio.create_task(self._run_later(delay, callback)))

    def call_every(self, interval: float, callback: Callback) -> ScheduledTask:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        return _TaskHandle(asyncio.create_task(self._run_every(interval, callback)))

    async def _run_later(self, delay: float, callback: Callback) -> None:
        await asyncio.sleep(delay)
        await run_callback(callback)

    async def _run_every(self, interval: float, callback: Callback) -> None:
        while True:
            tick = asyncio.create_task(run_callback(callback))
            self._inflight.add(tick)
            tick.add_done_callback(self._inflight.discard)
            await asyncio.sleep(interval)

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)
