"""TickScheduler — serialized periodic ticks with explicit cancellation.

Each named stream runs in its own asyncio task.  A stream awaits its tick
to completion before it sleeps, so two ticks of the same stream never
overlap; different streams run concurrently.

stop() is explicit and immediate: it wakes every sleeping stream, cancels
any tick still in flight and waits for the tasks to finish.  No tick
starts after stop() returns.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

TickFn = Callable[[], Awaitable[object]]


class TickStream:
    """One periodic unit of work and its counters."""

    __slots__ = ("name", "interval_seconds", "tick", "tick_count", "error_count")

    def __init__(self, name: str, interval_seconds: float, tick: TickFn) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval for stream '{name}' must be positive")
        self.name = name
        self.interval_seconds = interval_seconds
        self.tick = tick
        self.tick_count: int = 0
        self.error_count: int = 0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "interval_seconds": self.interval_seconds,
            "tick_count": self.tick_count,
            "error_count": self.error_count,
        }


class TickScheduler:
    """Owns the tasks for every registered stream.

    Usage:
        scheduler = TickScheduler()
        scheduler.register("derivatives", 2.0, engine.derivative_tick)
        scheduler.register("patterns", 30.0, engine.pattern_scan)
        await scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(self, run_immediately: bool = True) -> None:
        self._streams: dict[str, TickStream] = {}
        self._tasks: dict[str, asyncio.Task] = {}
        self._stopping = asyncio.Event()
        self._run_immediately = run_immediately

    # ── Registration ─────────────────────────────────────────────────────

    def register(self, name: str, interval_seconds: float, tick: TickFn) -> TickStream:
        if name in self._streams:
            raise ValueError(f"stream '{name}' already registered")
        if self.running:
            raise RuntimeError("cannot register streams while the scheduler is running")
        stream = TickStream(name, interval_seconds, tick)
        self._streams[name] = stream
        logger.info("Registered tick stream '%s' every %.1fs", name, interval_seconds)
        return stream

    # ── Lifecycle ────────────────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks.values())

    async def start(self) -> None:
        if self.running:
            return
        self._stopping = asyncio.Event()
        self._tasks = {
            name: asyncio.create_task(self._run(stream), name=f"tick:{name}")
            for name, stream in self._streams.items()
        }
        logger.info("Scheduler started %d stream(s)", len(self._tasks))

    async def stop(self) -> None:
        """Stop every stream.  Safe to call more than once."""
        self._stopping.set()
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks = {}
        logger.info("Scheduler stopped")

    @property
    def stats(self) -> list[dict]:
        return [s.to_dict() for s in self._streams.values()]

    # ── Internals ────────────────────────────────────────────────────────

    async def _run(self, stream: TickStream) -> None:
        loop = asyncio.get_running_loop()
        if not self._run_immediately and await self._sleep(stream.interval_seconds):
            return

        while not self._stopping.is_set():
            started = loop.time()
            try:
                await stream.tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                # A failed tick must not kill the stream; the next one retries
                stream.error_count += 1
                logger.exception("Tick '%s' failed", stream.name)
            else:
                stream.tick_count += 1

            elapsed = loop.time() - started
            if await self._sleep(max(0.0, stream.interval_seconds - elapsed)):
                return

    async def _sleep(self, seconds: float) -> bool:
        """Sleep up to *seconds*.  Returns True if stop was requested."""
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True
