from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

TimerCallback = Callable[[], None]


class TimerHandle(Protocol):
    @property
    def cancelled(self) -> bool: ...

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def after(self, delay: float, callback: TimerCallback) -> TimerHandle: ...

    def every(self, interval: float, callback: TimerCallback) -> TimerHandle: ...


class _LoopTimerHandle:
    def __init__(self) -> None:
        self._handle: asyncio.TimerHandle | None = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AsyncioScheduler:
    """Scheduler backed by ``loop.call_later``.

    Periodic timers re-arm themselves after each callback, so a slow callback
    delays the following tick rather than stacking ticks.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def after(self, delay: float, callback: TimerCallback) -> TimerHandle:
        handle = _LoopTimerHandle()

        def _fire() -> None:
            if handle.cancelled:
                return
            handle._handle = None
            callback()

        handle._handle = self._get_loop().call_later(max(0.0, delay), _fire)
        return handle

    def every(self, interval: float, callback: TimerCallback) -> TimerHandle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        handle = _LoopTimerHandle()
        loop = self._get_loop()

        def _tick() -> None:
            if handle.cancelled:
                return
            callback()
            if not handle.cancelled:
                handle._handle = loop.call_later(interval, _tick)

        handle._handle = loop.call_later(interval, _tick)
        return handle


@dataclass(slots=True)
class _ManualTimerHandle:
    _cancelled: bool = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


@dataclass(order=True, slots=True)
class _ManualEntry:
    due: float
    seq: int
    callback: TimerCallback = field(compare=False)
    interval: float | None = field(compare=False)
    handle: _ManualTimerHandle = field(compare=False)


class ManualScheduler:
    """Virtual-time scheduler; nothing fires until ``advance`` is called."""

    def __init__(self) -> None:
        self._now = 0.0
        self._queue: list[_ManualEntry] = []
        self._seq = itertools.count()

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending_count(self) -> int:
        return sum(1 for entry in self._queue if not entry.handle.cancelled)

    def after(self, delay: float, callback: TimerCallback) -> TimerHandle:
        return self._push(self._now + max(0.0, delay), callback, interval=None)

    def every(self, interval: float, callback: TimerCallback) -> TimerHandle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        return self._push(self._now + interval, callback, interval=interval)

    def advance(self, seconds: float) -> None:
        target = self._now + seconds
        while self._queue and self._queue[0].due <= target:
            entry = heapq.heappop(self._queue)
            if entry.handle.cancelled:
                continue
            self._now = entry.due
            if entry.interval is None:
                entry.handle.cancel()
                entry.callback()
                continue
            entry.callback()
            if not entry.handle.cancelled:
                entry.due += entry.interval
                entry.seq = next(self._seq)
                heapq.heappush(self._queue, entry)
        self._now = target

    def _push(
        self,
        due: float,
        callback: TimerCallback,
        *,
        interval: float | None,
    ) -> _ManualTimerHandle:
        handle = _ManualTimerHandle()
        heapq.heappush(
            self._queue,
            _ManualEntry(
                due=due,
                seq=next(self._seq),
                callback=callback,
                interval=interval,
                handle=handle,
            ),
        )
        return handle
