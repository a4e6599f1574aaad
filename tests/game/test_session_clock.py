from __future__ import annotations

import asyncio

import pytest

from looma.game.sessions.clock import AsyncioScheduler, ManualScheduler


def test_manual_scheduler_fires_only_on_advance() -> None:
    scheduler = ManualScheduler()
    fired: list[float] = []
    scheduler.after(2.0, lambda: fired.append(scheduler.now))

    scheduler.advance(1.5)
    assert fired == []
    scheduler.advance(0.5)

    assert fired == [2.0]
    assert scheduler.now == 2.0
    assert scheduler.pending_count == 0


def test_manual_scheduler_repeats_periodic_timer_until_cancelled() -> None:
    scheduler = ManualScheduler()
    ticks: list[float] = []
    handle = scheduler.every(1.0, lambda: ticks.append(scheduler.now))

    scheduler.advance(3)
    handle.cancel()
    scheduler.advance(3)

    assert ticks == [1.0, 2.0, 3.0]
    assert handle.cancelled is True
    assert scheduler.pending_count == 0


def test_manual_scheduler_orders_same_instant_by_install_order() -> None:
    scheduler = ManualScheduler()
    order: list[str] = []
    scheduler.after(1.0, lambda: order.append("first"))
    scheduler.after(1.0, lambda: order.append("second"))

    scheduler.advance(1.0)

    assert order == ["first", "second"]


def test_manual_scheduler_callback_can_cancel_its_own_periodic_timer() -> None:
    scheduler = ManualScheduler()
    ticks: list[int] = []
    handles = []

    def _tick() -> None:
        ticks.append(len(ticks))
        if len(ticks) == 2:
            handles[0].cancel()

    handles.append(scheduler.every(1.0, _tick))
    scheduler.advance(10)

    assert ticks == [0, 1]


def test_manual_scheduler_rejects_non_positive_interval() -> None:
    with pytest.raises(ValueError):
        ManualScheduler().every(0, lambda: None)


@pytest.mark.asyncio
async def test_asyncio_scheduler_runs_one_shot_callback() -> None:
    scheduler = AsyncioScheduler()
    fired = asyncio.Event()

    handle = scheduler.after(0.01, fired.set)
    await asyncio.wait_for(fired.wait(), timeout=1.0)

    assert handle.cancelled is False


@pytest.mark.asyncio
async def test_asyncio_scheduler_cancelled_timer_never_fires() -> None:
    scheduler = AsyncioScheduler()
    fired: list[str] = []

    handle = scheduler.after(0.01, lambda: fired.append("late"))
    handle.cancel()
    await asyncio.sleep(0.05)

    assert fired == []
    assert handle.cancelled is True


@pytest.mark.asyncio
async def test_asyncio_scheduler_periodic_timer_rearms() -> None:
    scheduler = AsyncioScheduler()
    ticks: list[int] = []
    done = asyncio.Event()
    handles = []

    def _tick() -> None:
        ticks.append(len(ticks))
        if len(ticks) == 3:
            handles[0].cancel()
            done.set()

    handles.append(scheduler.every(0.01, _tick))
    await asyncio.wait_for(done.wait(), timeout=1.0)
    await asyncio.sleep(0.03)

    assert ticks == [0, 1, 2]
