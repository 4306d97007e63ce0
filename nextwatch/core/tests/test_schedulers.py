import asyncio

import pytest

from nextwatch.core.time.asyncio_scheduler import AsyncioScheduler
from nextwatch.core.time.manual_scheduler import ManualScheduler


# --- ManualScheduler ---

def test_manual_timers_fire_in_due_order():
    clock = ManualScheduler()
    fired = []
    clock.call_later(300, lambda: fired.append(("c", clock.monotonic_ms())))
    clock.call_later(100, lambda: fired.append(("a", clock.monotonic_ms())))
    clock.call_later(100, lambda: fired.append(("b", clock.monotonic_ms())))

    clock.advance(250)
    assert fired == [("a", 100.0), ("b", 100.0)]
    assert clock.monotonic_ms() == 250.0
    clock.advance(50)
    assert fired[-1] == ("c", 300.0)


def test_manual_repeating_timer_and_cancel():
    clock = ManualScheduler()
    ticks = []
    timer = clock.call_every(100, lambda: ticks.append(clock.monotonic_ms()))
    clock.advance(350)
    assert ticks == [100.0, 200.0, 300.0]

    timer.cancel()
    assert timer.cancelled is True
    clock.advance(1000)
    assert len(ticks) == 3
    assert clock.pending_count() == 0


def test_manual_call_soon_runs_on_run_pending():
    clock = ManualScheduler()
    fired = []
    clock.call_soon(lambda: fired.append("soon"))
    assert fired == []
    clock.run_pending()
    assert fired == ["soon"]


def test_manual_timer_scheduled_from_callback_fires_in_same_advance():
    clock = ManualScheduler()
    fired = []
    clock.call_later(10, lambda: clock.call_later(10, lambda: fired.append(clock.monotonic_ms())))
    clock.advance(30)
    assert fired == [20.0]


def test_manual_wall_clock_follows_virtual_time():
    clock = ManualScheduler(wall_origin_ms=1_000_000)
    clock.advance(1500)
    assert clock.wall_time_ms() == 1_001_500


def test_manual_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        ManualScheduler().call_every(0, lambda: None)


# --- AsyncioScheduler ---

def test_asyncio_scheduler_timers():
    async def scenario():
        scheduler = AsyncioScheduler()
        fired = []
        scheduler.call_soon(lambda: fired.append("soon"))
        scheduler.call_later(10, lambda: fired.append("later"))
        cancelled = scheduler.call_later(10, lambda: fired.append("cancelled"))
        cancelled.cancel()
        ticker = scheduler.call_every(5, lambda: fired.append("tick"))
        await asyncio.sleep(0.05)
        ticker.cancel()
        count = fired.count("tick")
        await asyncio.sleep(0.03)
        return fired, count

    fired, ticks_at_cancel = asyncio.run(scenario())
    assert fired[0] == "soon"
    assert "later" in fired
    assert "cancelled" not in fired
    assert ticks_at_cancel >= 2
    assert fired.count("tick") == ticks_at_cancel


def test_asyncio_scheduler_clock_is_monotonic():
    async def scenario():
        scheduler = AsyncioScheduler()
        start = scheduler.monotonic_ms()
        await asyncio.sleep(0.02)
        return start, scheduler.monotonic_ms(), scheduler.wall_time_ms()

    start, end, wall = asyncio.run(scenario())
    assert end - start >= 15
    assert wall > 1_600_000_000_000
