"""Tests for clocks and frame schedulers."""
import asyncio

import pytest

from idlecore.clock import AsyncioFrameScheduler, ManualClock, ManualFrameScheduler


def test_manual_clock_advances_both_clocks():
    clock = ManualClock(1000)
    clock.advance(250)
    assert clock.now_ms() == 1250
    assert clock.monotonic_ms() == 250


def test_set_wall_leaves_monotonic_alone():
    clock = ManualClock(1000)
    clock.set_wall(5000)
    assert clock.now_ms() == 5000
    assert clock.monotonic_ms() == 0


def test_pump_runs_pending_once():
    frames = ManualFrameScheduler()
    calls = []
    frames.request_frame(lambda: calls.append("a"))
    frames.request_frame(lambda: calls.append("b"))
    assert frames.pending == 2
    assert frames.pump() == 2
    assert calls == ["a", "b"]
    assert frames.pump() == 0


def test_cancel_frame():
    frames = ManualFrameScheduler()
    calls = []
    handle = frames.request_frame(lambda: calls.append(1))
    frames.cancel_frame(handle)
    frames.cancel_frame(handle)
    assert frames.pump() == 0
    assert calls == []


def test_run_for_requires_clock():
    with pytest.raises(RuntimeError):
        ManualFrameScheduler().run_for(100)


def test_run_for_steps_clock_per_frame():
    clock = ManualClock(0)
    frames = ManualFrameScheduler(clock, frame_ms=16)
    seen = []

    def on_frame():
        seen.append(clock.monotonic_ms())
        frames.request_frame(on_frame)

    frames.request_frame(on_frame)
    assert frames.run_for(40) == 3
    assert seen == [16, 32, 40]


def test_run_for_stops_without_pending_frames():
    clock = ManualClock(0)
    frames = ManualFrameScheduler(clock, frame_ms=10)
    frames.request_frame(lambda: None)
    assert frames.run_for(1000) == 1
    assert clock.monotonic_ms() == 10


def test_asyncio_frame_scheduler():
    calls = []

    async def main():
        frames = AsyncioFrameScheduler(fps=1000)
        frames.request_frame(lambda: calls.append("run"))
        cancelled = frames.request_frame(lambda: calls.append("cancelled"))
        frames.cancel_frame(cancelled)
        await asyncio.sleep(0.05)

    asyncio.run(main())
    assert calls == ["run"]


def test_manual_clock_fractional_advance():
    clock = ManualClock(1000)
    clock.advance(0.4)
    clock.advance(0.7)
    assert clock.now_ms() == 1001
    assert abs(clock.monotonic_ms() - 1.1) < 1e-9
