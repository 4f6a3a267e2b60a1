from __future__ import annotations

import asyncio
import itertools
import time
from abc import ABC, abstractmethod
from typing import Callable

FrameCallback = Callable[[], None]


class Clock(ABC):
    """Time source: wall clock for timestamps, monotonic clock for frame deltas."""

    @abstractmethod
    def now_ms(self) -> int:
        """Wall-clock time in epoch milliseconds."""

    @abstractmethod
    def monotonic_ms(self) -> float:
        """Monotonic time in milliseconds."""


class SystemClock(Clock):
    def now_ms(self) -> int:
        return int(time.time() * 1000)

    def monotonic_ms(self) -> float:
        return time.monotonic() * 1000


class ManualClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start_ms: int = 0) -> None:
        self._wall: float = start_ms
        self._mono = 0.0

    def now_ms(self) -> int:
        return int(self._wall)

    def monotonic_ms(self) -> float:
        return self._mono

    def advance(self, ms: float) -> None:
        """Move both clocks forward; fractional steps model real frame timing."""
        self._wall += ms
        self._mono += ms

    def set_wall(self, now_ms: int) -> None:
        """Jump the wall clock without moving the monotonic clock."""
        self._wall = now_ms


class FrameScheduler(ABC):
    """Host hook that calls back once per rendered frame."""

    @abstractmethod
    def request_frame(self, callback: FrameCallback) -> object:
        """Schedule *callback* for the next frame. Returns a cancellable handle."""

    @abstractmethod
    def cancel_frame(self, handle: object) -> None:
        ...


class ManualFrameScheduler(FrameScheduler):
    """Frames run only when pumped."""

    def __init__(self, clock: ManualClock | None = None, frame_ms: int = 16) -> None:
        self.clock = clock
        self.frame_ms = frame_ms
        self._pending: dict[int, FrameCallback] = {}
        self._ids = itertools.count(1)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def request_frame(self, callback: FrameCallback) -> int:
        handle = next(self._ids)
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: object) -> None:
        self._pending.pop(handle, None)

    def pump(self) -> int:
        """Run the callbacks pending right now. Returns how many ran."""
        batch = list(self._pending.items())
        self._pending.clear()
        for _handle, callback in batch:
            callback()
        return len(batch)

    def run_for(self, ms: int) -> int:
        """Advance the clock frame by frame for *ms*, pumping after each step."""
        if self.clock is None:
            raise RuntimeError("run_for needs a ManualClock")
        frames = 0
        elapsed = 0
        while elapsed < ms and self._pending:
            step = min(self.frame_ms, ms - elapsed)
            self.clock.advance(step)
            elapsed += step
            frames += self.pump()
        return frames


class AsyncioFrameScheduler(FrameScheduler):
    """Fixed-rate frames on an asyncio event loop."""

    def __init__(self, fps: int = 60, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self.interval = 1 / fps
        self._loop = loop

    def request_frame(self, callback: FrameCallback) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(self.interval, callback)

    def cancel_frame(self, handle: object) -> None:
        if isinstance(handle, asyncio.TimerHandle):
            handle.cancel()
