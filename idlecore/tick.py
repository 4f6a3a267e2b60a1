from __future__ import annotations

from typing import TYPE_CHECKING, Callable

import structlog

from idlecore import economy

if TYPE_CHECKING:
    from idlecore.automation import AutomationScheduler
    from idlecore.clock import Clock, FrameScheduler
    from idlecore.config import GameConfig
    from idlecore.generation import GenerationCalculator
    from idlecore.state import GameState

logger = structlog.get_logger()

RateCallback = Callable[[str, str], None]


class TickEngine:
    """Per-frame loop crediting generation, running automations and tracking play time."""

    def __init__(
        self,
        state: GameState,
        config: GameConfig,
        generation: GenerationCalculator,
        scheduler: AutomationScheduler,
        clock: Clock,
        frames: FrameScheduler,
    ) -> None:
        self.state = state
        self.config = config
        self.generation = generation
        self.scheduler = scheduler
        self.clock = clock
        self.frames = frames

        self._running = False
        self._frame_handle: object | None = None
        self._last_frame_ms = 0.0
        self._last_rate_update_ms = 0.0
        self._play_time_carry_ms = 0.0
        self._rate = economy.ZERO
        self._rate_callback: RateCallback | None = None

    # ── Lifecycle ────────────────────────────────────────────────────

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            logger.warning("tick engine already running")
            return
        self._running = True
        now = self.clock.monotonic_ms()
        self._last_frame_ms = now
        self._last_rate_update_ms = now
        self.recalculate_rate()
        self._request_frame()
        logger.info("tick engine started", rate=self._rate)

    def stop(self) -> None:
        """Stop immediately; the pending frame is cancelled and last_played stamped."""
        if not self._running:
            logger.warning("tick engine already stopped")
            return
        self._running = False
        if self._frame_handle is not None:
            self.frames.cancel_frame(self._frame_handle)
            self._frame_handle = None
        self.state.update_last_played(self.clock.now_ms())
        logger.info("tick engine stopped")

    def destroy(self) -> None:
        if self._running:
            self.stop()
        self._rate_callback = None

    # ── Core loop ────────────────────────────────────────────────────

    def tick(self) -> None:
        """Run one frame's worth of work."""
        gameplay = self.config.gameplay
        now = self.clock.monotonic_ms()
        delta_ms = max(0.0, min(now - self._last_frame_ms, gameplay.max_delta_ms))
        self._last_frame_ms = now

        self._apply_generation(delta_ms)

        # Automations run on wall-clock time, independent of the clamped delta
        wall_now = self.clock.now_ms()
        self.scheduler.process(self.state, wall_now)

        # Whole milliseconds only; the fraction carries into the next frame
        self._play_time_carry_ms += delta_ms
        whole_ms = int(self._play_time_carry_ms)
        self._play_time_carry_ms -= whole_ms
        self.state.add_play_time(whole_ms)
        self.state.update_last_played(wall_now)

        if now - self._last_rate_update_ms >= gameplay.rate_update_interval_ms:
            self._last_rate_update_ms = now
            self.recalculate_rate()
            self._notify_rate_update()

    def _on_frame(self) -> None:
        self._frame_handle = None
        if not self._running:
            return
        self.tick()
        if self._running:
            self._request_frame()

    def _request_frame(self) -> None:
        self._frame_handle = self.frames.request_frame(self._on_frame)

    def _apply_generation(self, delta_ms: float) -> None:
        if not economy.is_positive(self._rate):
            return
        amount = economy.calculate_generation(self._rate, economy.divide(delta_ms, 1000))
        if economy.is_positive(amount):
            primary = self.config.auto_generation.primary_resource
            self.state.add_resource(primary, amount)
            self.state.track_resource_earned(primary, amount)

    # ── Rate display ─────────────────────────────────────────────────

    def recalculate_rate(self) -> str:
        self._rate = self.generation.primary_rate(self.state)
        return self._rate

    def force_rate_update(self) -> None:
        """Recalculate now and notify, e.g. right after a purchase."""
        self.recalculate_rate()
        self._notify_rate_update()

    @property
    def current_rate(self) -> str:
        return self._rate

    @property
    def formatted_rate(self) -> str:
        return economy.format_rate(self._rate)

    def on_rate_update(self, callback: RateCallback) -> None:
        self._rate_callback = callback

    def _notify_rate_update(self) -> None:
        if self._rate_callback is not None:
            self._rate_callback(self._rate, self.formatted_rate)
