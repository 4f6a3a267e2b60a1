from __future__ import annotations

from dataclasses import replace

import structlog

from idlecore._types import DecimalInput
from idlecore.automation import DEFAULT_AUTOMATIONS, AutomationDef, AutomationScheduler
from idlecore.catalog import DEFAULT_UPGRADES, UpgradeCatalog
from idlecore.clock import Clock, FrameScheduler, ManualFrameScheduler, SystemClock
from idlecore.config import GameConfig
from idlecore.generation import GenerationCalculator
from idlecore.offline import (
    OfflineProgressResult,
    apply_offline_progress,
    calculate_offline_progress,
)
from idlecore.state import GameState
from idlecore.tick import TickEngine
from idlecore.upgrade import PurchaseResult, UpgradeCategory, UpgradeDisplayInfo

logger = structlog.get_logger()


class GameRuntime:
    """Wires the progression components around a single GameState."""

    def __init__(
        self,
        config: GameConfig | None = None,
        catalog: UpgradeCatalog | None = None,
        automations: list[AutomationDef] | None = None,
        state: GameState | None = None,
        clock: Clock | None = None,
        frames: FrameScheduler | None = None,
    ) -> None:
        self.config = config or GameConfig()
        self.catalog = catalog or UpgradeCatalog(DEFAULT_UPGRADES, self.config.upgrades)
        self.scheduler = AutomationScheduler(
            self.catalog, DEFAULT_AUTOMATIONS if automations is None else automations
        )

        errors = self.config.validate() + self.catalog.validate() + self.scheduler.validate()
        if errors:
            raise ValueError("Invalid game setup:\n" + "\n".join(f"  - {e}" for e in errors))

        self.clock = clock or SystemClock()
        self.frames = frames or ManualFrameScheduler()
        self.state = state or GameState(
            now_ms=self.clock.now_ms(), max_top_scores=self.config.max_top_scores
        )
        self.generation = GenerationCalculator(
            self.config.auto_generation, self.catalog, self.scheduler
        )
        self.engine = TickEngine(
            self.state, self.config, self.generation, self.scheduler, self.clock, self.frames
        )
        self._pending_offline: OfflineProgressResult | None = None

    # ── Session lifecycle ────────────────────────────────────────────

    def start(self) -> None:
        self.engine.start()

    def stop(self) -> None:
        self.engine.stop()

    def resume_session(self) -> OfflineProgressResult:
        """Catch up on time spent away.

        Continuous earnings are credited first and the offline automation
        triggers then run against the credited balances. When the result
        asks for a welcome-back acknowledgement both steps wait for
        :meth:`acknowledge_offline`; the trigger timers are reset right away
        so live automations do not also fire for the same span. A result
        still pending from an earlier resume is applied before the new one
        is calculated.
        """
        if self._pending_offline is not None:
            logger.info("applying unacknowledged offline progress before resuming")
            self.acknowledge_offline()

        now = self.clock.now_ms()
        rate = self.generation.primary_rate(self.state)
        result = calculate_offline_progress(self.state, self.config, now, rate)
        if not result.was_calculated:
            return result

        offline_ms = int(result.effective_seconds * 1000)
        triggers = self.scheduler.calculate_offline_triggers(
            self.state, offline_ms, self.config.gameplay.offline_efficiency
        )
        result = replace(result, automation_triggers=triggers)

        if result.should_show_modal:
            for automation_id in triggers:
                self.state.update_automation_trigger(automation_id, now)
            self._pending_offline = result
            logger.info("offline progress awaiting acknowledgement", time_away=result.formatted_time_away)
        else:
            result = self._apply_offline(result, now)
        self.state.update_last_played(now)
        return result

    @property
    def pending_offline(self) -> OfflineProgressResult | None:
        return self._pending_offline

    def acknowledge_offline(self) -> OfflineProgressResult | None:
        """Apply the pending offline result. Returns None if nothing was pending."""
        result = self._pending_offline
        if result is None:
            return None
        self._pending_offline = None
        result = self._apply_offline(result, self.clock.now_ms())
        self._refresh_rate()
        return result

    def suspend(self) -> None:
        """End the active session: stop ticking and stamp the session timestamps."""
        if self.engine.is_running:
            self.engine.stop()
        now = self.clock.now_ms()
        self.state.update_last_played(now)
        self.state.update_last_saved(now)
        logger.info("session suspended", last_played=now)

    # ── Player actions ───────────────────────────────────────────────

    def purchase(self, upgrade_id: str) -> PurchaseResult:
        result = self.catalog.purchase(self.state, upgrade_id, now=self.clock.now_ms())
        if result.success:
            self._refresh_rate()
        return result

    def try_purchase(self, upgrade_id: str) -> bool:
        """Attempt to purchase an upgrade. Returns True on success."""
        return self.purchase(upgrade_id).success

    def toggle_automation(self, automation_id: str) -> bool:
        return self.scheduler.toggle(self.state, automation_id, self.clock.now_ms())

    def record_score(self, minigame_id: str, score: DecimalInput) -> None:
        """Entry point for a finished minigame run."""
        self.state.record_score(minigame_id, score)
        self.state.increment_play_count(minigame_id)
        self._refresh_rate()

    # ── Queries ──────────────────────────────────────────────────────

    def rates(self) -> dict[str, str]:
        return self.generation.all_rates(self.state)

    def upgrade_info(self, category: UpgradeCategory | None = None) -> list[UpgradeDisplayInfo]:
        if category is not None:
            return self.catalog.category_display_info(self.state, category)
        infos = (self.catalog.display_info(self.state, u.id) for u in self.catalog.upgrades)
        return [info for info in infos if info is not None]

    # ── Private helpers ──────────────────────────────────────────────

    def _refresh_rate(self) -> None:
        if self.engine.is_running:
            self.engine.force_rate_update()
        else:
            self.engine.recalculate_rate()

    def _apply_offline(self, result: OfflineProgressResult, now: int) -> OfflineProgressResult:
        apply_offline_progress(self.state, result)
        applied = self.scheduler.apply_offline_triggers(self.state, result.automation_triggers, now)
        return replace(result, automation_applied=applied)
