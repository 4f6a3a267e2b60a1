from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

import structlog

from idlecore import economy
from idlecore._types import DecimalInput

if TYPE_CHECKING:
    from idlecore.catalog import UpgradeCatalog
    from idlecore.state import GameState

logger = structlog.get_logger()


class AutomationStatus(Enum):
    UNINITIALIZED = auto()
    IDLE = auto()
    DUE = auto()
    EXECUTING = auto()


@dataclass(frozen=True)
class Conversion:
    """Atomic effect: debit *cost* of one resource, credit *output* of another."""

    cost_resource: str
    cost: str
    output_resource: str
    output: str

    def execute(self, state: GameState) -> bool:
        if not state.subtract_resource(self.cost_resource, self.cost):
            return False
        state.add_resource(self.output_resource, self.output)
        return True


@dataclass(frozen=True)
class AutomationDef:
    """Static definition of a periodic background action."""

    id: str
    effect: Conversion
    gating_upgrade: str
    interval_ms: int = 60_000
    name: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", self.id)


@dataclass(frozen=True)
class AutomationResult:
    """One due evaluation of an automation."""

    automation_id: str
    success: bool
    triggered_at: int


class AutomationScheduler:
    """Evaluates gated, interval-driven automations against a GameState."""

    def __init__(self, catalog: UpgradeCatalog, definitions: list[AutomationDef]) -> None:
        self.catalog = catalog
        self.definitions = list(definitions)
        self._by_id: dict[str, AutomationDef] = {d.id: d for d in self.definitions}
        self._busy = False
        self._executing: str | None = None

    def get(self, automation_id: str) -> AutomationDef | None:
        return self._by_id.get(automation_id)

    def validate(self) -> list[str]:
        errors: list[str] = []
        seen: set[str] = set()
        for d in self.definitions:
            if d.id in seen:
                errors.append(f"Duplicate automation ID: {d.id!r}")
            seen.add(d.id)
            if d.interval_ms <= 0:
                errors.append(f"Automation {d.id!r} has non-positive interval {d.interval_ms}")
            if self.catalog.get(d.gating_upgrade) is None:
                errors.append(
                    f"Automation {d.id!r} is gated by unknown upgrade {d.gating_upgrade!r}"
                )
        return errors

    # ── State queries ────────────────────────────────────────────────

    def is_unlocked(self, state: GameState, automation_id: str) -> bool:
        """True once the gating upgrade is owned."""
        definition = self._lookup(automation_id)
        if definition is None:
            return False
        return self._unlocked(state, definition)

    def is_enabled(self, state: GameState, automation_id: str) -> bool:
        astate = state.automations.get(automation_id)
        return astate is not None and astate.enabled

    def status(self, state: GameState, automation_id: str, now: int) -> AutomationStatus:
        definition = self._lookup(automation_id)
        if definition is None:
            return AutomationStatus.UNINITIALIZED
        if self._executing == automation_id:
            return AutomationStatus.EXECUTING
        astate = state.automations.get(automation_id)
        if astate is None:
            return AutomationStatus.UNINITIALIZED
        if astate.enabled and now - astate.last_triggered >= definition.interval_ms:
            return AutomationStatus.DUE
        return AutomationStatus.IDLE

    # ── Player actions ───────────────────────────────────────────────

    def initialize(self, state: GameState, automation_id: str, now: int) -> bool:
        """Create runtime state for an unlocked automation. Returns True if created."""
        definition = self._lookup(automation_id)
        if definition is None or not self._unlocked(state, definition):
            return False
        if automation_id in state.automations:
            return False
        state.enable_automation(automation_id, now)
        logger.info("automation initialized", automation_id=automation_id, now=now)
        return True

    def set_enabled(self, state: GameState, automation_id: str, enabled: bool, now: int) -> bool:
        """Enable or disable an unlocked automation, keeping its last trigger time.
        Returns the resulting enabled flag."""
        definition = self._lookup(automation_id)
        if definition is None or not self._unlocked(state, definition):
            return False
        if enabled:
            state.enable_automation(automation_id, now)
        else:
            state.disable_automation(automation_id)
        logger.info("automation toggled", automation_id=automation_id, enabled=enabled)
        return self.is_enabled(state, automation_id)

    def toggle(self, state: GameState, automation_id: str, now: int) -> bool:
        return self.set_enabled(state, automation_id, not self.is_enabled(state, automation_id), now)

    # ── Evaluation ───────────────────────────────────────────────────

    def process(self, state: GameState, now: int) -> list[AutomationResult]:
        """Run every due automation once.

        The trigger time advances to *now* whether or not the effect
        succeeded, so a starved automation waits a full interval before it
        retries.
        """
        if self._busy:
            logger.warning("reentrant automation processing rejected", now=now)
            return []

        results: list[AutomationResult] = []
        self._busy = True
        try:
            for definition in self.definitions:
                if not self._unlocked(state, definition):
                    continue

                astate = state.automations.get(definition.id)
                if astate is None:
                    state.enable_automation(definition.id, now)
                    astate = state.automations[definition.id]

                if not astate.enabled:
                    continue

                if now - astate.last_triggered < definition.interval_ms:
                    continue

                self._executing = definition.id
                success = definition.effect.execute(state)
                state.update_automation_trigger(definition.id, now)
                self._executing = None

                results.append(AutomationResult(definition.id, success, now))
                logger.debug("automation triggered", automation_id=definition.id, success=success)
        finally:
            self._executing = None
            self._busy = False
        return results

    def calculate_offline_triggers(
        self, state: GameState, offline_ms: int, efficiency: DecimalInput
    ) -> dict[str, int]:
        """Potential trigger counts for an offline span: floor(offline * efficiency / interval).

        Only unlocked, enabled automations with at least one trigger appear.
        """
        effective_ms = economy.multiply(offline_ms, efficiency)
        triggers: dict[str, int] = {}
        for definition in self.definitions:
            if not self._unlocked(state, definition):
                continue
            if not self.is_enabled(state, definition.id):
                continue
            ratio = economy.divide(effective_ms, definition.interval_ms)
            count = int(economy.to_decimal(economy.floor(ratio)))
            if count > 0:
                triggers[definition.id] = count
        return triggers

    def apply_offline_triggers(
        self, state: GameState, triggers: dict[str, int], now: int
    ) -> dict[str, int]:
        """Execute offline triggers, stopping each automation at its first failure.

        Returns the number of successful executions per automation (only
        those with at least one). Every automation in *triggers* has its
        trigger time reset to *now*; leftover partial intervals are dropped.
        """
        if self._busy:
            logger.warning("reentrant automation processing rejected", now=now)
            return {}

        successful: dict[str, int] = {}
        self._busy = True
        try:
            for automation_id, count in triggers.items():
                definition = self._lookup(automation_id)
                if definition is None:
                    continue
                done = 0
                for _ in range(count):
                    if not definition.effect.execute(state):
                        break
                    done += 1
                if done > 0:
                    successful[automation_id] = done
                    logger.info(
                        "offline automation applied",
                        automation_id=automation_id,
                        triggered=done,
                        potential=count,
                    )

            for automation_id in triggers:
                state.update_automation_trigger(automation_id, now)
        finally:
            self._busy = False
        return successful

    def average_rates(self, state: GameState) -> dict[str, str]:
        """Display-only average output per second of active automations, per resource."""
        rates: dict[str, str] = {}
        for definition in self.definitions:
            if not self._unlocked(state, definition):
                continue
            if not self.is_enabled(state, definition.id):
                continue
            effect = definition.effect
            per_second = economy.divide(effect.output, economy.divide(definition.interval_ms, 1000))
            rid = effect.output_resource
            rates[rid] = economy.add(rates.get(rid, economy.ZERO), per_second)
        return rates

    # ── Private helpers ──────────────────────────────────────────────

    def _lookup(self, automation_id: str) -> AutomationDef | None:
        definition = self._by_id.get(automation_id)
        if definition is None:
            logger.warning("unknown automation", automation_id=automation_id)
        return definition

    def _unlocked(self, state: GameState, definition: AutomationDef) -> bool:
        upgrade = self.catalog.get(definition.gating_upgrade)
        if upgrade is None:
            return False
        return self.catalog.level(state, upgrade.id) > 0


DEFAULT_AUTOMATIONS: list[AutomationDef] = [
    AutomationDef(
        id="book-summarizer",
        name="Book Summarizer",
        description="Converts $10 into +1 TP every 60 seconds.",
        interval_ms=60_000,
        gating_upgrade="book-summarizer",
        effect=Conversion(cost_resource="money", cost="10", output_resource="technique", output="1"),
    ),
]
