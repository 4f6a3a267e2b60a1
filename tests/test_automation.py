"""Tests for the automation scheduler."""
import logging

from idlecore.automation import (
    DEFAULT_AUTOMATIONS,
    AutomationDef,
    AutomationScheduler,
    AutomationStatus,
    Conversion,
)
from idlecore.catalog import DEFAULT_UPGRADES, UpgradeCatalog
from idlecore.state import GameState

T0 = 1_700_000_000_000


def _make_state(now: int = T0, **resources: str) -> GameState:
    state = GameState(now_ms=now)
    for rid, value in resources.items():
        state.set_resource(rid, value)
    return state


AID = "book-summarizer"


def _make_scheduler(definitions: list[AutomationDef] | None = None) -> AutomationScheduler:
    catalog = UpgradeCatalog(DEFAULT_UPGRADES)
    return AutomationScheduler(catalog, DEFAULT_AUTOMATIONS if definitions is None else definitions)


def _owned_state(**resources: str):
    state = _make_state(**resources)
    state.set_flag(AID)
    return state


def test_default_automations_are_valid():
    assert _make_scheduler().validate() == []


def test_validate_catches_bad_definitions():
    effect = Conversion("money", "1", "technique", "1")
    scheduler = _make_scheduler(
        [
            AutomationDef(id="x", effect=effect, gating_upgrade="nope"),
            AutomationDef(id="x", effect=effect, gating_upgrade=AID, interval_ms=0),
        ]
    )
    errors = scheduler.validate()
    assert len(errors) == 3


def test_locked_automation_never_runs():
    scheduler = _make_scheduler()
    state = _make_state(money="100")
    assert scheduler.process(state, T0 + 120_000) == []
    assert state.automations == {}
    assert not scheduler.is_unlocked(state, AID)


def test_first_process_initialises_without_triggering():
    scheduler = _make_scheduler()
    state = _owned_state(money="100")
    assert scheduler.process(state, T0) == []
    assert state.automations[AID].enabled
    assert state.automations[AID].last_triggered == T0


def test_triggers_exactly_at_interval():
    scheduler = _make_scheduler()
    state = _owned_state(money="10")
    scheduler.process(state, T0)

    assert scheduler.process(state, T0 + 59_999) == []
    assert state.resource("money") == "10"

    results = scheduler.process(state, T0 + 60_000)
    assert len(results) == 1
    assert results[0].success
    assert results[0].triggered_at == T0 + 60_000
    assert state.resource("money") == "0"
    assert state.resource("technique") == "1"
    assert state.automations[AID].last_triggered == T0 + 60_000


def test_failed_trigger_still_advances_timestamp():
    scheduler = _make_scheduler()
    state = _owned_state(money="5")
    scheduler.process(state, T0)
    results = scheduler.process(state, T0 + 60_000)
    assert [r.success for r in results] == [False]
    assert state.resource("money") == "5"
    assert state.resource("technique") == "0"
    assert state.automations[AID].last_triggered == T0 + 60_000
    assert scheduler.process(state, T0 + 60_001) == []


def test_disabled_automation_does_not_run():
    scheduler = _make_scheduler()
    state = _owned_state(money="100")
    scheduler.initialize(state, AID, T0)
    assert scheduler.set_enabled(state, AID, False, T0) is False
    assert scheduler.process(state, T0 + 600_000) == []
    assert state.resource("money") == "100"


def test_toggle_keeps_last_trigger():
    scheduler = _make_scheduler()
    state = _owned_state()
    assert scheduler.initialize(state, AID, T0)
    assert not scheduler.initialize(state, AID, T0 + 1)
    assert scheduler.toggle(state, AID, T0 + 10) is False
    assert scheduler.toggle(state, AID, T0 + 20) is True
    assert state.automations[AID].last_triggered == T0


def test_toggle_locked_is_noop():
    scheduler = _make_scheduler()
    state = _make_state()
    assert scheduler.toggle(state, AID, T0) is False
    assert state.automations == {}


def test_status_lifecycle():
    scheduler = _make_scheduler()
    state = _owned_state()
    assert scheduler.status(state, AID, T0) is AutomationStatus.UNINITIALIZED
    scheduler.initialize(state, AID, T0)
    assert scheduler.status(state, AID, T0 + 1) is AutomationStatus.IDLE
    assert scheduler.status(state, AID, T0 + 60_000) is AutomationStatus.DUE


class _ReentrantEffect:
    """Effect that tries to re-enter the scheduler while executing."""

    def __init__(self) -> None:
        self.scheduler: AutomationScheduler | None = None
        self.inner_results: list = []
        self.status_during: AutomationStatus | None = None

    def execute(self, state) -> bool:
        self.status_during = self.scheduler.status(state, "loop", T0 + 60_000)
        self.inner_results.append(self.scheduler.process(state, T0 + 60_000))
        return True


def test_reentrant_processing_is_rejected(caplog):
    effect = _ReentrantEffect()
    scheduler = _make_scheduler([AutomationDef(id="loop", effect=effect, gating_upgrade=AID)])
    effect.scheduler = scheduler
    state = _owned_state()
    scheduler.process(state, T0)

    with caplog.at_level(logging.WARNING):
        results = scheduler.process(state, T0 + 60_000)

    assert len(results) == 1
    assert effect.inner_results == [[]]
    assert effect.status_during is AutomationStatus.EXECUTING
    assert any("reentrant" in r.getMessage() for r in caplog.records)
    # The guard is released afterwards
    assert len(scheduler.process(state, T0 + 120_000)) == 1


def test_offline_trigger_counts():
    scheduler = _make_scheduler()
    state = _owned_state()
    assert scheduler.calculate_offline_triggers(state, 3_600_000, "0.5") == {}

    state.enable_automation(AID, T0)
    assert scheduler.calculate_offline_triggers(state, 3_600_000, "0.5") == {AID: 30}
    assert scheduler.calculate_offline_triggers(state, 100_000, "0.5") == {}
    assert scheduler.calculate_offline_triggers(state, 179_999, "1") == {AID: 2}


def test_offline_triggers_ignore_locked():
    scheduler = _make_scheduler()
    state = _make_state()
    state.enable_automation(AID, T0)
    assert scheduler.calculate_offline_triggers(state, 3_600_000, "1") == {}


def test_apply_offline_triggers_stops_at_first_failure():
    scheduler = _make_scheduler()
    state = _owned_state(money="55")
    state.enable_automation(AID, T0)
    now = T0 + 3_600_000
    applied = scheduler.apply_offline_triggers(state, {AID: 30}, now)
    assert applied == {AID: 5}
    assert state.resource("money") == "5"
    assert state.resource("technique") == "5"
    assert state.automations[AID].last_triggered == now


def test_apply_offline_triggers_with_no_successes():
    scheduler = _make_scheduler()
    state = _owned_state(money="0")
    state.enable_automation(AID, T0)
    now = T0 + 3_600_000
    assert scheduler.apply_offline_triggers(state, {AID: 30}, now) == {}
    assert state.automations[AID].last_triggered == now


def test_average_rates():
    scheduler = _make_scheduler()
    state = _owned_state()
    assert scheduler.average_rates(state) == {}
    state.enable_automation(AID, T0)
    rates = scheduler.average_rates(state)
    assert list(rates) == ["technique"]
    assert rates["technique"].startswith("0.0166666")


def test_conversion_is_atomic():
    state = _make_state(money="9")
    conversion = Conversion("money", "10", "technique", "1")
    assert not conversion.execute(state)
    assert state.resource("money") == "9"
    assert state.resource("technique") == "0"
