"""Tests for offline catch-up."""
import pytest

from idlecore.config import GameConfig
from idlecore.offline import (
    OfflineProgressResult,
    apply_offline_progress,
    calculate_offline_progress,
    efficiency_percent_string,
    format_relative_time,
    max_offline_time_string,
    preview_offline_earnings,
    process_offline_progress,
    should_show_welcome_back,
)
from idlecore.state import GameState

T0 = 1_700_000_000_000


def _make_state(now: int = T0, **resources: str) -> GameState:
    state = GameState(now_ms=now)
    for rid, value in resources.items():
        state.set_resource(rid, value)
    return state


RATE = "10"


def test_short_absence():
    state = _make_state()
    result = calculate_offline_progress(state, GameConfig(), T0 + 30_000, RATE)
    assert result.was_calculated
    assert not result.should_show_modal
    assert not result.was_capped
    assert result.total_seconds_away == 30
    assert result.effective_seconds == 30
    assert result.earnings == {"money": "150", "technique": "0", "renown": "0"}
    assert result.formatted_time_away == "30s"
    assert result.efficiency == "0.5"
    # Pure calculation
    assert state.resource("money") == "0"


def test_long_absence_is_capped():
    state = _make_state()
    result = calculate_offline_progress(state, GameConfig(), T0 + 36_000_000, RATE)
    assert result.was_capped
    assert result.should_show_modal
    assert result.total_seconds_away == 36_000
    assert result.effective_seconds == 28_800
    assert result.earnings["money"] == "144000"
    assert result.formatted_time_away == "10h"


def test_no_previous_session():
    state = GameState(now_ms=0)
    result = calculate_offline_progress(state, GameConfig(), T0, RATE)
    assert result == OfflineProgressResult()
    assert not result.was_calculated


def test_disabled_setting():
    state = _make_state()
    state.toggle_offline_progress()
    result = calculate_offline_progress(state, GameConfig(), T0 + 60_000, RATE)
    assert not result.was_calculated


def test_under_one_second_is_ignored():
    state = _make_state()
    assert not calculate_offline_progress(state, GameConfig(), T0 + 999, RATE).was_calculated


def test_zero_rate_still_reports_time_away():
    state = _make_state()
    result = calculate_offline_progress(state, GameConfig(), T0 + 120_000, "0")
    assert result.was_calculated
    assert result.earnings["money"] == "0"
    assert result.formatted_time_away == "2m"


def test_efficiency_is_configurable():
    config = GameConfig().with_overrides(gameplay={"offline_efficiency": "1"})
    result = calculate_offline_progress(_make_state(), config, T0 + 30_000, RATE)
    assert result.earnings["money"] == "300"


def test_apply_credits_and_tracks():
    state = _make_state(money="5")
    result = calculate_offline_progress(state, GameConfig(), T0 + 30_000, RATE)
    apply_offline_progress(state, result)
    assert state.resource("money") == "155"
    assert state.stats.total_resources_earned["money"] == "150"
    assert state.stats.total_offline_time_ms == 30_000


def test_apply_uncalculated_is_noop():
    state = _make_state(money="5")
    apply_offline_progress(state, OfflineProgressResult())
    assert state.resource("money") == "5"
    assert state.stats.total_offline_time_ms == 0


def test_process_applies_only_without_modal():
    state = _make_state()
    process_offline_progress(state, GameConfig(), T0 + 30_000, RATE)
    assert state.resource("money") == "150"

    state = _make_state()
    result = process_offline_progress(state, GameConfig(), T0 + 7_200_000, RATE)
    assert result.should_show_modal
    assert state.resource("money") == "0"


def test_should_show_welcome_back():
    config = GameConfig()
    state = _make_state()
    assert not should_show_welcome_back(state, config, T0 + 59_000)
    assert should_show_welcome_back(state, config, T0 + 60_000)
    assert not should_show_welcome_back(GameState(now_ms=0), config, T0)


def test_preview_offline_earnings():
    preview = preview_offline_earnings(GameConfig(), RATE, 40_000)
    assert preview.capped_seconds == 28_800
    assert preview.raw == "288000"
    assert preview.with_efficiency == "144000"


@pytest.mark.parametrize(
    "age_ms, expected",
    [
        (0, "Just now"),
        (59_000, "Just now"),
        (5 * 60_000, "5m ago"),
        (3 * 3_600_000, "3h ago"),
        (2 * 86_400_000, "2d ago"),
        (60 * 86_400_000, "2mo ago"),
        (400 * 86_400_000, "1y ago"),
    ],
)
def test_format_relative_time(age_ms, expected):
    assert format_relative_time(T0 - age_ms, T0) == expected


def test_config_strings():
    config = GameConfig()
    assert max_offline_time_string(config) == "8 hours"
    assert efficiency_percent_string(config) == "50%"
