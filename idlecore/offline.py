from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from idlecore import economy
from idlecore._types import DecimalInput
from idlecore.resource import RESOURCE_IDS

if TYPE_CHECKING:
    from idlecore.config import GameConfig
    from idlecore.state import GameState

logger = structlog.get_logger()


def _zero_earnings() -> dict[str, str]:
    return {rid: economy.ZERO for rid in RESOURCE_IDS}


@dataclass(frozen=True)
class OfflineProgressResult:
    """Earnings bundle for the time between two sessions."""

    was_calculated: bool = False
    should_show_modal: bool = False
    total_seconds_away: float = 0.0
    effective_seconds: float = 0.0
    was_capped: bool = False
    earnings: dict[str, str] = field(default_factory=_zero_earnings)
    formatted_time_away: str = ""
    efficiency: str = economy.ZERO
    automation_triggers: dict[str, int] = field(default_factory=dict)
    automation_applied: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class OfflinePreview:
    capped_seconds: float
    raw: str
    with_efficiency: str


def calculate_offline_progress(
    state: GameState, config: GameConfig, now: int, rate: DecimalInput
) -> OfflineProgressResult:
    """Compute offline earnings without touching state.

    *rate* is the primary resource's per-second generation rate at resume.
    Returns an uncalculated result when offline progress is disabled, there
    is no previous session, or less than a second has passed.
    """
    if not state.settings.offline_progress_enabled:
        return OfflineProgressResult()

    last_played = state.last_played
    if last_played == 0:
        return OfflineProgressResult()

    total_seconds_away = (now - last_played) / 1000
    if total_seconds_away < 1:
        return OfflineProgressResult()

    gameplay = config.gameplay
    max_seconds = gameplay.offline_max_seconds
    was_capped = total_seconds_away > max_seconds
    effective_seconds = min(total_seconds_away, max_seconds)

    efficiency = gameplay.offline_efficiency
    raw = economy.calculate_generation(rate, effective_seconds)
    earnings = _zero_earnings()
    earnings[config.auto_generation.primary_resource] = economy.apply_efficiency(raw, efficiency)

    return OfflineProgressResult(
        was_calculated=True,
        should_show_modal=total_seconds_away >= gameplay.offline_min_seconds_for_modal,
        total_seconds_away=total_seconds_away,
        effective_seconds=effective_seconds,
        was_capped=was_capped,
        earnings=earnings,
        formatted_time_away=economy.format_duration(total_seconds_away),
        efficiency=efficiency,
    )


def apply_offline_progress(state: GameState, result: OfflineProgressResult) -> None:
    """Credit a calculated result. Uncalculated results are ignored.

    Callers must apply each calculated result at most once.
    """
    if not result.was_calculated:
        return

    for rid, amount in result.earnings.items():
        if economy.is_positive(amount):
            state.add_resource(rid, amount)
            state.track_resource_earned(rid, amount)

    state.add_offline_time(int(result.effective_seconds * 1000))
    logger.info(
        "applied offline earnings",
        time_away=result.formatted_time_away,
        effective_seconds=result.effective_seconds,
        was_capped=result.was_capped,
        earnings=result.earnings,
        efficiency=economy.format_percent(result.efficiency),
    )


def process_offline_progress(
    state: GameState, config: GameConfig, now: int, rate: DecimalInput
) -> OfflineProgressResult:
    """Calculate and, unless acknowledgement is needed, apply immediately."""
    result = calculate_offline_progress(state, config, now, rate)
    if result.was_calculated and not result.should_show_modal:
        apply_offline_progress(state, result)
    return result


def should_show_welcome_back(state: GameState, config: GameConfig, now: int) -> bool:
    if not state.settings.offline_progress_enabled:
        return False
    if state.last_played == 0:
        return False
    elapsed_seconds = (now - state.last_played) / 1000
    return elapsed_seconds >= config.gameplay.offline_min_seconds_for_modal


def preview_offline_earnings(config: GameConfig, rate: DecimalInput, seconds: float) -> OfflinePreview:
    capped = min(seconds, config.gameplay.offline_max_seconds)
    raw = economy.calculate_generation(rate, capped)
    return OfflinePreview(
        capped_seconds=capped,
        raw=raw,
        with_efficiency=economy.apply_efficiency(raw, config.gameplay.offline_efficiency),
    )


def format_relative_time(timestamp: int, now: int) -> str:
    """Age of *timestamp* at *now*, e.g. "Just now", "5m ago", "2d ago"."""
    seconds = (now - timestamp) // 1000
    if seconds < 60:
        return "Just now"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    if days < 30:
        return f"{days}d ago"
    months = days // 30
    if months < 12:
        return f"{months}mo ago"
    return f"{months // 12}y ago"


def max_offline_time_string(config: GameConfig) -> str:
    hours = economy.divide(config.gameplay.offline_max_seconds, 3600)
    return f"{economy.format_decimal(hours)} hours"


def efficiency_percent_string(config: GameConfig) -> str:
    return economy.format_percent(config.gameplay.offline_efficiency)
