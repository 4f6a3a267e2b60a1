from __future__ import annotations

from enum import Enum, auto
from typing import Callable

from idlecore import economy


class EffectType(Enum):
    # Global upgrades
    AUTO_GENERATION_MULTIPLIER = auto()
    PER_CODE_TIME_BONUS = auto()
    MINIGAME_TIME_BONUS = auto()
    GRANT_RESOURCE = auto()
    ENABLE_AUTOMATION = auto()
    # Code Runner
    GAP_WIDTH_BONUS = auto()
    WALL_SPACING_BONUS = auto()
    MOVE_SPEED_BONUS = auto()
    CENTER_BIAS = auto()
    # Code Breaker
    TIME_BONUS = auto()
    CODE_LENGTH_REDUCTION = auto()
    # Botnet Defense
    DAMAGE_MULTIPLIER_BONUS = auto()
    HEALTH_BONUS = auto()


def _step(label: str) -> Callable[[str, int], str]:
    # Unowned upgrades preview their first level
    return lambda _value, level: f"+{max(level, 1)} {label}"


# Renderers for per-level effects, called with (current effect value, level).
LEVEL_EFFECT_FORMATS: dict[EffectType, Callable[[str, int], str]] = {
    EffectType.AUTO_GENERATION_MULTIPLIER: lambda v, _l: f"{economy.format_percent(v)} generation",
    EffectType.PER_CODE_TIME_BONUS: lambda v, _l: f"+{economy.format_fixed(v, 1)}s per code",
    EffectType.GAP_WIDTH_BONUS: _step("gap width"),
    EffectType.WALL_SPACING_BONUS: _step("wall spacing"),
    EffectType.MOVE_SPEED_BONUS: _step("move speed"),
    EffectType.CENTER_BIAS: lambda v, _l: f"{economy.format_percent(v)} center bias",
    EffectType.TIME_BONUS: lambda v, _l: (
        f"+{economy.format_fixed(economy.divide(v, 1000), 1)}s per code"
    ),
    EffectType.CODE_LENGTH_REDUCTION: lambda v, _l: f"-{economy.format_decimal(v)} starting length",
    EffectType.DAMAGE_MULTIPLIER_BONUS: lambda v, _l: f"+{economy.format_percent(v)} damage",
    EffectType.HEALTH_BONUS: lambda v, _l: f"+{economy.format_decimal(v)} HP",
}


def format_level_effect(effect_type: EffectType, value: str, level: int) -> str:
    fmt = LEVEL_EFFECT_FORMATS.get(effect_type)
    if fmt is None:
        return economy.format_decimal(value)
    return fmt(value, level)
