from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar

from idlecore.effect import EffectType
from idlecore.errors import ErrorKind


class UpgradeCategory(Enum):
    EQUIPMENT = "equipment"
    APARTMENT = "apartment"
    CONSUMABLE = "consumable"
    HARDWARE = "hardware"
    MINIGAME = "minigame"


@dataclass(frozen=True)
class UpgradeDef:
    """Fields shared by every upgrade variant."""

    id: str
    name: str = ""
    description: str = ""
    cost_resource: str = "money"
    base_cost: str = "0"
    max_level: int = 0  # 0 means unlimited
    effect_type: EffectType = EffectType.AUTO_GENERATION_MULTIPLIER

    category: ClassVar[UpgradeCategory]

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", self.id)


@dataclass(frozen=True)
class LeveledUpgrade(UpgradeDef):
    """Level-scaled upgrade with exponential cost growth."""

    growth_rate: str | None = None  # None falls back to the configured default
    base_effect: str = "0"
    effect_per_level: str = "0"

    category: ClassVar[UpgradeCategory] = UpgradeCategory.EQUIPMENT


@dataclass(frozen=True)
class OneTimeUpgrade(UpgradeDef):
    """Boolean upgrade bought once at a constant cost."""

    max_level: int = 1
    effect_value: str = "0"
    effect_type: EffectType = EffectType.MINIGAME_TIME_BONUS

    category: ClassVar[UpgradeCategory] = UpgradeCategory.APARTMENT


@dataclass(frozen=True)
class ConsumableUpgrade(UpgradeDef):
    """Repeatable purchase that immediately grants a resource."""

    growth_rate: str = "1"
    grant_resource: str = "technique"
    grant_amount: str = "1"
    effect_type: EffectType = EffectType.GRANT_RESOURCE

    category: ClassVar[UpgradeCategory] = UpgradeCategory.CONSUMABLE


@dataclass(frozen=True)
class HardwareUpgrade(UpgradeDef):
    """One-time upgrade paid in two resources at once; unlocks an automation."""

    max_level: int = 1
    secondary_cost_resource: str = "technique"
    secondary_cost: str = "0"
    automation_id: str | None = None
    effect_type: EffectType = EffectType.ENABLE_AUTOMATION

    category: ClassVar[UpgradeCategory] = UpgradeCategory.HARDWARE


@dataclass(frozen=True)
class MinigameUpgrade(UpgradeDef):
    """Per-minigame upgrade whose cost grows by a fixed increment per level."""

    minigame_id: str = ""
    cost_increment: str = "0"
    base_effect: str = "0"
    effect_per_level: str = "0"

    category: ClassVar[UpgradeCategory] = UpgradeCategory.MINIGAME


Upgrade = LeveledUpgrade | OneTimeUpgrade | ConsumableUpgrade | HardwareUpgrade | MinigameUpgrade


@dataclass(frozen=True)
class PurchaseResult:
    """Outcome of a purchase attempt."""

    success: bool
    upgrade_id: str
    level: int = 0
    error: ErrorKind | None = None
    reason: str = ""
    costs: dict[str, str] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.success


@dataclass(frozen=True)
class UpgradeDisplayInfo:
    """Read-only snapshot for rendering a purchase row."""

    id: str
    name: str
    description: str
    category: UpgradeCategory
    level: int
    max_level: int
    cost: str
    cost_formatted: str
    cost_resource: str
    effect: str
    can_afford: bool
    is_maxed: bool
    secondary_cost: str | None = None
    secondary_cost_formatted: str | None = None
    secondary_cost_resource: str | None = None
