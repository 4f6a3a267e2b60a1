# idlecore: progression core for an incremental game

from idlecore._types import DecimalInput, compare
from idlecore.errors import ErrorKind, InvalidDecimalError
from idlecore.resource import ResourceType, ResourceDef, RESOURCE_DEFS, RESOURCE_IDS
from idlecore import economy
from idlecore.config import GameConfig, GameplayConfig, AutoGenerationConfig, UpgradeConfig
from idlecore.state import GameState
from idlecore.cost_scaling import CostScaling
from idlecore.effect import EffectType, format_level_effect
from idlecore.upgrade import (
    UpgradeCategory,
    UpgradeDef,
    LeveledUpgrade,
    OneTimeUpgrade,
    ConsumableUpgrade,
    HardwareUpgrade,
    MinigameUpgrade,
    Upgrade,
    PurchaseResult,
    UpgradeDisplayInfo,
)
from idlecore.catalog import UpgradeCatalog, DEFAULT_UPGRADES, DEFAULT_CATALOG
from idlecore.automation import (
    AutomationStatus,
    AutomationDef,
    AutomationResult,
    AutomationScheduler,
    Conversion,
    DEFAULT_AUTOMATIONS,
)
from idlecore.generation import GenerationCalculator, GenerationBreakdown
from idlecore.offline import (
    OfflineProgressResult,
    OfflinePreview,
    calculate_offline_progress,
    apply_offline_progress,
    process_offline_progress,
    should_show_welcome_back,
    preview_offline_earnings,
    format_relative_time,
)
from idlecore.clock import (
    Clock,
    SystemClock,
    ManualClock,
    FrameScheduler,
    ManualFrameScheduler,
    AsyncioFrameScheduler,
)
from idlecore.tick import TickEngine
from idlecore.runtime import GameRuntime
from idlecore.logging import setup_logging

__all__ = [
    # Types
    "DecimalInput",
    "compare",
    # Errors
    "ErrorKind",
    "InvalidDecimalError",
    # Resources
    "ResourceType",
    "ResourceDef",
    "RESOURCE_DEFS",
    "RESOURCE_IDS",
    # Economy
    "economy",
    # Configuration
    "GameConfig",
    "GameplayConfig",
    "AutoGenerationConfig",
    "UpgradeConfig",
    # State
    "GameState",
    # Upgrades
    "CostScaling",
    "EffectType",
    "format_level_effect",
    "UpgradeCategory",
    "UpgradeDef",
    "LeveledUpgrade",
    "OneTimeUpgrade",
    "ConsumableUpgrade",
    "HardwareUpgrade",
    "MinigameUpgrade",
    "Upgrade",
    "PurchaseResult",
    "UpgradeDisplayInfo",
    "UpgradeCatalog",
    "DEFAULT_UPGRADES",
    "DEFAULT_CATALOG",
    # Automation
    "AutomationStatus",
    "AutomationDef",
    "AutomationResult",
    "AutomationScheduler",
    "Conversion",
    "DEFAULT_AUTOMATIONS",
    # Generation
    "GenerationCalculator",
    "GenerationBreakdown",
    # Offline
    "OfflineProgressResult",
    "OfflinePreview",
    "calculate_offline_progress",
    "apply_offline_progress",
    "process_offline_progress",
    "should_show_welcome_back",
    "preview_offline_earnings",
    "format_relative_time",
    # Time
    "Clock",
    "SystemClock",
    "ManualClock",
    "FrameScheduler",
    "ManualFrameScheduler",
    "AsyncioFrameScheduler",
    # Loop
    "TickEngine",
    "GameRuntime",
    "setup_logging",
]
