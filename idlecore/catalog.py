from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from idlecore import economy
from idlecore.config import UpgradeConfig
from idlecore.cost_scaling import CostScaling
from idlecore.effect import EffectType, format_level_effect
from idlecore.errors import ErrorKind
from idlecore.resource import RESOURCE_IDS
from idlecore.upgrade import (
    ConsumableUpgrade,
    HardwareUpgrade,
    LeveledUpgrade,
    MinigameUpgrade,
    OneTimeUpgrade,
    PurchaseResult,
    Upgrade,
    UpgradeCategory,
    UpgradeDisplayInfo,
)

if TYPE_CHECKING:
    from idlecore.state import GameState

logger = structlog.get_logger()

MAX_COST_LABEL = "MAX"

# Decimal-string fields across the upgrade variants
_DECIMAL_FIELDS = (
    "base_cost",
    "growth_rate",
    "cost_increment",
    "secondary_cost",
    "base_effect",
    "effect_per_level",
    "effect_value",
    "grant_amount",
)


class UpgradeCatalog:
    """Static upgrade registry plus cost, effect and purchase rules over a GameState."""

    def __init__(self, upgrades: list[Upgrade], config: UpgradeConfig | None = None) -> None:
        self.upgrades = list(upgrades)
        self.config = config or UpgradeConfig()
        self._by_id: dict[str, Upgrade] = {u.id: u for u in self.upgrades}
        self._by_category: dict[UpgradeCategory, list[Upgrade]] = {c: [] for c in UpgradeCategory}
        for u in self.upgrades:
            self._by_category[u.category].append(u)
        self._scaling: dict[str, CostScaling] = {u.id: self._make_scaling(u) for u in self.upgrades}

    # ── Registry ─────────────────────────────────────────────────────

    def get(self, upgrade_id: str) -> Upgrade | None:
        return self._by_id.get(upgrade_id)

    def by_category(self, category: UpgradeCategory) -> list[Upgrade]:
        return list(self._by_category.get(category, []))

    def minigame_upgrades(self, minigame_id: str) -> list[MinigameUpgrade]:
        return [
            u
            for u in self._by_category[UpgradeCategory.MINIGAME]
            if isinstance(u, MinigameUpgrade) and u.minigame_id == minigame_id
        ]

    def validate(self) -> list[str]:
        """Check for definition errors. Returns list of error messages."""
        errors: list[str] = []

        seen: set[str] = set()
        for u in self.upgrades:
            if u.id in seen:
                errors.append(f"Duplicate upgrade ID: {u.id!r}")
            seen.add(u.id)

        for u in self.upgrades:
            if u.cost_resource not in RESOURCE_IDS:
                errors.append(f"Upgrade {u.id!r} costs unknown resource {u.cost_resource!r}")
            for name in _DECIMAL_FIELDS:
                value = getattr(u, name, None)
                if value is not None and not economy.is_valid_decimal_string(value):
                    errors.append(f"Upgrade {u.id!r} has invalid {name} {value!r}")
            if u.max_level < 0:
                errors.append(f"Upgrade {u.id!r} has negative max_level {u.max_level}")

            match u:
                case OneTimeUpgrade() | HardwareUpgrade() if u.max_level != 1:
                    errors.append(f"One-time upgrade {u.id!r} must have max_level 1")
                case ConsumableUpgrade() if u.grant_resource not in RESOURCE_IDS:
                    errors.append(f"Upgrade {u.id!r} grants unknown resource {u.grant_resource!r}")
                case MinigameUpgrade() if not u.minigame_id:
                    errors.append(f"Minigame upgrade {u.id!r} has no minigame_id")

            if isinstance(u, HardwareUpgrade):
                if u.secondary_cost_resource not in RESOURCE_IDS:
                    errors.append(
                        f"Upgrade {u.id!r} costs unknown resource {u.secondary_cost_resource!r}"
                    )
                elif u.secondary_cost_resource == u.cost_resource:
                    errors.append(f"Upgrade {u.id!r} uses the same resource for both costs")

        return errors

    # ── Queries ──────────────────────────────────────────────────────

    def level(self, state: GameState, upgrade_id: str) -> int:
        upgrade = self._lookup(upgrade_id)
        if upgrade is None:
            return 0
        return self._level(state, upgrade)

    def is_maxed(self, state: GameState, upgrade_id: str) -> bool:
        upgrade = self._lookup(upgrade_id)
        if upgrade is None:
            return False
        return self._is_maxed(upgrade, self._level(state, upgrade))

    def next_cost(self, state: GameState, upgrade_id: str) -> str:
        """Primary cost of the next level, computed at the current level."""
        upgrade = self._lookup(upgrade_id)
        if upgrade is None:
            return economy.ZERO
        return self._costs(upgrade, self._level(state, upgrade))[upgrade.cost_resource]

    def next_costs(self, state: GameState, upgrade_id: str) -> dict[str, str]:
        """Every resource the next level costs, primary first."""
        upgrade = self._lookup(upgrade_id)
        if upgrade is None:
            return {}
        return self._costs(upgrade, self._level(state, upgrade))

    def can_afford(self, state: GameState, upgrade_id: str) -> bool:
        upgrade = self._lookup(upgrade_id)
        if upgrade is None:
            return False
        level = self._level(state, upgrade)
        if self._is_maxed(upgrade, level):
            return False
        return all(
            economy.can_afford(state.resource(rid), amount)
            for rid, amount in self._costs(upgrade, level).items()
        )

    def effect(self, state: GameState, upgrade_id: str) -> str:
        upgrade = self._lookup(upgrade_id)
        if upgrade is None:
            return economy.ZERO
        return self._effect(upgrade, self._level(state, upgrade))

    def effect_formatted(self, state: GameState, upgrade_id: str) -> str:
        upgrade = self._lookup(upgrade_id)
        if upgrade is None:
            return ""
        level = self._level(state, upgrade)

        match upgrade:
            case LeveledUpgrade() | MinigameUpgrade():
                return format_level_effect(upgrade.effect_type, self._effect(upgrade, level), level)
            case OneTimeUpgrade():
                unit = "s time" if upgrade.effect_type is EffectType.MINIGAME_TIME_BONUS else ""
                text = f"+{economy.format_decimal(upgrade.effect_value)}{unit}"
                return text if level > 0 else f"{text} (locked)"
            case ConsumableUpgrade():
                return "+" + economy.format_resource(upgrade.grant_resource, upgrade.grant_amount)
            case HardwareUpgrade():
                return "Automation active" if level > 0 else "Enables automation"
            case _:
                raise TypeError(f"Unsupported upgrade type: {type(upgrade).__name__}")

    # ── Purchases ────────────────────────────────────────────────────

    def purchase(self, state: GameState, upgrade_id: str, now: int | None = None) -> PurchaseResult:
        """Buy one level of an upgrade.

        All cost resources are debited together: if a later debit fails, the
        earlier ones are rolled back and state is left as it was. *now* is
        used to initialise the automation a hardware upgrade unlocks.
        """
        upgrade = self._lookup(upgrade_id)
        if upgrade is None:
            return PurchaseResult(
                success=False,
                upgrade_id=upgrade_id,
                error=ErrorKind.NOT_FOUND,
                reason="Unknown upgrade",
            )

        level = self._level(state, upgrade)
        if self._is_maxed(upgrade, level):
            logger.warning("upgrade already maxed", upgrade_id=upgrade_id, level=level)
            return PurchaseResult(
                success=False,
                upgrade_id=upgrade_id,
                level=level,
                error=ErrorKind.ALREADY_MAXED,
                reason="Already at max level",
            )

        costs = self._costs(upgrade, level)
        balances = {rid: state.resource(rid) for rid in costs}
        for rid, amount in costs.items():
            if not state.subtract_resource(rid, amount):
                for paid_rid, balance in balances.items():
                    state.set_resource(paid_rid, balance)
                logger.warning(
                    "insufficient funds for upgrade",
                    upgrade_id=upgrade_id,
                    resource=rid,
                    cost=amount,
                    balance=balances[rid],
                )
                return PurchaseResult(
                    success=False,
                    upgrade_id=upgrade_id,
                    level=level,
                    error=ErrorKind.INSUFFICIENT_FUNDS,
                    reason=f"Insufficient {rid}",
                    costs=costs,
                )

        new_level = self._apply_purchase(state, upgrade, now)
        logger.info("purchased upgrade", upgrade_id=upgrade_id, level=new_level, costs=costs)
        return PurchaseResult(success=True, upgrade_id=upgrade_id, level=new_level, costs=costs)

    def try_purchase(self, state: GameState, upgrade_id: str, now: int | None = None) -> bool:
        """Attempt to purchase an upgrade. Returns True on success."""
        return self.purchase(state, upgrade_id, now).success

    # ── Display ──────────────────────────────────────────────────────

    def display_info(self, state: GameState, upgrade_id: str) -> UpgradeDisplayInfo | None:
        upgrade = self._lookup(upgrade_id)
        if upgrade is None:
            return None

        level = self._level(state, upgrade)
        maxed = self._is_maxed(upgrade, level)
        costs = self._costs(upgrade, level)
        cost = costs[upgrade.cost_resource]

        secondary: dict[str, str | None] = {
            "secondary_cost": None,
            "secondary_cost_formatted": None,
            "secondary_cost_resource": None,
        }
        if isinstance(upgrade, HardwareUpgrade):
            second = costs[upgrade.secondary_cost_resource]
            secondary = {
                "secondary_cost": second,
                "secondary_cost_formatted": MAX_COST_LABEL if maxed else economy.format_decimal(second),
                "secondary_cost_resource": upgrade.secondary_cost_resource,
            }

        return UpgradeDisplayInfo(
            id=upgrade.id,
            name=upgrade.name,
            description=upgrade.description,
            category=upgrade.category,
            level=level,
            max_level=upgrade.max_level,
            cost=cost,
            cost_formatted=MAX_COST_LABEL if maxed else economy.format_decimal(cost),
            cost_resource=upgrade.cost_resource,
            effect=self.effect_formatted(state, upgrade.id),
            can_afford=self.can_afford(state, upgrade.id),
            is_maxed=maxed,
            **secondary,
        )

    def category_display_info(
        self, state: GameState, category: UpgradeCategory
    ) -> list[UpgradeDisplayInfo]:
        infos = (self.display_info(state, u.id) for u in self.by_category(category))
        return [info for info in infos if info is not None]

    # ── Aggregate effects ────────────────────────────────────────────

    def total_effect(self, state: GameState, effect_type: EffectType) -> str:
        """Sum of the effects of every upgrade of *effect_type*."""
        return economy.sum_decimals(
            self._effect(u, self._level(state, u))
            for u in self.upgrades
            if u.effect_type is effect_type
        )

    def auto_generation_multiplier(self, state: GameState) -> str:
        mult = economy.ONE
        for u in self._by_category[UpgradeCategory.EQUIPMENT]:
            if u.effect_type is EffectType.AUTO_GENERATION_MULTIPLIER:
                mult = economy.multiply(mult, self._effect(u, self._level(state, u)))
        return mult

    def per_code_time_bonus(self, state: GameState) -> str:
        return self.total_effect(state, EffectType.PER_CODE_TIME_BONUS)

    def minigame_time_bonus(self, state: GameState) -> str:
        """Seconds added to minigame time limits by owned one-time upgrades."""
        return economy.sum_decimals(
            u.effect_value
            for u in self._by_category[UpgradeCategory.APARTMENT]
            if isinstance(u, OneTimeUpgrade)
            and u.effect_type is EffectType.MINIGAME_TIME_BONUS
            and state.has_flag(u.id)
        )

    def gap_width_bonus(self, state: GameState) -> str:
        return self.total_effect(state, EffectType.GAP_WIDTH_BONUS)

    def wall_spacing_bonus(self, state: GameState) -> str:
        return self.total_effect(state, EffectType.WALL_SPACING_BONUS)

    def move_speed_bonus(self, state: GameState) -> str:
        return self.total_effect(state, EffectType.MOVE_SPEED_BONUS)

    def center_bias_strength(self, state: GameState) -> str:
        return self.total_effect(state, EffectType.CENTER_BIAS)

    def time_bonus_ms(self, state: GameState) -> str:
        return self.total_effect(state, EffectType.TIME_BONUS)

    def code_length_reduction(self, state: GameState) -> str:
        return self.total_effect(state, EffectType.CODE_LENGTH_REDUCTION)

    def damage_multiplier_bonus(self, state: GameState) -> str:
        return self.total_effect(state, EffectType.DAMAGE_MULTIPLIER_BONUS)

    def health_bonus(self, state: GameState) -> str:
        return self.total_effect(state, EffectType.HEALTH_BONUS)

    # ── Private helpers ──────────────────────────────────────────────

    def _lookup(self, upgrade_id: str) -> Upgrade | None:
        upgrade = self._by_id.get(upgrade_id)
        if upgrade is None:
            logger.warning("unknown upgrade", upgrade_id=upgrade_id)
        return upgrade

    def _make_scaling(self, upgrade: Upgrade) -> CostScaling:
        match upgrade:
            case LeveledUpgrade():
                return CostScaling.exponential(upgrade.growth_rate or self.config.default_growth_rate)
            case ConsumableUpgrade():
                return CostScaling.exponential(upgrade.growth_rate)
            case MinigameUpgrade():
                return CostScaling.linear(upgrade.cost_increment)
            case OneTimeUpgrade() | HardwareUpgrade():
                return CostScaling.fixed()
            case _:
                raise TypeError(f"Unsupported upgrade type: {type(upgrade).__name__}")

    def _level(self, state: GameState, upgrade: Upgrade) -> int:
        match upgrade:
            case OneTimeUpgrade() | HardwareUpgrade():
                return 1 if state.has_flag(upgrade.id) else 0
            case MinigameUpgrade():
                return state.subject_level(upgrade.minigame_id, upgrade.id)
            case LeveledUpgrade() | ConsumableUpgrade():
                return state.upgrade_level(upgrade.id)
            case _:
                raise TypeError(f"Unsupported upgrade type: {type(upgrade).__name__}")

    @staticmethod
    def _is_maxed(upgrade: Upgrade, level: int) -> bool:
        return upgrade.max_level != 0 and level >= upgrade.max_level

    def _costs(self, upgrade: Upgrade, level: int) -> dict[str, str]:
        costs = {upgrade.cost_resource: self._scaling[upgrade.id].compute(upgrade.base_cost, level)}
        if isinstance(upgrade, HardwareUpgrade):
            costs[upgrade.secondary_cost_resource] = economy.to_storage(
                economy.to_decimal(upgrade.secondary_cost)
            )
        return costs

    @staticmethod
    def _effect(upgrade: Upgrade, level: int) -> str:
        match upgrade:
            case LeveledUpgrade() | MinigameUpgrade():
                return economy.add(
                    upgrade.base_effect, economy.multiply(upgrade.effect_per_level, level)
                )
            case ConsumableUpgrade():
                return upgrade.grant_amount
            case OneTimeUpgrade() | HardwareUpgrade():
                return economy.ONE if level > 0 else economy.ZERO
            case _:
                raise TypeError(f"Unsupported upgrade type: {type(upgrade).__name__}")

    def _apply_purchase(self, state: GameState, upgrade: Upgrade, now: int | None) -> int:
        match upgrade:
            case LeveledUpgrade():
                return state.increment_level(upgrade.id)
            case ConsumableUpgrade():
                state.add_resource(upgrade.grant_resource, upgrade.grant_amount)
                return state.increment_level(upgrade.id)
            case OneTimeUpgrade():
                state.set_flag(upgrade.id)
                return 1
            case HardwareUpgrade():
                state.set_flag(upgrade.id)
                if upgrade.automation_id and now is not None:
                    state.enable_automation(upgrade.automation_id, now)
                return 1
            case MinigameUpgrade():
                return state.increment_subject_level(upgrade.minigame_id, upgrade.id)
            case _:
                raise TypeError(f"Unsupported upgrade type: {type(upgrade).__name__}")


# ── Default content ──────────────────────────────────────────────────

DEFAULT_UPGRADES: list[Upgrade] = [
    LeveledUpgrade(
        id="auto-typer",
        name="Auto-Typer",
        description="Automated typing software. Increases passive money generation by 5% per level.",
        cost_resource="money",
        base_cost="100",
        growth_rate="1.15",
        effect_type=EffectType.AUTO_GENERATION_MULTIPLIER,
        base_effect="1",
        effect_per_level="0.05",
    ),
    LeveledUpgrade(
        id="better-keyboard",
        name="Better Keyboard",
        description="Mechanical keyboard with faster response. Adds +0.3s per code attempt per level.",
        cost_resource="money",
        base_cost="250",
        growth_rate="1.15",
        effect_type=EffectType.PER_CODE_TIME_BONUS,
        base_effect="0",
        effect_per_level="0.3",
    ),
    OneTimeUpgrade(
        id="coffee-machine",
        name="Coffee Machine",
        description="Stay alert longer. Adds +10 seconds to all minigame time limits.",
        cost_resource="money",
        base_cost="500",
        effect_type=EffectType.MINIGAME_TIME_BONUS,
        effect_value="10",
    ),
    ConsumableUpgrade(
        id="training-manual",
        name="Training Manual",
        description="Study hacking techniques. Grants +1 TP per purchase.",
        cost_resource="money",
        base_cost="10",
        growth_rate="1",
        grant_resource="technique",
        grant_amount="1",
    ),
    HardwareUpgrade(
        id="book-summarizer",
        name="Book Summarizer",
        description="AI-powered tool that summarizes training materials. Every 60s, converts $10 into 1 TP.",
        cost_resource="money",
        base_cost="100",
        secondary_cost_resource="technique",
        secondary_cost="10",
        automation_id="book-summarizer",
    ),
    MinigameUpgrade(
        id="gap-expander",
        name="Gap Expander",
        description="Widens the gap in code walls.",
        minigame_id="code-runner",
        cost_resource="technique",
        base_cost="10",
        cost_increment="5",
        effect_type=EffectType.GAP_WIDTH_BONUS,
        base_effect="0",
        effect_per_level="10",
    ),
    MinigameUpgrade(
        id="buffer-overflow",
        name="Buffer Overflow",
        description="Overflows the code buffer, adding more space between walls.",
        minigame_id="code-runner",
        cost_resource="technique",
        base_cost="10",
        cost_increment="10",
        effect_type=EffectType.WALL_SPACING_BONUS,
        base_effect="0",
        effect_per_level="15",
    ),
    MinigameUpgrade(
        id="overclock",
        name="Overclock",
        description="Overclocks your processor for faster reflexes.",
        minigame_id="code-runner",
        cost_resource="technique",
        base_cost="10",
        cost_increment="5",
        effect_type=EffectType.MOVE_SPEED_BONUS,
        base_effect="0",
        effect_per_level="25",
    ),
    MinigameUpgrade(
        id="central-router",
        name="Central Router",
        description="Routes packets through central channels, pulling gaps toward the middle.",
        minigame_id="code-runner",
        cost_resource="technique",
        base_cost="100",
        max_level=3,
        cost_increment="50",
        effect_type=EffectType.CENTER_BIAS,
        base_effect="0.3",
        effect_per_level="0.3",
    ),
    MinigameUpgrade(
        id="timing-exploit",
        name="Timing Exploit",
        description="Exploits clock synchronization flaws to buy more time for each code.",
        minigame_id="code-breaker",
        cost_resource="technique",
        base_cost="10",
        max_level=10,
        cost_increment="10",
        effect_type=EffectType.TIME_BONUS,
        base_effect="500",
        effect_per_level="500",
    ),
    MinigameUpgrade(
        id="entropy-reducer",
        name="Entropy Reducer",
        description="Pre-analyzes encryption patterns so codes start shorter.",
        minigame_id="code-breaker",
        cost_resource="technique",
        base_cost="100",
        max_level=4,
        cost_increment="100",
        effect_type=EffectType.CODE_LENGTH_REDUCTION,
        base_effect="1",
        effect_per_level="1",
    ),
    MinigameUpgrade(
        id="payload-amplifier",
        name="Payload Amplifier",
        description="Injects more potent payloads. All weapons deal 10% more damage per level.",
        minigame_id="botnet-defense",
        cost_resource="technique",
        base_cost="10",
        max_level=10,
        cost_increment="10",
        effect_type=EffectType.DAMAGE_MULTIPLIER_BONUS,
        base_effect="0.1",
        effect_per_level="0.1",
    ),
    MinigameUpgrade(
        id="redundant-systems",
        name="Redundant Systems",
        description="Adds backup systems to your network node. Each level grants one extra hit point.",
        minigame_id="botnet-defense",
        cost_resource="technique",
        base_cost="100",
        max_level=10,
        cost_increment="100",
        effect_type=EffectType.HEALTH_BONUS,
        base_effect="1",
        effect_per_level="1",
    ),
]

DEFAULT_CATALOG = UpgradeCatalog(DEFAULT_UPGRADES)
