from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from idlecore import economy
from idlecore._types import StateFn
from idlecore.config import AutoGenerationConfig
from idlecore.resource import RESOURCE_IDS, ResourceType, resource_id

if TYPE_CHECKING:
    from idlecore.automation import AutomationScheduler
    from idlecore.catalog import UpgradeCatalog
    from idlecore.state import GameState


@dataclass(frozen=True)
class GenerationBreakdown:
    """How a resource's final rate was derived."""

    resource: str
    contributions: dict[str, str] = field(default_factory=dict)
    base_rate: str = economy.ZERO
    multiplier: str = economy.ONE
    final_rate: str = economy.ZERO


class GenerationCalculator:
    """Derives per-second generation rates from top scores and upgrades."""

    def __init__(
        self,
        config: AutoGenerationConfig,
        catalog: UpgradeCatalog,
        automations: AutomationScheduler,
    ) -> None:
        self.config = config
        self.catalog = catalog
        self.automations = automations
        self._custom: dict[str, StateFn] = {}

    def set_custom(self, resource: ResourceType | str, fn: StateFn) -> None:
        """Register a custom final-rate function for a specific resource."""
        self._custom[resource_id(resource)] = fn

    def base_rate_from_scores(self, state: GameState, minigame_id: str) -> str:
        """Sum of a minigame's top scores divided by the score-to-rate divisor."""
        scores = state.top_scores(minigame_id)
        if not scores:
            return economy.ZERO
        return economy.divide(economy.sum_decimals(scores), self.config.score_to_rate_divisor)

    def base_rate(self, state: GameState, resource: ResourceType | str) -> str:
        minigames = self.config.generating_minigames.get(resource_id(resource), ())
        return economy.sum_decimals(self.base_rate_from_scores(state, mid) for mid in minigames)

    def multiplier(self, state: GameState, resource: ResourceType | str) -> str:
        upgrade_id = self.config.multiplier_upgrades.get(resource_id(resource))
        if upgrade_id is None:
            return economy.ONE
        return self.catalog.effect(state, upgrade_id)

    def final_rate(self, state: GameState, resource: ResourceType | str) -> str:
        rid = resource_id(resource)
        if rid in self._custom:
            return self._custom[rid](state)
        return economy.multiply(self.base_rate(state, rid), self.multiplier(state, rid))

    def primary_rate(self, state: GameState) -> str:
        return self.final_rate(state, self.config.primary_resource)

    def automation_rates(self, state: GameState) -> dict[str, str]:
        return self.automations.average_rates(state)

    def all_rates(self, state: GameState) -> dict[str, str]:
        """Per-resource rates for display.

        Continuous generation and average automation output are reported
        together; only the continuous part is credited per frame.
        """
        automation = self.automation_rates(state)
        rates: dict[str, str] = {}
        for rid in RESOURCE_IDS:
            continuous = self.final_rate(state, rid)
            rates[rid] = economy.add(continuous, automation.get(rid, economy.ZERO))
        return rates

    def has_active_generation(self, state: GameState) -> bool:
        return economy.is_positive(self.primary_rate(state))

    def breakdown(self, state: GameState, resource: ResourceType | str | None = None) -> GenerationBreakdown:
        rid = resource_id(resource) if resource is not None else self.config.primary_resource
        contributions = {
            mid: self.base_rate_from_scores(state, mid)
            for mid in self.config.generating_minigames.get(rid, ())
        }
        base = economy.sum_decimals(contributions.values())
        mult = self.multiplier(state, rid)
        return GenerationBreakdown(
            resource=rid,
            contributions=contributions,
            base_rate=base,
            multiplier=mult,
            final_rate=self.final_rate(state, rid),
        )
