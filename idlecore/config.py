from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from idlecore import economy
from idlecore.errors import InvalidDecimalError
from idlecore.resource import RESOURCE_IDS


@dataclass(frozen=True)
class GameplayConfig:
    """Offline catch-up and frame-loop tuning."""

    offline_max_seconds: int = 8 * 60 * 60
    offline_efficiency: str = "0.5"
    offline_min_seconds_for_modal: int = 60
    max_delta_ms: int = 1000
    rate_update_interval_ms: int = 250


@dataclass(frozen=True)
class AutoGenerationConfig:
    """How minigame scores turn into passive generation."""

    score_to_rate_divisor: int = 100
    generating_minigames: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: {"money": ("code-breaker",)}
    )
    multiplier_upgrades: dict[str, str] = field(
        default_factory=lambda: {"money": "auto-typer"}
    )
    primary_resource: str = "money"


@dataclass(frozen=True)
class UpgradeConfig:
    default_growth_rate: str = "1.15"


@dataclass(frozen=True)
class GameConfig:
    """Top-level game configuration."""

    name: str = "Hacker Incremental"
    max_top_scores: int = 5
    gameplay: GameplayConfig = field(default_factory=GameplayConfig)
    auto_generation: AutoGenerationConfig = field(default_factory=AutoGenerationConfig)
    upgrades: UpgradeConfig = field(default_factory=UpgradeConfig)

    def with_overrides(
        self,
        gameplay: dict[str, Any] | None = None,
        auto_generation: dict[str, Any] | None = None,
        upgrades: dict[str, Any] | None = None,
        **top_level: Any,
    ) -> GameConfig:
        """Return a copy with partial section overrides merged over this config."""
        return replace(
            self,
            gameplay=replace(self.gameplay, **(gameplay or {})),
            auto_generation=replace(self.auto_generation, **(auto_generation or {})),
            upgrades=replace(self.upgrades, **(upgrades or {})),
            **top_level,
        )

    def validate(self) -> list[str]:
        """Check for configuration errors. Returns list of error messages."""
        errors: list[str] = []
        gp = self.gameplay
        ag = self.auto_generation

        if self.max_top_scores < 1:
            errors.append(f"max_top_scores must be at least 1, got {self.max_top_scores}")

        if gp.offline_max_seconds < 0:
            errors.append(f"offline_max_seconds must not be negative, got {gp.offline_max_seconds}")
        if gp.offline_min_seconds_for_modal < 0:
            errors.append(
                "offline_min_seconds_for_modal must not be negative, "
                f"got {gp.offline_min_seconds_for_modal}"
            )
        if gp.max_delta_ms <= 0:
            errors.append(f"max_delta_ms must be positive, got {gp.max_delta_ms}")
        if gp.rate_update_interval_ms < 0:
            errors.append(
                f"rate_update_interval_ms must not be negative, got {gp.rate_update_interval_ms}"
            )

        try:
            efficiency = economy.to_decimal(gp.offline_efficiency)
        except InvalidDecimalError:
            errors.append(f"offline_efficiency is not a number: {gp.offline_efficiency!r}")
        else:
            if efficiency < 0 or efficiency > 1:
                errors.append(f"offline_efficiency must be within [0, 1], got {gp.offline_efficiency}")

        if ag.score_to_rate_divisor <= 0:
            errors.append(f"score_to_rate_divisor must be positive, got {ag.score_to_rate_divisor}")
        if ag.primary_resource not in RESOURCE_IDS:
            errors.append(f"primary_resource is not a known resource: {ag.primary_resource!r}")
        for rid in ag.generating_minigames:
            if rid not in RESOURCE_IDS:
                errors.append(f"generating_minigames references unknown resource {rid!r}")
        for rid in ag.multiplier_upgrades:
            if rid not in RESOURCE_IDS:
                errors.append(f"multiplier_upgrades references unknown resource {rid!r}")

        if not economy.is_valid_decimal_string(self.upgrades.default_growth_rate):
            errors.append(
                f"default_growth_rate is not a number: {self.upgrades.default_growth_rate!r}"
            )

        return errors
