from __future__ import annotations

from typing import Callable

from idlecore import economy
from idlecore._types import DecimalInput


class CostScaling:
    """Determines how an upgrade's cost changes with its current level."""

    def __init__(self, fn: Callable[[str, int], str]) -> None:
        self._fn = fn

    def compute(self, base_cost: DecimalInput, level: int) -> str:
        return self._fn(economy.to_storage(economy.to_decimal(base_cost)), level)

    @classmethod
    def fixed(cls) -> CostScaling:
        """Cost never changes."""
        return cls(lambda base, _level: base)

    @classmethod
    def exponential(cls, growth_rate: DecimalInput = "1.15") -> CostScaling:
        """Cost = base * growth_rate^level."""
        gr = growth_rate  # capture

        def _compute(base: str, level: int) -> str:
            return economy.calculate_cost(base, gr, level)

        return cls(_compute)

    @classmethod
    def linear(cls, increment: DecimalInput) -> CostScaling:
        """Cost = base + increment * level."""
        inc = increment

        def _compute(base: str, level: int) -> str:
            return economy.add(base, economy.multiply(inc, level))

        return cls(_compute)

    @classmethod
    def custom(cls, fn: Callable[[str, int], str]) -> CostScaling:
        """Arbitrary cost function."""
        return cls(fn)
