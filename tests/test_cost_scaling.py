"""Tests for cost scaling."""
from idlecore.cost_scaling import CostScaling


def test_fixed_scaling():
    cs = CostScaling.fixed()
    assert cs.compute("500", 0) == "500"
    assert cs.compute("500", 10) == "500"


def test_exponential_scaling():
    cs = CostScaling.exponential("1.15")
    assert cs.compute("100", 0) == "100"
    assert cs.compute("100", 1) == "115"
    assert cs.compute(100, 2) == "132.25"


def test_linear_scaling():
    cs = CostScaling.linear("50")
    assert cs.compute("100", 0) == "100"
    assert cs.compute("100", 2) == "200"


def test_custom_scaling():
    cs = CostScaling.custom(lambda base, level: str(int(base) * (level + 1)))
    assert cs.compute("10", 3) == "40"


def test_compute_normalises_base():
    cs = CostScaling.fixed()
    assert cs.compute("010.50", 0) == "10.5"
