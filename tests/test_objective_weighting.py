"""
Unit tests for objective weighting.

Tests cover proportional allocation of finite budgets, percentage
allocation of unbounded budgets and rejection of invalid weights.
"""

import math
import os
import random
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.errors import ConfigurationError, InvalidWeightsError
from core.objective_weighting import distribute, is_unbounded, round_half_up


def counts(allocations):
    return [a.question_count for a in allocations]


# ============================================================================
# Test round_half_up() / is_unbounded()
# ============================================================================


def test_round_half_up_rounds_halves_up():
    """Test halves round away from zero instead of to even."""
    assert round_half_up(2.5) == 3, f"Expected 3, got {round_half_up(2.5)}"
    assert round_half_up(3.5) == 4
    assert round_half_up(2.49) == 2
    assert round_half_up(0.0) == 0
    print("✓ test_round_half_up_rounds_halves_up passed")


def test_is_unbounded():
    """Test None and infinity both mean an unbounded budget."""
    assert is_unbounded(None)
    assert is_unbounded(math.inf)
    assert not is_unbounded(30)
    print("✓ test_is_unbounded passed")


# ============================================================================
# Test distribute() with finite budgets
# ============================================================================


def test_distribute_proportional_counts():
    """Test a 70/30 split of ten questions gives 7 and 3."""
    allocations = distribute([("a", 70), ("b", 30)], 10)
    assert counts(allocations) == [7, 3], f"Expected [7, 3], got {counts(allocations)}"
    assert allocations[0].weight_percent == pytest.approx(70.0)
    assert allocations[1].weight_percent == pytest.approx(30.0)
    print("✓ test_distribute_proportional_counts passed")


def test_distribute_last_objective_takes_remainder():
    """Test the last objective absorbs rounding so counts sum to the budget."""
    allocations = distribute([("a", 1), ("b", 1), ("c", 1)], 10)
    # 3.33 -> 3, 3.33 -> 3, remainder 4
    assert counts(allocations) == [3, 3, 4], f"Got {counts(allocations)}"
    assert sum(counts(allocations)) == 10
    print("✓ test_distribute_last_objective_takes_remainder passed")


def test_distribute_minimum_one_question():
    """Test tiny weights still receive one question (except the last)."""
    allocations = distribute([("big", 98), ("tiny", 1), ("last", 1)], 20)
    assert counts(allocations)[1] == 1, f"Expected 1 for tiny weight, got {counts(allocations)}"
    assert sum(counts(allocations)) == 20
    print("✓ test_distribute_minimum_one_question passed")


def test_distribute_remainder_can_drop_below_one():
    """Test a budget smaller than the objective count leaves the last at zero."""
    allocations = distribute([("a", 1), ("b", 1), ("c", 1)], 2)
    assert counts(allocations) == [1, 1, 0], f"Got {counts(allocations)}"
    assert sum(counts(allocations)) == 2
    print("✓ test_distribute_remainder_can_drop_below_one passed")


def test_distribute_weights_need_not_sum_to_100():
    """Test weights are normalized before allocation."""
    allocations = distribute([("a", 5), ("b", 3), ("c", 2)], 30)
    assert counts(allocations) == [15, 9, 6], f"Got {counts(allocations)}"
    total_percent = sum(a.weight_percent for a in allocations)
    assert total_percent == pytest.approx(100.0)
    print("✓ test_distribute_weights_need_not_sum_to_100 passed")


def test_distribute_preserves_order():
    """Test allocations come back in input order."""
    allocations = distribute([("z", 10), ("a", 80), ("m", 10)], 50)
    assert [a.objective_id for a in allocations] == ["z", "a", "m"]
    print("✓ test_distribute_preserves_order passed")


# ============================================================================
# Allocation properties over generated weight lists
# ============================================================================


def generated_cases(seed, count=25):
    rng = random.Random(seed)
    cases = []
    for _ in range(count):
        size = rng.randint(1, 12)
        weights = [(f"obj{i}", rng.choice([0.5, 1, 2.5, 5, 7, 10, 15, 20])) for i in range(size)]
        total = rng.randint(size, 250)
        cases.append((weights, total))
    return cases


@pytest.mark.parametrize("seed", [1, 7, 42, 2025])
def test_distribute_properties_hold_for_generated_weights(seed):
    """Test counts sum to the total, non-final counts are at least one and percentages sum to 100."""
    for weights, total in generated_cases(seed):
        allocations = distribute(weights, total)

        assert len(allocations) == len(weights)
        assert sum(counts(allocations)) == total, f"{weights} over {total}: {counts(allocations)}"
        assert all(count >= 1 for count in counts(allocations)[:-1])
        assert abs(sum(a.weight_percent for a in allocations) - 100) <= 1


@pytest.mark.parametrize("total", [1, 2, 3, 17, 180])
def test_distribute_sums_exactly_with_many_objectives(total):
    """Test exact sums even when the budget is smaller than the objective count."""
    allocations = distribute([(f"obj{i}", 1) for i in range(10)], total)
    assert sum(counts(allocations)) == total
    assert all(count >= 1 for count in counts(allocations)[:-1])


# ============================================================================
# Test distribute() with unbounded budgets
# ============================================================================


def test_distribute_unbounded_reports_percentages():
    """Test prep-mode allocation reports weights as percentages of 100."""
    allocations = distribute([("a", 1), ("b", 1), ("c", 2)], None)
    assert counts(allocations) == [25, 25, 50], f"Got {counts(allocations)}"
    assert allocations[2].weight_percent == pytest.approx(50.0)
    print("✓ test_distribute_unbounded_reports_percentages passed")


def test_distribute_infinite_budget_is_unbounded():
    """Test math.inf behaves like None."""
    assert counts(distribute([("a", 60), ("b", 40)], math.inf)) == [60, 40]
    print("✓ test_distribute_infinite_budget_is_unbounded passed")


# ============================================================================
# Test invalid weights
# ============================================================================


class TestInvalidWeights:
    """Invalid weights raise InvalidWeightsError."""

    def test_empty_weights(self):
        with pytest.raises(InvalidWeightsError):
            distribute([], 10)

    def test_zero_sum(self):
        with pytest.raises(InvalidWeightsError, match="zero"):
            distribute([("a", 0), ("b", 0)], 10)

    def test_negative_weight(self):
        with pytest.raises(InvalidWeightsError, match="negative"):
            distribute([("a", 10), ("b", -1)], 10)

    def test_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError):
            distribute([], None)
        with pytest.raises(ValueError):
            distribute([], None)
