"""
Objective weighting: split a question budget across weighted objectives.

Finite budgets are allocated so the counts sum to the budget exactly:
every objective but the last receives max(1, round(total * share)) and
the last receives whatever remains. Unbounded budgets (prep mode) report
each objective's weight as a percentage of 100 instead.
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple

from config import Config
from core.dto.distribution import ObjectiveAllocation
from core.errors import InvalidWeightsError

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def is_unbounded(total: Optional[float]) -> bool:
    return total is None or (isinstance(total, float) and math.isinf(total))


def distribute(
    weights: Sequence[Tuple[str, float]], total: Optional[float]
) -> List[ObjectiveAllocation]:
    """Allocate a question budget proportionally to objective weights.

    Args:
        weights: (objective_id, weight) pairs in exam order
        total: Question budget, None (or inf) for unbounded

    Returns:
        One ObjectiveAllocation per input pair, same order

    Raises:
        InvalidWeightsError: If weights are empty, negative or sum to zero
    """
    if not weights:
        raise InvalidWeightsError("Cannot distribute questions over zero objectives")

    for objective_id, weight in weights:
        if weight < 0:
            raise InvalidWeightsError(f"Objective '{objective_id}' has negative weight {weight}")

    weight_sum = sum(weight for _, weight in weights)
    if weight_sum <= 0:
        raise InvalidWeightsError("Total objective weight cannot be zero")

    if is_unbounded(total):
        base = Config.PREP_BASE_QUESTIONS
        return [
            ObjectiveAllocation(
                objective_id=objective_id,
                question_count=round_half_up(base * weight / weight_sum),
                weight_percent=100.0 * weight / weight_sum,
            )
            for objective_id, weight in weights
        ]

    total = int(total)
    allocations = []
    allocated = 0
    last_index = len(weights) - 1

    for index, (objective_id, weight) in enumerate(weights):
        share = weight / weight_sum
        if index == last_index:
            count = total - allocated
            if count < 1:
                # Remainder is kept unclamped so the counts still sum to total
                logger.warning(
                    f"Objective '{objective_id}' left with {count} questions "
                    f"after allocating {allocated} of {total}"
                )
        else:
            count = max(1, round_half_up(total * share))
            allocated += count

        allocations.append(
            ObjectiveAllocation(
                objective_id=objective_id,
                question_count=count,
                weight_percent=100.0 * share,
            )
        )

    return allocations
