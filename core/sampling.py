"""
Sampling strategies: how many questions a run asks and from which objective.

Three modes are supported:
- prep: unbounded practice, the next objective is the one furthest
  behind its weight
- efficient: a shortened run of about 30% of the real exam
- mock: the full exam length

All functions are pure; progress is passed in as a mapping of
objective id -> questions completed.
"""

import logging
from typing import List, Mapping, Optional, Sequence, Union

from config import Config
from core.dto.distribution import (
    ObjectiveCompletion,
    SamplingProgress,
    SamplingStrategy,
)
from core.dto.exam import ExamProfile, SamplingMode
from core.errors import ConfigurationError, UnknownModeError, UnknownObjectiveError
from core.objective_weighting import distribute, round_half_up

logger = logging.getLogger(__name__)


def parse_mode(mode: Union[SamplingMode, str]) -> SamplingMode:
    """Coerce a mode name to SamplingMode.

    Raises:
        UnknownModeError: If the name is not a known mode
    """
    if isinstance(mode, SamplingMode):
        return mode
    try:
        return SamplingMode(str(mode).lower())
    except ValueError:
        raise UnknownModeError(mode)


def resolve_total_questions(
    profile: ExamProfile, mode: SamplingMode, target_questions: Optional[int] = None
) -> Optional[int]:
    """Question budget of a mode, None when unbounded."""
    base = profile.constraints.total_questions or Config.DEFAULT_TOTAL_QUESTIONS

    if mode == SamplingMode.PREP:
        return None
    if mode == SamplingMode.EFFICIENT:
        if target_questions is not None and target_questions < 0:
            raise ConfigurationError(f"target_questions must be positive, got {target_questions}")
        return target_questions or round_half_up(base * Config.EFFICIENT_FRACTION)
    return base


def build_strategy(
    profile: ExamProfile,
    mode: Union[SamplingMode, str],
    target_questions: Optional[int] = None,
    focus_objective_ids: Optional[Sequence[str]] = None,
) -> SamplingStrategy:
    """Build the question budget for a practice run.

    Args:
        profile: Exam profile to sample from
        mode: prep, efficient or mock
        target_questions: Efficient-mode budget override
        focus_objective_ids: Restrict sampling to these objectives

    Returns:
        SamplingStrategy with one allocation per (filtered) objective

    Raises:
        UnknownModeError: If mode is not recognized
        UnknownObjectiveError: If a focus id is not in the profile
        InvalidWeightsError: If the remaining weights sum to zero
    """
    sampling_mode = parse_mode(mode)
    objectives = list(profile.objectives)

    if focus_objective_ids:
        known = set(profile.objective_ids)
        for objective_id in focus_objective_ids:
            if objective_id not in known:
                raise UnknownObjectiveError(objective_id, profile.id)
        focus = set(focus_objective_ids)
        objectives = [o for o in objectives if o.id in focus]

    total = resolve_total_questions(profile, sampling_mode, target_questions)
    distribution = distribute([(o.id, o.weight) for o in objectives], total)

    logger.info(
        f"Built {sampling_mode.value} strategy for {profile.id}: "
        f"{total if total is not None else 'unbounded'} questions over "
        f"{len(distribution)} objectives"
    )

    return SamplingStrategy(mode=sampling_mode, total_questions=total, distribution=distribution)


def validate_strategy(strategy: SamplingStrategy) -> bool:
    """Check a strategy's invariants.

    - Outside prep mode every objective gets at least one question
    - Finite budgets are allocated exactly
    - Weight percentages sum to 100 (+/- 1 for rounding)
    """
    problems = strategy_problems(strategy)
    for problem in problems:
        logger.debug(f"Invalid strategy: {problem}")
    return not problems


def strategy_problems(strategy: SamplingStrategy) -> List[str]:
    """List the invariant violations of a strategy (empty when valid)."""
    problems = []

    if strategy.mode != SamplingMode.PREP:
        for allocation in strategy.distribution:
            if allocation.question_count < 1:
                problems.append(
                    f"{allocation.objective_id} has {allocation.question_count} questions"
                )

    if strategy.total_questions is not None:
        allocated = sum(a.question_count for a in strategy.distribution)
        if allocated != strategy.total_questions:
            problems.append(f"allocated {allocated} of {strategy.total_questions} questions")

    weight_total = sum(a.weight_percent for a in strategy.distribution)
    if abs(weight_total - 100) > 1:
        problems.append(f"weights sum to {weight_total:.1f}%")

    return problems


def next_objective(strategy: SamplingStrategy, progress: Mapping[str, int]) -> Optional[str]:
    """Pick the objective the next question should sample.

    Prep mode returns the objective with the lowest completed/weight ratio
    (first in profile order on ties). Other modes return the first
    objective still below its allocation, or None when all are complete.

    Args:
        strategy: Strategy being followed
        progress: Objective id -> questions completed (missing means 0)
    """
    if not strategy.distribution:
        return None

    if strategy.mode == SamplingMode.PREP:
        best_id = None
        best_ratio = None
        for allocation in strategy.distribution:
            completed = progress.get(allocation.objective_id, 0)
            ratio = completed / max(allocation.weight_percent, 1)
            if best_ratio is None or ratio < best_ratio:
                best_id = allocation.objective_id
                best_ratio = ratio
        return best_id

    for allocation in strategy.distribution:
        if progress.get(allocation.objective_id, 0) < allocation.question_count:
            return allocation.objective_id
    return None


def should_end_session(strategy: SamplingStrategy, progress: Mapping[str, int]) -> bool:
    """Whether every objective of a bounded run has reached its target.

    Prep runs never end on their own. Answers piled onto one objective
    do not finish the run while another is still short.
    """
    if strategy.mode == SamplingMode.PREP or strategy.total_questions is None:
        return False
    return all(
        progress.get(allocation.objective_id, 0) >= allocation.question_count
        for allocation in strategy.distribution
    )


def progress_summary(strategy: SamplingStrategy, progress: Mapping[str, int]) -> SamplingProgress:
    """Summarize completion against a strategy.

    Prep mode has no fixed budget, so its target grows with the run
    (at least 100 questions).
    """
    total_completed = sum(progress.get(a.objective_id, 0) for a in strategy.distribution)

    if strategy.total_questions is None:
        total_target = max(total_completed, Config.PREP_BASE_QUESTIONS)
    else:
        total_target = strategy.total_questions

    rows = []
    for allocation in strategy.distribution:
        completed = progress.get(allocation.objective_id, 0)
        target = allocation.question_count
        percentage = min(100.0, completed / target * 100) if target > 0 else 0.0
        rows.append(
            ObjectiveCompletion(
                objective_id=allocation.objective_id,
                completed=completed,
                target=target,
                percentage=percentage,
            )
        )

    completion = total_completed / total_target * 100 if total_target > 0 else 0.0
    return SamplingProgress(
        total_completed=total_completed,
        total_target=total_target,
        completion_percentage=completion,
        objectives=rows,
    )
