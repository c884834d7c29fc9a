"""Sampling and style distribution Data Transfer Objects."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from .exam import SamplingMode


class QuestionStyle(Enum):
    """Structural pattern of a generated question."""

    DIRECT = "direct"  # one-line concept check
    SCENARIO = "scenario"  # short applied situation
    CASE_STUDY = "case_study"  # multi-paragraph narrative


# Canonical order, also the tie-break order when ranking deficits
STYLE_ORDER = [QuestionStyle.DIRECT, QuestionStyle.SCENARIO, QuestionStyle.CASE_STUDY]


def empty_style_counts() -> Dict[QuestionStyle, int]:
    return {style: 0 for style in STYLE_ORDER}


@dataclass(frozen=True)
class ObjectiveAllocation:
    """Questions allotted to one objective.

    Attributes:
        objective_id: Objective identifier
        question_count: Questions to sample (weight percentage in prep mode)
        weight_percent: Normalized weight, 0-100
    """

    objective_id: str
    question_count: int
    weight_percent: float


@dataclass(frozen=True)
class SamplingStrategy:
    """Question budget of a practice run.

    Attributes:
        mode: Sampling mode the strategy was built for
        total_questions: Question budget, None when unbounded (prep)
        distribution: Allocation per objective, in profile order
    """

    mode: SamplingMode
    total_questions: Optional[int]
    distribution: List[ObjectiveAllocation]

    @property
    def is_unbounded(self) -> bool:
        return self.total_questions is None

    def allocation_for(self, objective_id: str) -> Optional[ObjectiveAllocation]:
        for allocation in self.distribution:
            if allocation.objective_id == objective_id:
                return allocation
        return None


@dataclass(frozen=True)
class ObjectiveCompletion:
    """Per-objective row of a sampling progress summary."""

    objective_id: str
    completed: int
    target: int
    percentage: float


@dataclass(frozen=True)
class SamplingProgress:
    """How far a run has come against its strategy.

    Attributes:
        total_completed: Questions answered so far
        total_target: Question budget (dynamic in prep mode)
        completion_percentage: total_completed / total_target * 100
        objectives: Per-objective completion rows
    """

    total_completed: int
    total_target: int
    completion_percentage: float
    objectives: List[ObjectiveCompletion]


@dataclass
class StyleDistributionState:
    """Running style counts of one session.

    Attributes:
        session_id: Session the counts belong to
        exam_id: Exam the session practices
        total_questions: Questions recorded, equals sum(style_counts)
        style_counts: Questions per style
        objective_counts: Questions per style for each objective
        last_updated: Last write, drives expiry
    """

    session_id: str
    exam_id: str
    last_updated: datetime
    total_questions: int = 0
    style_counts: Dict[QuestionStyle, int] = field(default_factory=empty_style_counts)
    objective_counts: Dict[str, Dict[QuestionStyle, int]] = field(default_factory=dict)

    def counts_for_objective(self, objective_id: str) -> Dict[QuestionStyle, int]:
        return self.objective_counts.get(objective_id, empty_style_counts())


@dataclass(frozen=True)
class DistributionHealth:
    """How closely a session's style mix follows its target."""

    score: int
    style_deviations: Dict[QuestionStyle, float]
    recommendations: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DistributionSummary:
    """Display-ready view of a session's style mix, percentages 0-100."""

    total_questions: int
    percentages: Dict[QuestionStyle, float]
    target: Dict[QuestionStyle, float]
    health_score: int
