"""Score prediction Data Transfer Objects."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Reliability(Enum):
    """How much weight a prediction deserves."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Trend(Enum):
    """Direction of recent performance on an objective."""

    IMPROVING = "Improving"
    STABLE = "Stable"
    DECLINING = "Declining"


class ActionType(Enum):
    """Kind of recommended next step."""

    FOCUS_STUDY = "focus_study"
    REVIEW_WEAK_AREAS = "review_weak_areas"
    CONTINUE_PRACTICE = "continue_practice"
    READY_FOR_MOCK = "ready_for_mock"
    NEED_MORE_DATA = "need_more_data"


class Priority(Enum):
    """Urgency of a recommended action."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        return {"High": 0, "Medium": 1, "Low": 2}[self.value]


@dataclass(frozen=True)
class ConfidenceInterval:
    """95% interval around a predicted score, both bounds in [0, 100]."""

    lower: float
    upper: float

    def contains(self, score: float) -> bool:
        return self.lower <= score <= self.upper


@dataclass(frozen=True)
class PredictionFactors:
    """Inputs the overall prediction was derived from.

    Attributes:
        overall_accuracy: Fraction of questions answered correctly (0-1)
        time_per_question: Mean seconds per answered question
        difficulty_adjustment: Score points added for question difficulty
        consistency_score: Sample std of per-objective accuracy (0-1 scale)
        improvement_trend: Score points added for recent form (-5 to 5)
    """

    overall_accuracy: float = 0.0
    time_per_question: float = 0.0
    difficulty_adjustment: float = 0.0
    consistency_score: float = 0.0
    improvement_trend: float = 0.0


@dataclass(frozen=True)
class ObjectivePrediction:
    """Predicted score of a single objective.

    Attributes:
        objective_id: Objective identifier
        current_score: Observed accuracy, 0-100
        predicted_score: Shrunk and trend-adjusted score, 0-100
        confidence: Confidence in the prediction, 0-1
        sample_size: Questions answered on the objective
        trend: Direction of recent attempts
    """

    objective_id: str
    current_score: float
    predicted_score: float
    confidence: float
    sample_size: int
    trend: Trend = Trend.STABLE


@dataclass(frozen=True)
class RecommendedAction:
    """A suggested next step for the learner."""

    type: ActionType
    message: str
    priority: Priority
    objective_id: Optional[str] = None


@dataclass(frozen=True)
class ScorePrediction:
    """Full-exam score prediction from partial practice data.

    Attributes:
        predicted_score: Predicted exam score, 0-100
        confidence_interval: 95% interval containing predicted_score
        reliability: Reliability tier
        breakdown: Per-objective predictions
        recommended_actions: Next steps, most urgent first
        factors: Inputs the prediction was derived from
        sample_size: Questions answered when the prediction was made
        target_questions: Question count the prediction extrapolates to
    """

    predicted_score: float
    confidence_interval: ConfidenceInterval
    reliability: Reliability
    breakdown: List[ObjectivePrediction] = field(default_factory=list)
    recommended_actions: List[RecommendedAction] = field(default_factory=list)
    factors: PredictionFactors = field(default_factory=PredictionFactors)
    sample_size: int = 0
    target_questions: int = 0
