"""Data Transfer Objects for certprep-core business logic."""

from .content import (
    GeneratedFlashcard,
    GeneratedQuestion,
    IssueCategory,
    IssueSeverity,
    ValidationIssue,
    ValidationResult,
)
from .distribution import (
    STYLE_ORDER,
    DistributionHealth,
    DistributionSummary,
    ObjectiveAllocation,
    ObjectiveCompletion,
    QuestionStyle,
    SamplingProgress,
    SamplingStrategy,
    StyleDistributionState,
)
from .exam import (
    DifficultyTag,
    ExamConstraints,
    ExamProfile,
    Objective,
    ObjectiveLevel,
    SamplingMode,
    StudyMode,
    StudySettings,
)
from .prediction import (
    ActionType,
    ConfidenceInterval,
    ObjectivePrediction,
    PredictionFactors,
    Priority,
    RecommendedAction,
    Reliability,
    ScorePrediction,
    Trend,
)
from .session import (
    Attempt,
    ExamConditions,
    FlashcardAttempt,
    FlashcardRating,
    FlashcardSchedule,
    MasteryLevel,
    ObjectiveProgress,
    QuestionAttempt,
    StudySession,
    StudySessionConfig,
    TimerState,
    TimeStatus,
)

__all__ = [
    # Enums
    "ObjectiveLevel",
    "DifficultyTag",
    "SamplingMode",
    "StudyMode",
    "QuestionStyle",
    "MasteryLevel",
    "FlashcardRating",
    "TimeStatus",
    "Reliability",
    "Trend",
    "ActionType",
    "Priority",
    "IssueSeverity",
    "IssueCategory",
    "STYLE_ORDER",
    # Exam DTOs
    "Objective",
    "ExamConstraints",
    "StudySettings",
    "ExamProfile",
    # Sampling / distribution DTOs
    "ObjectiveAllocation",
    "SamplingStrategy",
    "ObjectiveCompletion",
    "SamplingProgress",
    "StyleDistributionState",
    "DistributionHealth",
    "DistributionSummary",
    # Session DTOs
    "Attempt",
    "QuestionAttempt",
    "FlashcardAttempt",
    "FlashcardSchedule",
    "ObjectiveProgress",
    "StudySessionConfig",
    "ExamConditions",
    "TimerState",
    "StudySession",
    # Prediction DTOs
    "ConfidenceInterval",
    "PredictionFactors",
    "ObjectivePrediction",
    "RecommendedAction",
    "ScorePrediction",
    # Content DTOs
    "GeneratedQuestion",
    "GeneratedFlashcard",
    "ValidationIssue",
    "ValidationResult",
]
