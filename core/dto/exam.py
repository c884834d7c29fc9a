"""Exam profile Data Transfer Objects.

An exam profile is static configuration: the weighted list of learning
objectives a certification covers plus the exam's format constraints.
Profiles are loaded from the YAML catalog or built directly in code.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from .distribution import QuestionStyle


class ObjectiveLevel(Enum):
    """Cognitive level an objective is examined at."""

    KNOWLEDGE = "knowledge"
    APPLICATION = "application"
    SYNTHESIS = "synthesis"


class DifficultyTag(Enum):
    """Difficulty band of an objective."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @property
    def rank(self) -> int:
        """Ordinal used for minimum-difficulty comparisons."""
        return _DIFFICULTY_RANK[self]


_DIFFICULTY_RANK = {
    DifficultyTag.BEGINNER: 1,
    DifficultyTag.INTERMEDIATE: 2,
    DifficultyTag.ADVANCED: 3,
}


class SamplingMode(Enum):
    """How many questions a practice run samples.

    PREP: unbounded, objectives are rotated by weight
    EFFICIENT: about 30% of the real exam
    MOCK: the full exam length
    """

    PREP = "prep"
    EFFICIENT = "efficient"
    MOCK = "mock"


class StudyMode(Enum):
    """What a study session concentrates on."""

    FOCUS = "focus"
    REVIEW = "review"
    COMPREHENSIVE = "comprehensive"
    WEAKNESS = "weakness"


@dataclass(frozen=True)
class Objective:
    """A weighted learning objective of an exam.

    Attributes:
        id: Unique identifier within the exam
        title: Human readable title
        weight: Share of the exam in percentage points
        level: Cognitive level (drives the question style mix)
        difficulty: Optional difficulty band (gates scenario/case study styles)
        questions_per_session: Optional per-objective session target
        key_topics: Topics that generated content should touch on
    """

    id: str
    title: str
    weight: float
    level: ObjectiveLevel = ObjectiveLevel.APPLICATION
    difficulty: Optional[DifficultyTag] = None
    questions_per_session: Optional[int] = None
    key_topics: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ExamConstraints:
    """Format of the real exam."""

    total_questions: int = 180
    time_minutes: int = 270
    option_count: int = 4
    passing_score: float = 70


@dataclass(frozen=True)
class StudySettings:
    """Per-exam defaults for study sessions."""

    default_questions_per_objective: int = 10
    mastery_threshold: float = 80
    spaced_repetition: bool = False
    adaptive_difficulty: bool = False


@dataclass(frozen=True)
class ExamProfile:
    """A certification exam and its weighted objectives.

    Attributes:
        id: Exam identifier (e.g. "cfa-l1")
        name: Display name
        provider: Certifying body
        objectives: Objectives in exam order
        constraints: Exam format (question count, time, options)
        study_settings: Optional study defaults
        style_preferences: Optional exam-level style mix, QuestionStyle -> share
        terminology: Domain terms generated content is expected to use
    """

    id: str
    name: str
    objectives: List[Objective]
    provider: str = ""
    constraints: ExamConstraints = field(default_factory=ExamConstraints)
    study_settings: Optional[StudySettings] = None
    style_preferences: Optional[Dict["QuestionStyle", float]] = None
    terminology: List[str] = field(default_factory=list)

    def get_objective(self, objective_id: str) -> Optional[Objective]:
        """Look up an objective by id."""
        for objective in self.objectives:
            if objective.id == objective_id:
                return objective
        return None

    @property
    def objective_ids(self) -> List[str]:
        return [o.id for o in self.objectives]
