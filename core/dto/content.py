"""Generated content Data Transfer Objects.

Questions and flashcards are produced by an external content generator;
the core only validates them and records the learner's answers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .distribution import QuestionStyle


@dataclass(frozen=True)
class GeneratedQuestion:
    """A multiple-choice question returned by the content generator.

    Attributes:
        question_id: Identifier assigned by the generator
        objective_id: Objective the question was requested for
        text: Question stem
        options: Answer options
        correct_index: Index of the correct option
        explanation: Rationale shown after answering
        style: Style the question was requested in
    """

    question_id: str
    objective_id: str
    text: str
    options: List[str]
    correct_index: int
    explanation: str = ""
    style: QuestionStyle = QuestionStyle.DIRECT


@dataclass(frozen=True)
class GeneratedFlashcard:
    """A flashcard returned by the content generator."""

    flashcard_id: str
    objective_id: str
    front: str
    back: str
    tags: List[str] = field(default_factory=list)


class IssueSeverity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class IssueCategory(Enum):
    STYLE = "style"
    CONTENT = "content"
    FORMAT = "format"
    CLARITY = "clarity"


@dataclass(frozen=True)
class ValidationIssue:
    """A single problem found in generated content."""

    severity: IssueSeverity
    category: IssueCategory
    message: str
    suggestion: Optional[str] = None


@dataclass(frozen=True)
class ValidationResult:
    """Quality verdict for a generated question.

    Attributes:
        is_valid: Score >= 70 and no high-severity issue
        score: Quality score, 0-100
        issues: Problems found
        suggestions: Improvement hints, one per issue that has one
    """

    is_valid: bool
    score: int
    issues: List[ValidationIssue] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
