"""Study session Data Transfer Objects.

A StudySession is the aggregate root of a practice run: per-objective
progress, the ordered attempt history, running totals and, for timed
modes, the exam conditions and countdown state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from .exam import DifficultyTag, SamplingMode, StudyMode


class MasteryLevel(Enum):
    """Mastery of a single objective, derived from attempts."""

    NOVICE = "novice"
    DEVELOPING = "developing"
    PROFICIENT = "proficient"
    MASTERY = "mastery"


class TimeStatus(Enum):
    """Urgency of the remaining exam time."""

    NORMAL = "normal"
    WARNING = "warning"  # 30 minutes or less
    CRITICAL = "critical"  # 5 minutes or less


class FlashcardRating(Enum):
    """Learner self-rating after revealing a flashcard."""

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @property
    def score(self) -> int:
        """Numeric score 1-4 (matches the FSRS rating scale)."""
        return _RATING_SCORES[self]

    @property
    def is_mastered(self) -> bool:
        return self in (FlashcardRating.GOOD, FlashcardRating.EASY)


_RATING_SCORES = {
    FlashcardRating.AGAIN: 1,
    FlashcardRating.HARD: 2,
    FlashcardRating.GOOD: 3,
    FlashcardRating.EASY: 4,
}


@dataclass(frozen=True)
class QuestionAttempt:
    """A single answered multiple-choice question.

    Attributes:
        question_id: Identifier of the generated question
        objective_id: Objective the question samples
        correct: Whether the learner answered correctly
        time_spent: Seconds spent on the question
        attempt: 1-based ordinal of this attempt within the objective
        timestamp: When the answer was submitted (UTC)
        difficulty: Optional difficulty of the question
    """

    question_id: str
    objective_id: str
    correct: bool
    time_spent: float
    timestamp: datetime
    attempt: int = 0
    difficulty: Optional[DifficultyTag] = None
    kind: str = field(default="question", init=False)


@dataclass(frozen=True)
class FlashcardAttempt:
    """A single reviewed flashcard.

    Attributes:
        flashcard_id: Identifier of the generated flashcard
        objective_id: Objective the card belongs to
        rating: Learner self-rating
        time_spent: Seconds spent on the card
        attempt: 1-based ordinal of this review within the objective
        timestamp: When the rating was submitted (UTC)
        difficulty: Optional difficulty of the card
    """

    flashcard_id: str
    objective_id: str
    rating: FlashcardRating
    time_spent: float
    timestamp: datetime
    attempt: int = 0
    difficulty: Optional[DifficultyTag] = None
    kind: str = field(default="flashcard", init=False)


Attempt = Union[QuestionAttempt, FlashcardAttempt]


@dataclass
class FlashcardSchedule:
    """FSRS card state kept per objective when spaced repetition is on."""

    stability: float
    difficulty: float
    state: int
    due: datetime
    last_review: datetime
    step: Optional[int] = None
    reps: int = 0


@dataclass
class ObjectiveProgress:
    """Progress on one objective within a session.

    Attributes:
        objective_id: Objective identifier
        questions_attempted: Questions answered
        questions_correct: Questions answered correctly
        flashcards_studied: Flashcards reviewed
        flashcards_mastered: Flashcards rated good or easy
        total_time_spent: Seconds spent on questions
        flashcard_time_spent: Seconds spent on flashcards
        average_score: Question accuracy, 0-100
        flashcard_mastery_score: Mean flashcard rating, 1-4 (0 when none)
        mastery_level: Derived mastery classification
        questions_per_session: Questions to answer before moving on
        attempts: Question attempts in submission order
        flashcard_attempts: Flashcard attempts in submission order
        last_studied: Time of the latest attempt
        needs_review: Flagged for spaced review
        next_review_date: Next FSRS review, when scheduled
        flashcard_schedule: FSRS card state, when scheduled
    """

    objective_id: str
    questions_per_session: int = 10
    questions_attempted: int = 0
    questions_correct: int = 0
    flashcards_studied: int = 0
    flashcards_mastered: int = 0
    total_time_spent: float = 0.0
    flashcard_time_spent: float = 0.0
    average_score: float = 0.0
    flashcard_mastery_score: float = 0.0
    mastery_level: MasteryLevel = MasteryLevel.NOVICE
    attempts: List[QuestionAttempt] = field(default_factory=list)
    flashcard_attempts: List[FlashcardAttempt] = field(default_factory=list)
    last_studied: Optional[datetime] = None
    needs_review: bool = False
    next_review_date: Optional[datetime] = None
    flashcard_schedule: Optional[FlashcardSchedule] = None

    @property
    def total_attempts(self) -> int:
        return self.questions_attempted + self.flashcards_studied


@dataclass
class StudySessionConfig:
    """Caller-supplied options for a new session.

    Attributes:
        exam_id: Exam to study
        exam_mode: Sampling mode (prep, efficient, mock)
        study_mode: Session focus (focus, review, comprehensive, weakness)
        questions_per_objective: Override for the per-objective target
        target_questions: Override for the efficient-mode question count
        focus_objective_ids: Restrict the session to these objectives
        adaptive_difficulty: Let the caller adapt question difficulty
        spaced_repetition: Schedule flashcard reviews with FSRS
    """

    exam_id: str
    exam_mode: SamplingMode = SamplingMode.PREP
    study_mode: StudyMode = StudyMode.COMPREHENSIVE
    questions_per_objective: Optional[int] = None
    target_questions: Optional[int] = None
    focus_objective_ids: Optional[List[str]] = None
    adaptive_difficulty: bool = False
    spaced_repetition: bool = False


@dataclass(frozen=True)
class ExamConditions:
    """Format of a timed run (None fields mean unbounded)."""

    mode: SamplingMode
    total_questions: Optional[int] = None
    time_limit_seconds: Optional[int] = None
    break_after_question: Optional[int] = None
    break_duration_seconds: int = 900


@dataclass
class TimerState:
    """Countdown of a timed run, advanced by the caller's clock."""

    remaining_seconds: Optional[float] = None
    is_paused: bool = False
    break_active: bool = False
    break_remaining_seconds: float = 0.0
    break_taken: bool = False


@dataclass
class StudySession:
    """A practice run over one exam.

    Attributes:
        session_id: Unique session identifier
        exam_id: Exam being practiced
        config: Options the session was created with
        objectives: Per-objective progress, in session order
        current_objective_index: Index of the objective being studied
        questions_per_objective: Default per-objective target
        mastery_threshold: Score (0-100) at which an objective is done early
        started_at: Session start (UTC)
        ended_at: Session end, None while active
        total_questions_answered: Questions answered across objectives
        total_correct_answers: Correct answers across objectives
        total_flashcards_studied: Flashcards reviewed across objectives
        session_score: Question accuracy across objectives, 0-100
        exam_conditions: Format of the run
        timer: Countdown state (timed modes only)
    """

    session_id: str
    exam_id: str
    config: StudySessionConfig
    objectives: List[ObjectiveProgress]
    started_at: datetime
    exam_conditions: ExamConditions
    current_objective_index: int = 0
    questions_per_objective: int = 10
    mastery_threshold: float = 80
    ended_at: Optional[datetime] = None
    total_questions_answered: int = 0
    total_correct_answers: int = 0
    total_flashcards_studied: int = 0
    session_score: float = 0.0
    timer: TimerState = field(default_factory=TimerState)

    def get_progress(self, objective_id: str) -> Optional[ObjectiveProgress]:
        """Look up the progress row of an objective."""
        for progress in self.objectives:
            if progress.objective_id == objective_id:
                return progress
        return None

    @property
    def current_objective_id(self) -> Optional[str]:
        if 0 <= self.current_objective_index < len(self.objectives):
            return self.objectives[self.current_objective_index].objective_id
        return None

    @property
    def is_active(self) -> bool:
        return self.ended_at is None
