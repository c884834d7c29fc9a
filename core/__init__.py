"""
CertPrep Core - adaptive certification exam preparation library.

Main components:
- sampling: Question budgets per objective and next-objective selection
- StyleDistributionTracker: Question style mix per session
- SessionTracker: Study session state, mastery and exam timing
- ScorePredictor: Full-exam score prediction with confidence interval
"""

from core.catalog import ExamCatalog
from core.errors import (
    ConfigurationError,
    InvalidWeightsError,
    UnknownModeError,
    UnknownObjectiveError,
)
from core.objective_weighting import distribute
from core.question_patterns import select_style, validate_style
from core.question_validation import QuestionSimilarityDetector, QuestionValidator
from core.sampling import (
    build_strategy,
    next_objective,
    progress_summary,
    should_end_session,
    validate_strategy,
)
from core.score_predictor import ScorePredictor
from core.session_tracker import SessionTracker
from core.style_tracker import StyleDistributionTracker

__all__ = [
    "ExamCatalog",
    # Errors
    "ConfigurationError",
    "InvalidWeightsError",
    "UnknownModeError",
    "UnknownObjectiveError",
    # Sampling
    "distribute",
    "build_strategy",
    "validate_strategy",
    "next_objective",
    "should_end_session",
    "progress_summary",
    # Question styles
    "select_style",
    "validate_style",
    "StyleDistributionTracker",
    "QuestionValidator",
    "QuestionSimilarityDetector",
    # Sessions & prediction
    "SessionTracker",
    "ScorePredictor",
]
