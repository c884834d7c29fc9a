"""
Question style patterns and style selection.

Every generated question follows one of three structural patterns:

- direct: a single concept check, one or two sentences, no narrative
- scenario: a short applied situation ending in a question
- case_study: a multi-paragraph narrative with several data points

The target mix of patterns comes from the exam (some exams favour
narratives) overlaid by the objective's cognitive level (synthesis
objectives get more case studies than knowledge objectives). The
selector picks the style that is furthest below its target share and
that the objective is eligible for.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from core.dto.distribution import STYLE_ORDER, QuestionStyle
from core.dto.exam import DifficultyTag, Objective, ObjectiveLevel


@dataclass(frozen=True)
class QuestionPattern:
    """Eligibility rules of a question style.

    Attributes:
        style: Style the rules apply to
        description: One-line description of the structure
        min_difficulty: Lowest objective difficulty allowed (None = any)
        max_difficulty: Highest objective difficulty allowed (None = any)
        objective_levels: Objective levels allowed (empty = any)
    """

    style: QuestionStyle
    description: str
    min_difficulty: Optional[DifficultyTag] = None
    max_difficulty: Optional[DifficultyTag] = None
    objective_levels: List[ObjectiveLevel] = field(default_factory=list)

    def allows(self, objective: Objective) -> bool:
        """Whether an objective may be asked in this style.

        Difficulty is only enforced when the objective declares one.
        """
        if self.objective_levels and objective.level not in self.objective_levels:
            return False
        if objective.difficulty is None:
            return True
        if self.min_difficulty is not None and objective.difficulty.rank < self.min_difficulty.rank:
            return False
        if self.max_difficulty is not None and objective.difficulty.rank > self.max_difficulty.rank:
            return False
        return True


QUESTION_PATTERNS: Dict[QuestionStyle, QuestionPattern] = {
    QuestionStyle.DIRECT: QuestionPattern(
        style=QuestionStyle.DIRECT,
        description="Concise concept check without narrative context",
    ),
    QuestionStyle.SCENARIO: QuestionPattern(
        style=QuestionStyle.SCENARIO,
        description="Short applied situation followed by a question",
        min_difficulty=DifficultyTag.INTERMEDIATE,
        objective_levels=[ObjectiveLevel.APPLICATION, ObjectiveLevel.SYNTHESIS],
    ),
    QuestionStyle.CASE_STUDY: QuestionPattern(
        style=QuestionStyle.CASE_STUDY,
        description="Multi-paragraph narrative with several data points",
        min_difficulty=DifficultyTag.ADVANCED,
        objective_levels=[ObjectiveLevel.SYNTHESIS],
    ),
}


def _mix(direct: float, scenario: float, case_study: float) -> Dict[QuestionStyle, float]:
    return {
        QuestionStyle.DIRECT: direct,
        QuestionStyle.SCENARIO: scenario,
        QuestionStyle.CASE_STUDY: case_study,
    }


DEFAULT_DISTRIBUTION = _mix(0.6, 0.3, 0.1)

EXAM_PATTERN_PREFERENCES: Dict[str, Dict[QuestionStyle, float]] = {
    "cfa-l1": _mix(0.70, 0.25, 0.05),
    "cfa-l2": _mix(0.5, 0.4, 0.1),
    "cfa-l3": _mix(0.4, 0.4, 0.2),
    "aws-saa": _mix(0.55, 0.35, 0.10),
    "data-engineer-cert": _mix(0.6, 0.3, 0.1),
}

OBJECTIVE_PATTERN_PREFERENCES: Dict[ObjectiveLevel, Dict[QuestionStyle, float]] = {
    ObjectiveLevel.KNOWLEDGE: _mix(0.8, 0.15, 0.05),
    ObjectiveLevel.APPLICATION: _mix(0.5, 0.4, 0.1),
    ObjectiveLevel.SYNTHESIS: _mix(0.3, 0.45, 0.25),
}


def parse_style_mix(raw: Mapping[str, float]) -> Dict[QuestionStyle, float]:
    """Convert a {"direct": 0.6, ...} mapping to a style-keyed mix."""
    return {QuestionStyle(key): float(value) for key, value in raw.items()}


def exam_target_distribution(
    exam_id: str, exam_preferences: Optional[Mapping[QuestionStyle, float]] = None
) -> Dict[QuestionStyle, float]:
    """Target style mix of an exam.

    Explicit preferences win over the built-in table; exams in neither
    get the default 60/30/10 mix.
    """
    if exam_preferences:
        return dict(exam_preferences)
    return dict(EXAM_PATTERN_PREFERENCES.get(exam_id, DEFAULT_DISTRIBUTION))


def target_distribution(
    exam_id: str,
    objective: Objective,
    exam_preferences: Optional[Mapping[QuestionStyle, float]] = None,
) -> Dict[QuestionStyle, float]:
    """Target style mix for one objective: exam mix overlaid by level mix."""
    target = exam_target_distribution(exam_id, exam_preferences)
    level = objective.level or ObjectiveLevel.APPLICATION
    target.update(OBJECTIVE_PATTERN_PREFERENCES[level])
    return target


def select_style(
    exam_id: str,
    objective: Objective,
    current_counts: Mapping[QuestionStyle, int],
    total_for_objective: int,
    exam_preferences: Optional[Mapping[QuestionStyle, float]] = None,
) -> QuestionStyle:
    """Pick the style of the next question for an objective.

    Styles are ranked by deficit (target share minus current share,
    current share 0 when nothing was asked yet); the first eligible
    style wins, ties going to the canonical direct/scenario/case_study
    order. Falls back to direct when nothing is eligible.

    Args:
        exam_id: Exam identifier (selects the exam-level mix)
        objective: Objective the question samples
        current_counts: Questions asked so far per style for this objective
        total_for_objective: Questions asked so far for this objective
        exam_preferences: Optional exam-level mix override

    Returns:
        The style to request from the content generator
    """
    target = target_distribution(exam_id, objective, exam_preferences)

    deficits = []
    for style in STYLE_ORDER:
        current = current_counts.get(style, 0) / total_for_objective if total_for_objective > 0 else 0.0
        deficits.append((style, target.get(style, 0.0) - current))

    # sorted() is stable, so equal deficits keep canonical order
    for style, _ in sorted(deficits, key=lambda item: -item[1]):
        if QUESTION_PATTERNS[style].allows(objective):
            return style

    return QuestionStyle.DIRECT


# Vocabulary that gives a question narrative context
_NARRATIVE_ACTORS = re.compile(r"\b(company|firm|analyst|manager|corporation|organization)\b", re.IGNORECASE)
_SCENARIO_WORDS = re.compile(r"\b(consider|scenario|situation|case|example)\b", re.IGNORECASE)


def _fragments(text: str) -> int:
    return len(text.split("."))


def validate_style(text: str, style: QuestionStyle) -> bool:
    """Check that generated text has the structure of its style.

    - direct: no narrative actors or scenario vocabulary, at most two
      sentence fragments
    - scenario: longer than 50 characters, contains a question mark,
      at most four fragments
    - case_study: longer than 200 characters, more than three fragments
    """
    if style == QuestionStyle.DIRECT:
        if _NARRATIVE_ACTORS.search(text) or _SCENARIO_WORDS.search(text):
            return False
        return _fragments(text) <= 2

    if style == QuestionStyle.SCENARIO:
        return len(text) > 50 and "?" in text and _fragments(text) <= 4

    if style == QuestionStyle.CASE_STUDY:
        return len(text) > 200 and _fragments(text) > 3

    return True
