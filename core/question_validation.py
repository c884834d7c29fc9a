"""
Quality checks for generated questions.

QuestionValidator scores a generated question against its requested
style, the objective's key topics, the exam's format and basic clarity
rules. Every issue carries a score penalty; a question is valid when it
keeps at least 70 points and has no high-severity issue.

QuestionSimilarityDetector flags questions that repeat recent ones, so
the caller can ask the content generator for another.
"""

import hashlib
import re
from collections import Counter
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from core.dto.content import (
    GeneratedQuestion,
    IssueCategory,
    IssueSeverity,
    ValidationIssue,
    ValidationResult,
)
from core.dto.distribution import QuestionStyle
from core.dto.exam import ExamProfile, Objective
from core.question_patterns import validate_style

Penalized = List[Tuple[ValidationIssue, int]]

_SCENARIO_LANGUAGE = re.compile(
    r"\b(company|firm|analyst|manager|corporation|organization|consider|scenario|situation|case)\b",
    re.IGNORECASE,
)
_CONCEPT_FOCUS = re.compile(
    r"\b(what|which|how|when|formula|calculate|definition|principle|rule)\b", re.IGNORECASE
)
_NUMBER = re.compile(r"\b\d+")
_CONDITION = re.compile(r"\b(if|when|given|assuming)\b", re.IGNORECASE)
_NEGATIVE = re.compile(r"\b(not|never|no|none)\b", re.IGNORECASE)
_AMBIGUOUS = re.compile(r"\b(some|many|often|usually|sometimes)\b", re.IGNORECASE)

HIGH, MEDIUM, LOW = IssueSeverity.HIGH, IssueSeverity.MEDIUM, IssueSeverity.LOW
STYLE, CONTENT = IssueCategory.STYLE, IssueCategory.CONTENT
FORMAT, CLARITY = IssueCategory.FORMAT, IssueCategory.CLARITY


def _penalty(
    severity: IssueSeverity, category: IssueCategory, message: str, points: int
) -> Tuple[ValidationIssue, int]:
    return ValidationIssue(severity=severity, category=category, message=message), points


class QuestionValidator:
    """Scores generated questions; all checks are pure."""

    PASSING_SCORE = 70

    SUGGESTIONS: Dict[IssueCategory, List[str]] = {
        IssueCategory.CONTENT: [
            "Ensure the question relates directly to the objective's key topics",
            "Use exam-specific terminology",
            "Vary answer option length and structure",
        ],
        IssueCategory.FORMAT: [
            "Match the exam's number of answer options",
            "End the question with a question mark",
            "Verify the correct answer index",
        ],
        IssueCategory.CLARITY: [
            "Use precise language and avoid vague quantifiers",
            "Avoid stacking negatives",
            "Give enough detail for a clear reading",
        ],
    }

    STYLE_SUGGESTIONS: Dict[QuestionStyle, List[str]] = {
        QuestionStyle.DIRECT: [
            "Focus on definitions, formulas or principles without scenario context",
            "Keep the question to one or two sentences",
        ],
        QuestionStyle.SCENARIO: [
            "Use two or three sentences with specific conditions or figures",
            "Test practical application without lengthy background",
        ],
        QuestionStyle.CASE_STUDY: [
            "Provide a multi-paragraph narrative with interconnected details",
            "Require synthesis of several concepts",
        ],
    }

    @classmethod
    def validate(
        cls,
        question: GeneratedQuestion,
        style: QuestionStyle,
        profile: ExamProfile,
        objective: Objective,
    ) -> ValidationResult:
        """Score a generated question.

        Args:
            question: Content generator output
            style: Style the question was requested in
            profile: Exam (option count, terminology)
            objective: Objective (key topics)

        Returns:
            ValidationResult with score, issues and suggestions
        """
        penalized = (
            cls.check_style(question.text, style)
            + cls.check_content(question, profile, objective)
            + cls.check_format(question, profile)
            + cls.check_clarity(question.text)
        )
        issues = [issue for issue, _ in penalized]
        score = max(0, 100 - sum(penalty for _, penalty in penalized))

        return ValidationResult(
            is_valid=score >= cls.PASSING_SCORE
            and not any(i.severity == IssueSeverity.HIGH for i in issues),
            score=score,
            issues=issues,
            suggestions=cls.suggestions(issues, style),
        )

    @staticmethod
    def check_style(text: str, style: QuestionStyle) -> Penalized:
        found: Penalized = []
        fragments = len(text.split("."))

        if style == QuestionStyle.DIRECT:
            if _SCENARIO_LANGUAGE.search(text):
                found.append(_penalty(HIGH, STYLE, "Direct question uses scenario language", 40))
            if fragments > 2:
                found.append(_penalty(MEDIUM, STYLE, "Direct question is longer than two sentences", 20))
            if not _CONCEPT_FOCUS.search(text):
                found.append(_penalty(LOW, STYLE, "Direct question should test a concept or formula", 10))

        elif style == QuestionStyle.SCENARIO:
            if fragments < 2:
                found.append(_penalty(MEDIUM, STYLE, "Scenario lacks context", 25))
            elif fragments > 4:
                found.append(_penalty(MEDIUM, STYLE, "Scenario is too long", 20))
            if not _NUMBER.search(text) and not _CONDITION.search(text):
                found.append(_penalty(MEDIUM, STYLE, "Scenario has no specific conditions or figures", 20))

        elif style == QuestionStyle.CASE_STUDY:
            if len(text) < 200:
                found.append(_penalty(HIGH, STYLE, "Case study is too brief", 35))
            if fragments < 4:
                found.append(_penalty(MEDIUM, STYLE, "Case study needs several components", 25))

        return found

    @staticmethod
    def check_content(question: GeneratedQuestion, profile: ExamProfile, objective: Objective) -> Penalized:
        found: Penalized = []
        text = question.text.lower()

        if objective.key_topics and not any(
            topic.lower().split(" ")[0] in text for topic in objective.key_topics
        ):
            found.append(_penalty(MEDIUM, CONTENT, "Question misses the key topics", 15))

        if profile.terminology and not any(term.lower() in text for term in profile.terminology):
            found.append(_penalty(LOW, CONTENT, "Question uses no exam terminology", 10))

        if len(question.options) < 2:
            found.append(_penalty(HIGH, CONTENT, "Fewer than two answer options", 50))
        elif float(np.var([len(option) for option in question.options])) < 10:
            found.append(_penalty(LOW, CONTENT, "Answer options are uniform in length", 5))

        return found

    @staticmethod
    def check_format(question: GeneratedQuestion, profile: ExamProfile) -> Penalized:
        found: Penalized = []
        expected = profile.constraints.option_count

        if len(question.options) != expected:
            message = f"Expected {expected} options, got {len(question.options)}"
            found.append(_penalty(HIGH, FORMAT, message, 30))
        if not 0 <= question.correct_index < len(question.options):
            found.append(_penalty(HIGH, FORMAT, "Correct answer index out of range", 40))
        if not question.text.strip().endswith("?"):
            found.append(_penalty(LOW, FORMAT, "Question should end with a question mark", 5))

        return found

    @staticmethod
    def check_clarity(text: str) -> Penalized:
        found: Penalized = []

        if _AMBIGUOUS.search(text):
            found.append(_penalty(MEDIUM, CLARITY, "Question uses vague quantifiers", 20))
        if len(_NEGATIVE.findall(text)) > 1:
            found.append(_penalty(MEDIUM, CLARITY, "Question stacks negatives", 15))
        if len(text.strip()) < 20:
            found.append(_penalty(MEDIUM, CLARITY, "Question is too brief", 25))

        return found

    @classmethod
    def suggestions(cls, issues: Sequence[ValidationIssue], style: QuestionStyle) -> List[str]:
        categories = {issue.category for issue in issues}
        result = []
        if IssueCategory.STYLE in categories:
            result.extend(cls.STYLE_SUGGESTIONS.get(style, []))
        for category in (IssueCategory.CONTENT, IssueCategory.FORMAT, IssueCategory.CLARITY):
            if category in categories:
                result.extend(cls.SUGGESTIONS[category])
        return result

    @staticmethod
    def quick_style_check(text: str, style: QuestionStyle) -> bool:
        """Cheap structural check, the same rules the style selector enforces."""
        return validate_style(text, style)


class QuestionSimilarityDetector:
    """Detects repeated or formulaic questions within a session."""

    SIMILARITY_THRESHOLD = 0.7
    RECENT_WINDOW = 10

    STARTERS = [
        "What is",
        "How does",
        "Which factor",
        "What distinguishes",
        "In what way",
        "When does",
        "Which statement",
        "What happens",
        "How is",
        "Which approach",
        "What determines",
        "Which method",
        "What indicates",
        "How can",
        "Which principle",
        "What defines",
    ]

    @staticmethod
    def normalize(text: str) -> str:
        text = re.sub(r"[^\w\s]", " ", text.lower())
        return re.sub(r"\s+", " ", text).strip()

    @classmethod
    def question_hash(cls, text: str) -> str:
        return hashlib.sha256(cls.normalize(text).encode()).hexdigest()[:16]

    @classmethod
    def similarity(cls, first: str, second: str) -> float:
        """Jaccard similarity (0-1) of the words longer than two characters."""
        a, b = cls.normalize(first), cls.normalize(second)
        if a == b:
            return 1.0
        words_a = {w for w in a.split(" ") if len(w) > 2}
        words_b = {w for w in b.split(" ") if len(w) > 2}
        union = words_a | words_b
        return len(words_a & words_b) / len(union) if union else 0.0

    @classmethod
    def most_similar(cls, text: str, previous: Sequence[str]) -> Tuple[Optional[str], float]:
        """Closest of the last ten previous questions and its similarity."""
        best, best_score = None, 0.0
        for candidate in previous[-cls.RECENT_WINDOW:]:
            score = cls.similarity(text, candidate)
            if score > best_score:
                best, best_score = candidate, score
        return best, best_score

    @classmethod
    def is_too_similar(cls, text: str, previous: Sequence[str], threshold: Optional[float] = None) -> bool:
        _, score = cls.most_similar(text, previous)
        return score >= (threshold if threshold is not None else cls.SIMILARITY_THRESHOLD)

    @staticmethod
    def repetitive_patterns(previous: Sequence[str]) -> List[str]:
        """Describe formulaic openings and structures in the last eight questions."""
        recent = list(previous[-8:])
        patterns = []

        openings = Counter(
            " ".join(q.lower().split()[:4]) for q in recent if len(q.split()) >= 4
        )
        for opening, count in openings.items():
            if count >= 3:
                patterns.append(f'Repetitive question opening: "{opening}" (used {count} times)')

        structures = Counter(re.sub(r"\w+", "X", q) for q in recent)
        for count in structures.values():
            if count >= 2:
                patterns.append(f"Repetitive question structure ({count} similar questions)")

        return patterns

    @classmethod
    def diverse_starters(cls, previous: Sequence[str], limit: int = 6) -> List[str]:
        """Question openings not used by the last five questions."""
        used = set()
        for question in previous[-5:]:
            match = re.match(r"^(\w+\s+\w+)", question)
            if match:
                used.add(match.group(1).lower())
        return [s for s in cls.STARTERS if s.lower() not in used][:limit]
