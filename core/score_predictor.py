"""
Exam score prediction from partial practice data.

The overall prediction starts from the session's accuracy and applies,
in order:

1. Pacing: slow answering loses 10%, brisk answering gains 2%, answering
   more than twice as fast as the target pace loses 5% (guessing risk)
2. Difficulty adjustment (neutral for now)
3. Consistency: a wide spread of per-objective accuracy loses 5%, a
   narrow spread gains 3%
4. Recent form: last five answers against overall accuracy, +/- 5 points

The 95% interval uses a t critical value for the sample size and widens
with the distance between the practice sample and the target exam
length. Per-objective predictions shrink small samples toward a
difficulty baseline.
"""

import logging
import math
from typing import List, Optional, Sequence

import numpy as np

from config import Config
from core.dto.exam import DifficultyTag, ExamProfile
from core.dto.prediction import (
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
from core.dto.session import ObjectiveProgress, StudySession
from core.objective_weighting import round_half_up

logger = logging.getLogger(__name__)


def sample_std(values: Sequence[float]) -> float:
    """Sample standard deviation (n - 1), 0.0 for fewer than two values."""
    if len(values) < 2:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float), ddof=1))


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


class ScorePredictor:
    """Predicts a full-exam score, interval, reliability and next steps."""

    # Two-sided 95% critical values of Student's t by degrees of freedom
    T_TABLE = {
        1: 12.706,
        2: 4.303,
        3: 3.182,
        4: 2.776,
        5: 2.571,
        6: 2.447,
        7: 2.365,
        8: 2.306,
        9: 2.262,
        10: 2.228,
        15: 2.131,
        20: 2.086,
        25: 2.060,
        30: 2.042,
    }
    Z_95 = 1.96

    DIFFICULTY_BASELINES = {
        DifficultyTag.BEGINNER: 75.0,
        DifficultyTag.INTERMEDIATE: 65.0,
        DifficultyTag.ADVANCED: 55.0,
    }
    DEFAULT_BASELINE = 65.0

    # Spread used for the interval when per-objective std is degenerate
    DEFAULT_SPREAD = 0.2

    TREND_WINDOW = 5
    TREND_CAP = 5.0
    WEAK_OBJECTIVE_SCORE = 60.0
    MIN_SAMPLES_FOR_WEAKNESS = 3
    MIN_QUESTIONS_FOR_CONFIDENCE = 20

    def __init__(self, target_pace: Optional[float] = None):
        """
        Args:
            target_pace: Target seconds per question (default: Config.TARGET_SECONDS_PER_QUESTION)
        """
        self.target_pace = target_pace or Config.TARGET_SECONDS_PER_QUESTION

    # ==================== PREDICTION ====================

    def predict(
        self,
        session: StudySession,
        profile: ExamProfile,
        target_questions: Optional[int] = None,
    ) -> ScorePrediction:
        """Predict the learner's full-exam score.

        Args:
            session: Session with the practice attempts
            profile: Exam the session practices
            target_questions: Exam length to extrapolate to (default: the
                session's question budget, else 30% of the exam)

        Returns:
            ScorePrediction with interval, reliability, breakdown and actions
        """
        target = target_questions or self.resolve_target_questions(session, profile)
        sample_size = session.total_questions_answered

        factors = self.calculate_factors(session)
        breakdown = self.predict_objectives(session, profile)

        predicted = clamp(self.apply_adjustments(factors.overall_accuracy * 100, factors))
        spread = factors.consistency_score or self.DEFAULT_SPREAD
        interval = self.confidence_interval(predicted, spread, sample_size, target)
        reliability = self.determine_reliability(sample_size, spread, target)
        actions = self.recommendations(session, breakdown, predicted, reliability)

        logger.debug(
            f"Predicted {predicted:.1f} [{interval.lower:.1f}, {interval.upper:.1f}] "
            f"from {sample_size} answers, reliability {reliability.value}"
        )

        return ScorePrediction(
            predicted_score=predicted,
            confidence_interval=interval,
            reliability=reliability,
            breakdown=breakdown,
            recommended_actions=actions,
            factors=factors,
            sample_size=sample_size,
            target_questions=target,
        )

    def update_real_time(
        self,
        prediction: ScorePrediction,
        session: StudySession,
        profile: ExamProfile,
    ) -> ScorePrediction:
        """Refresh a prediction after a new answer.

        Every fifth answer triggers a full recomputation; in between, the
        point estimate moves 10% of the way toward the raw accuracy.
        """
        answered = session.total_questions_answered
        if answered == 0:
            return prediction

        if answered % Config.REALTIME_REFRESH_INTERVAL == 0:
            return self.predict(session, profile, prediction.target_questions or None)

        raw = session.total_correct_answers / answered * 100
        nudged = clamp(
            prediction.predicted_score
            + (raw - prediction.predicted_score) * Config.REALTIME_DAMPING
        )
        interval = prediction.confidence_interval
        return ScorePrediction(
            predicted_score=nudged,
            confidence_interval=ConfidenceInterval(
                lower=min(interval.lower, nudged),
                upper=max(interval.upper, nudged),
            ),
            reliability=prediction.reliability,
            breakdown=prediction.breakdown,
            recommended_actions=prediction.recommended_actions,
            factors=prediction.factors,
            sample_size=answered,
            target_questions=prediction.target_questions,
        )

    @staticmethod
    def resolve_target_questions(session: StudySession, profile: ExamProfile) -> int:
        total = session.exam_conditions.total_questions
        if total:
            return total
        base = profile.constraints.total_questions or Config.DEFAULT_TOTAL_QUESTIONS
        return max(1, round_half_up(base * Config.EFFICIENT_FRACTION))

    # ==================== STATIC METHODS (Pure Calculations) ====================

    @staticmethod
    def calculate_factors(session: StudySession) -> PredictionFactors:
        """Derive accuracy, pace, consistency and trend from a session."""
        answered = session.total_questions_answered
        if answered == 0:
            return PredictionFactors()

        accuracy = session.total_correct_answers / answered
        time_per_question = sum(p.total_time_spent for p in session.objectives) / answered

        objective_accuracies = [
            p.questions_correct / p.questions_attempted
            for p in session.objectives
            if p.questions_attempted > 0
        ]

        return PredictionFactors(
            overall_accuracy=accuracy,
            time_per_question=time_per_question,
            difficulty_adjustment=0.0,
            consistency_score=sample_std(objective_accuracies),
            improvement_trend=ScorePredictor.calculate_trend(session, accuracy),
        )

    @staticmethod
    def calculate_trend(session: StudySession, overall_accuracy: float) -> float:
        """Score points for recent form, clamped to +/- 5.

        Compares the accuracy of the last five answers of the session with
        overall accuracy; 0 until five answers exist.
        """
        attempts = sorted(
            (a for p in session.objectives for a in p.attempts),
            key=lambda a: a.timestamp,
        )
        window = ScorePredictor.TREND_WINDOW
        if len(attempts) < window:
            return 0.0

        recent = attempts[-window:]
        recent_accuracy = sum(1 for a in recent if a.correct) / window
        improvement = (recent_accuracy - overall_accuracy) * 100
        return clamp(improvement, -ScorePredictor.TREND_CAP, ScorePredictor.TREND_CAP)

    def apply_adjustments(self, base_score: float, factors: PredictionFactors) -> float:
        """Apply pacing, difficulty, consistency and trend to a base score."""
        score = base_score

        if factors.time_per_question > 0:
            pace_ratio = self.target_pace / factors.time_per_question
            if pace_ratio < 0.8:
                score *= 0.90
            elif pace_ratio > 2.0:
                score *= 0.95
            elif pace_ratio > 1.5:
                score *= 1.02

        score += factors.difficulty_adjustment

        if factors.consistency_score > 0.3:
            score *= 0.95
        elif factors.consistency_score < 0.1:
            score *= 1.03

        score += factors.improvement_trend
        return score

    @classmethod
    def t_critical(cls, degrees_of_freedom: int) -> float:
        """95% two-sided critical value, normal approximation from 30 df."""
        if degrees_of_freedom >= 30:
            return cls.Z_95
        closest = min(cls.T_TABLE, key=lambda df: abs(df - degrees_of_freedom))
        return cls.T_TABLE[closest]

    @classmethod
    def confidence_interval(
        cls, score: float, spread: float, sample_size: int, target_questions: int
    ) -> ConfidenceInterval:
        """95% interval around a (clamped) point estimate.

        The spread is scaled by sqrt(target / sample) to account for
        extrapolating a partial sample to the full exam.
        """
        if sample_size <= 0 or target_questions <= 0:
            return ConfidenceInterval(lower=0.0, upper=100.0)

        t_value = cls.t_critical(max(1, sample_size - 1))
        scaled = spread * math.sqrt(target_questions / sample_size)
        margin = t_value * math.sqrt(scaled)
        return ConfidenceInterval(lower=clamp(score - margin), upper=clamp(score + margin))

    @staticmethod
    def determine_reliability(sample_size: int, spread: float, target_questions: int) -> Reliability:
        fraction = sample_size / target_questions if target_questions > 0 else 0.0
        if fraction < 0.3 or spread > 0.4:
            return Reliability.LOW
        if fraction < 0.7 or spread > 0.25:
            return Reliability.MEDIUM
        return Reliability.HIGH

    # ==================== PER-OBJECTIVE ====================

    @classmethod
    def predict_objectives(cls, session: StudySession, profile: ExamProfile) -> List[ObjectivePrediction]:
        """Predict each objective of the session.

        Small samples are shrunk toward the objective's difficulty
        baseline: 60/40 under five answers, 80/20 under ten.
        """
        predictions = []
        for progress in session.objectives:
            sample_size = progress.questions_attempted
            current = progress.average_score
            predicted = current
            trend = Trend.STABLE

            if sample_size > 0:
                objective = profile.get_objective(progress.objective_id)
                difficulty = objective.difficulty if objective else None
                baseline = cls.DIFFICULTY_BASELINES.get(difficulty, cls.DEFAULT_BASELINE)

                if sample_size < 5:
                    predicted = current * 0.6 + baseline * 0.4
                elif sample_size < 10:
                    predicted = current * 0.8 + baseline * 0.2

                trend = cls.objective_trend(progress)
                if trend == Trend.IMPROVING:
                    predicted = min(100.0, predicted * 1.05)
                elif trend == Trend.DECLINING:
                    predicted = max(0.0, predicted * 0.95)

            predictions.append(
                ObjectivePrediction(
                    objective_id=progress.objective_id,
                    current_score=current,
                    predicted_score=clamp(predicted),
                    confidence=cls.objective_confidence(progress),
                    sample_size=sample_size,
                    trend=trend,
                )
            )
        return predictions

    @staticmethod
    def objective_trend(progress: ObjectiveProgress) -> Trend:
        """Compare the last five answers with the five before them."""
        attempts = progress.attempts
        if len(attempts) < 3:
            return Trend.STABLE

        recent = attempts[-5:]
        older = attempts[-10:-5]
        if not older:
            return Trend.STABLE

        recent_accuracy = sum(1 for a in recent if a.correct) / len(recent)
        older_accuracy = sum(1 for a in older if a.correct) / len(older)
        difference = recent_accuracy - older_accuracy

        if difference > 0.1:
            return Trend.IMPROVING
        if difference < -0.1:
            return Trend.DECLINING
        return Trend.STABLE

    @staticmethod
    def objective_confidence(progress: ObjectiveProgress) -> float:
        """Confidence 0-1 from sample size and consistency of recent answers."""
        sample_size = progress.questions_attempted
        confidence = min(1.0, sample_size / 10)
        if sample_size < 2:
            return confidence

        recent = [1.0 if a.correct else 0.0 for a in progress.attempts[-5:]]
        consistency = 1 - sample_std(recent)
        return clamp((confidence + consistency) / 2, 0.0, 1.0)

    # ==================== RECOMMENDATIONS ====================

    @classmethod
    def recommendations(
        cls,
        session: StudySession,
        breakdown: List[ObjectivePrediction],
        predicted_score: float,
        reliability: Reliability,
    ) -> List[RecommendedAction]:
        """Rank next steps: overall readiness, weakest objectives, more data."""
        actions = []

        if predicted_score >= 70 and reliability == Reliability.HIGH:
            actions.append(
                RecommendedAction(
                    type=ActionType.READY_FOR_MOCK,
                    message="Performance is strong enough to attempt a full mock exam.",
                    priority=Priority.HIGH,
                )
            )
        elif predicted_score >= 70:
            actions.append(
                RecommendedAction(
                    type=ActionType.CONTINUE_PRACTICE,
                    message="On track; keep practicing to confirm your readiness.",
                    priority=Priority.MEDIUM,
                )
            )
        elif predicted_score >= 60:
            actions.append(
                RecommendedAction(
                    type=ActionType.REVIEW_WEAK_AREAS,
                    message="Close to passing; review your weakest objectives.",
                    priority=Priority.HIGH,
                )
            )
        else:
            actions.append(
                RecommendedAction(
                    type=ActionType.FOCUS_STUDY,
                    message="Focus on core concepts before attempting more practice exams.",
                    priority=Priority.HIGH,
                )
            )

        weak = sorted(
            (
                p
                for p in breakdown
                if p.predicted_score < cls.WEAK_OBJECTIVE_SCORE
                and p.sample_size >= cls.MIN_SAMPLES_FOR_WEAKNESS
            ),
            key=lambda p: p.predicted_score,
        )[:3]
        for prediction in weak:
            actions.append(
                RecommendedAction(
                    type=ActionType.FOCUS_STUDY,
                    objective_id=prediction.objective_id,
                    message=(
                        f"Study {prediction.objective_id}: predicted "
                        f"{prediction.predicted_score:.0f}% over {prediction.sample_size} questions."
                    ),
                    priority=Priority.HIGH if prediction.predicted_score < 50 else Priority.MEDIUM,
                )
            )

        if session.total_questions_answered < cls.MIN_QUESTIONS_FOR_CONFIDENCE:
            actions.append(
                RecommendedAction(
                    type=ActionType.NEED_MORE_DATA,
                    message=(
                        f"Answer at least {cls.MIN_QUESTIONS_FOR_CONFIDENCE} questions "
                        "for a reliable prediction."
                    ),
                    priority=Priority.MEDIUM,
                )
            )

        return sorted(actions, key=lambda a: a.priority.rank)
