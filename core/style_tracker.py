"""
Style distribution tracking across a session.

Keeps running per-style counts (overall and per objective) for every
active session, chooses the next question style from those counts and
scores how closely the session's mix follows the exam's target mix.

State lives in a SessionStore passed in by the caller; entries expire two
hours after their last write and are reset when a session id is reused
for a different exam.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Mapping, Optional

from config import Config
from core.dto.distribution import (
    STYLE_ORDER,
    DistributionHealth,
    DistributionSummary,
    QuestionStyle,
    StyleDistributionState,
    empty_style_counts,
)
from core.dto.exam import Objective
from core.objective_weighting import round_half_up
from core.ports.session_store import SessionStore
from core.question_patterns import exam_target_distribution, select_style
from core.timeutils import utc_now

logger = logging.getLogger(__name__)


class StyleDistributionTracker:
    """Per-session style counts backed by a SessionStore."""

    def __init__(
        self,
        store: SessionStore,
        clock: Callable[[], datetime] = utc_now,
        ttl_seconds: Optional[int] = None,
        deviation_threshold: Optional[float] = None,
    ):
        """Initialize the tracker.

        Args:
            store: Where StyleDistributionState values are kept
            clock: Returns the current UTC time
            ttl_seconds: Inactivity window after which state is discarded
            deviation_threshold: Style deviation (0-1) that triggers a recommendation
        """
        self.store = store
        self.clock = clock
        self.ttl = timedelta(
            seconds=ttl_seconds if ttl_seconds is not None else Config.SESSION_TTL_SECONDS
        )
        self.deviation_threshold = (
            deviation_threshold
            if deviation_threshold is not None
            else Config.STYLE_DEVIATION_THRESHOLD
        )

    # ==================== STATE LIFECYCLE ====================

    def _is_expired(self, state: StyleDistributionState) -> bool:
        return self.clock() - state.last_updated > self.ttl

    def _load_live(self, session_id: str) -> Optional[StyleDistributionState]:
        """Load a session's state, deleting it if it has expired."""
        state = self.store.get(session_id)
        if state is None:
            return None
        if self._is_expired(state):
            self.store.delete(session_id)
            logger.debug(f"Discarded expired style state of session {session_id}")
            return None
        return state

    def get_state(self, session_id: str, exam_id: str) -> StyleDistributionState:
        """Get a session's state, initializing it if needed.

        A fresh state is created when none exists, when the stored state
        expired, or when it belongs to a different exam.
        """
        state = self._load_live(session_id)
        if state is not None and state.exam_id == exam_id:
            return state

        if state is not None:
            logger.info(
                f"Session {session_id} switched exam {state.exam_id} -> {exam_id}, resetting styles"
            )

        state = StyleDistributionState(
            session_id=session_id,
            exam_id=exam_id,
            last_updated=self.clock(),
        )
        self.store.put(session_id, state)
        return state

    def get_stats(self, session_id: str) -> Optional[StyleDistributionState]:
        """Current state of a session, or None when absent or expired."""
        return self._load_live(session_id)

    def reset(self, session_id: str) -> None:
        self.store.delete(session_id)

    def sweep_expired(self) -> int:
        """Reclaim expired session states, returning how many were removed."""
        return self.store.sweep()

    # ==================== RECORDING & SELECTION ====================

    def record(
        self, session_id: str, exam_id: str, objective_id: str, style: QuestionStyle
    ) -> StyleDistributionState:
        """Count a generated question of the given style."""
        state = self.get_state(session_id, exam_id)

        state.style_counts[style] = state.style_counts.get(style, 0) + 1
        per_objective = state.objective_counts.setdefault(objective_id, empty_style_counts())
        per_objective[style] = per_objective.get(style, 0) + 1
        state.total_questions += 1
        state.last_updated = self.clock()

        self.store.put(session_id, state)
        logger.debug(
            f"Session {session_id}: recorded {style.value} for {objective_id} "
            f"({state.total_questions} total)"
        )
        return state

    def next_style(
        self,
        session_id: str,
        exam_id: str,
        objective: Objective,
        exam_preferences: Optional[Mapping[QuestionStyle, float]] = None,
    ) -> QuestionStyle:
        """Choose the style of the next question for an objective."""
        state = self.get_state(session_id, exam_id)
        counts = state.counts_for_objective(objective.id)
        total = sum(counts.values())
        return select_style(exam_id, objective, counts, total, exam_preferences)

    # ==================== HEALTH ====================

    def health(
        self,
        session_id: str,
        exam_id: Optional[str] = None,
        exam_preferences: Optional[Mapping[QuestionStyle, float]] = None,
    ) -> DistributionHealth:
        """Score how closely a session's style mix follows the exam target.

        score = max(0, 100 - 100 * sum(|current share - target share|));
        a session with no questions is perfectly healthy.
        """
        state = self._load_live(session_id)
        if state is None or state.total_questions == 0:
            return DistributionHealth(
                score=100,
                style_deviations={style: 0.0 for style in STYLE_ORDER},
            )

        target = exam_target_distribution(exam_id or state.exam_id, exam_preferences)
        deviations: Dict[QuestionStyle, float] = {}
        recommendations = []
        total_deviation = 0.0

        for style in STYLE_ORDER:
            current = state.style_counts.get(style, 0) / state.total_questions
            wanted = target.get(style, 0.0)
            deviation = current - wanted
            deviations[style] = deviation
            total_deviation += abs(deviation)

            if abs(deviation) > self.deviation_threshold:
                verb = "Reduce" if deviation > 0 else "Increase"
                recommendations.append(
                    f"{verb} {style.value} questions "
                    f"(currently {current * 100:.1f}%, target {wanted * 100:.1f}%)"
                )

        score = max(0, round_half_up(100 - total_deviation * 100))
        return DistributionHealth(
            score=score,
            style_deviations=deviations,
            recommendations=recommendations,
        )

    def summary(
        self,
        session_id: str,
        exam_preferences: Optional[Mapping[QuestionStyle, float]] = None,
    ) -> Optional[DistributionSummary]:
        """Display-ready percentages for a session, None when absent."""
        state = self._load_live(session_id)
        if state is None:
            return None

        total = state.total_questions
        percentages = {
            style: (state.style_counts.get(style, 0) / total * 100 if total > 0 else 0.0)
            for style in STYLE_ORDER
        }
        target = exam_target_distribution(state.exam_id, exam_preferences)
        return DistributionSummary(
            total_questions=total,
            percentages=percentages,
            target={style: target.get(style, 0.0) * 100 for style in STYLE_ORDER},
            health_score=self.health(session_id, exam_preferences=exam_preferences).score,
        )
