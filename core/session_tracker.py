"""
Study session tracking.

The SessionTracker owns every mutation of a StudySession: recording
question and flashcard attempts, recomputing per-objective accuracy and
mastery, deciding when to move to the next objective and keeping the
countdown of timed (efficient/mock) runs.

A session has a single writer. Attempts are validated before anything is
changed, so a rejected attempt never leaves the session half-updated.
Attempts against objectives the session does not contain are logged and
ignored.
"""

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from config import Config
from core.dto.exam import ExamProfile, SamplingMode
from core.dto.session import (
    Attempt,
    ExamConditions,
    FlashcardAttempt,
    MasteryLevel,
    ObjectiveProgress,
    QuestionAttempt,
    StudySession,
    StudySessionConfig,
    TimerState,
    TimeStatus,
)
from core.errors import ConfigurationError, UnknownObjectiveError
from core.fsrs_scheduler import FSRSScheduler
from core.objective_weighting import round_half_up
from core.sampling import resolve_total_questions
from core.timeutils import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class SessionTracker:
    """Single-writer state machine over StudySession."""

    # Mastery thresholds on the blended 0-100 score
    MASTERY_SCORE = 90
    PROFICIENT_SCORE = 75
    DEVELOPING_SCORE = 60

    # Early exit on mastery needs at least this many answers
    EARLY_EXIT_MIN_ATTEMPTS = 5

    def __init__(
        self,
        scheduler: Optional[FSRSScheduler] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the tracker.

        Args:
            scheduler: FSRS scheduler for spaced-repetition sessions (created on first use)
            clock: Returns the current UTC time
        """
        self._scheduler = scheduler
        self.clock = clock

    @property
    def scheduler(self) -> FSRSScheduler:
        if self._scheduler is None:
            self._scheduler = FSRSScheduler()
        return self._scheduler

    # ==================== LIFECYCLE ====================

    def create_session(
        self,
        config: StudySessionConfig,
        profile: ExamProfile,
        session_id: Optional[str] = None,
    ) -> StudySession:
        """Start a study session over an exam profile.

        Args:
            config: Session options (mode, focus subset, overrides)
            profile: Exam being studied
            session_id: Explicit id (default: random UUID)

        Returns:
            New StudySession with one progress row per (filtered) objective

        Raises:
            ConfigurationError: If config and profile disagree or a count is invalid
            UnknownObjectiveError: If a focus id is not in the profile
        """
        if config.exam_id != profile.id:
            raise ConfigurationError(
                f"Session config is for exam '{config.exam_id}', profile is '{profile.id}'"
            )

        objectives = list(profile.objectives)
        if config.focus_objective_ids:
            known = set(profile.objective_ids)
            for objective_id in config.focus_objective_ids:
                if objective_id not in known:
                    raise UnknownObjectiveError(objective_id, profile.id)
            focus = set(config.focus_objective_ids)
            objectives = [o for o in objectives if o.id in focus]

        settings = profile.study_settings
        questions_per_objective = (
            config.questions_per_objective
            or (settings.default_questions_per_objective if settings else None)
            or Config.DEFAULT_QUESTIONS_PER_OBJECTIVE
        )
        if questions_per_objective < 1:
            raise ConfigurationError(
                f"questions_per_objective must be at least 1, got {questions_per_objective}"
            )
        mastery_threshold = (
            settings.mastery_threshold if settings else Config.DEFAULT_MASTERY_THRESHOLD
        )

        conditions = self.exam_conditions_for(profile, config.exam_mode, config.target_questions)
        session = StudySession(
            session_id=session_id or str(uuid.uuid4()),
            exam_id=profile.id,
            config=config,
            objectives=[
                ObjectiveProgress(
                    objective_id=o.id,
                    questions_per_session=o.questions_per_session or questions_per_objective,
                )
                for o in objectives
            ],
            started_at=self.clock(),
            exam_conditions=conditions,
            questions_per_objective=questions_per_objective,
            mastery_threshold=mastery_threshold,
            timer=TimerState(
                remaining_seconds=(
                    float(conditions.time_limit_seconds)
                    if conditions.time_limit_seconds is not None
                    else None
                )
            ),
        )

        logger.info(
            f"Created {config.exam_mode.value} session {session.session_id} for {profile.id} "
            f"({len(session.objectives)} objectives)"
        )
        return session

    @staticmethod
    def exam_conditions_for(
        profile: ExamProfile, mode: SamplingMode, target_questions: Optional[int] = None
    ) -> ExamConditions:
        """Question and time ceiling of a mode.

        prep is unbounded; efficient scales the exam time with the
        shortened question count; mock uses the full exam with a break
        after the halfway question, none for a single-question run.
        """
        total = resolve_total_questions(profile, mode, target_questions)
        if total is None:
            return ExamConditions(mode=mode)

        full_questions = profile.constraints.total_questions or Config.DEFAULT_TOTAL_QUESTIONS
        full_seconds = profile.constraints.time_minutes * 60

        if mode == SamplingMode.MOCK:
            return ExamConditions(
                mode=mode,
                total_questions=total,
                time_limit_seconds=full_seconds,
                break_after_question=total // 2 if total >= 2 else None,
                break_duration_seconds=Config.MOCK_BREAK_SECONDS,
            )

        return ExamConditions(
            mode=mode,
            total_questions=total,
            time_limit_seconds=round_half_up(full_seconds * total / full_questions),
        )

    def end_session(self, session: StudySession) -> StudySession:
        if session.ended_at is None:
            session.ended_at = self.clock()
            logger.info(
                f"Ended session {session.session_id}: {session.total_questions_answered} "
                f"questions, score {session.session_score:.1f}"
            )
        return session

    # ==================== RECORDING ====================

    def record_attempt(self, session: StudySession, attempt: Attempt) -> StudySession:
        """Record a question or flashcard attempt."""
        if isinstance(attempt, FlashcardAttempt):
            return self.record_flashcard_attempt(session, attempt)
        return self.record_question_attempt(session, attempt)

    def _accepts(self, session: StudySession, objective_id: str, time_spent: float) -> Optional[ObjectiveProgress]:
        """Progress row an attempt applies to, or None when it must be ignored."""
        if not session.is_active:
            logger.warning(f"Ignoring attempt on ended session {session.session_id}")
            return None
        if time_spent < 0:
            logger.warning(f"Ignoring attempt with negative time {time_spent} on {objective_id}")
            return None
        progress = session.get_progress(objective_id)
        if progress is None:
            logger.warning(
                f"Ignoring attempt for objective '{objective_id}' not in session {session.session_id}"
            )
        return progress

    def record_question_attempt(self, session: StudySession, attempt: QuestionAttempt) -> StudySession:
        """Record an answered question.

        Updates the objective's counts, time, average score and mastery,
        then the session totals and score.
        """
        progress = self._accepts(session, attempt.objective_id, attempt.time_spent)
        if progress is None:
            return session

        if attempt.attempt <= 0:
            attempt = replace(attempt, attempt=progress.questions_attempted + 1)
        attempt = replace(attempt, timestamp=ensure_utc(attempt.timestamp))

        progress.attempts.append(attempt)
        progress.questions_attempted += 1
        if attempt.correct:
            progress.questions_correct += 1
        progress.total_time_spent += attempt.time_spent
        progress.last_studied = attempt.timestamp
        self.recalculate(progress)

        session.total_questions_answered += 1
        if attempt.correct:
            session.total_correct_answers += 1
        session.session_score = self.calculate_session_score(session)

        logger.debug(
            f"Session {session.session_id}: {attempt.objective_id} "
            f"{'correct' if attempt.correct else 'incorrect'} "
            f"({progress.questions_correct}/{progress.questions_attempted})"
        )
        return session

    def record_flashcard_attempt(self, session: StudySession, attempt: FlashcardAttempt) -> StudySession:
        """Record a reviewed flashcard.

        The rating is averaged into the flashcard mastery score; with
        spaced repetition on, the FSRS card of the objective is advanced
        and its due date becomes the next review date.
        """
        progress = self._accepts(session, attempt.objective_id, attempt.time_spent)
        if progress is None:
            return session
        attempt = replace(attempt, timestamp=ensure_utc(attempt.timestamp))

        schedule = None
        if session.config.spaced_repetition:
            schedule = self.scheduler.schedule(
                attempt.rating, progress.flashcard_schedule, attempt.timestamp
            )

        if attempt.attempt <= 0:
            attempt = replace(attempt, attempt=progress.flashcards_studied + 1)

        progress.flashcard_attempts.append(attempt)
        progress.flashcards_studied += 1
        if attempt.rating.is_mastered:
            progress.flashcards_mastered += 1
        progress.flashcard_time_spent += attempt.time_spent
        progress.last_studied = attempt.timestamp
        progress.needs_review = not attempt.rating.is_mastered
        if schedule is not None:
            progress.flashcard_schedule = schedule
            progress.next_review_date = schedule.due
        self.recalculate(progress)

        session.total_flashcards_studied += 1
        return session

    # ==================== NAVIGATION ====================

    @staticmethod
    def should_advance_objective(session: StudySession, objective_id: str) -> bool:
        """Whether the learner is done with an objective for this session.

        True once the per-session question count is reached, or once the
        average score meets the mastery threshold after at least
        min(5, per-session count) answers. Unknown objectives are skipped.
        """
        progress = session.get_progress(objective_id)
        if progress is None:
            return True

        limit = progress.questions_per_session or session.questions_per_objective
        if progress.questions_attempted >= limit:
            return True

        early_exit_after = min(SessionTracker.EARLY_EXIT_MIN_ATTEMPTS, limit)
        return (
            progress.questions_attempted >= early_exit_after
            and progress.average_score >= session.mastery_threshold
        )

    @staticmethod
    def advance_objective(session: StudySession) -> Optional[str]:
        """Move to the next objective in order.

        Returns:
            The new current objective id, or None when all are done
        """
        next_index = session.current_objective_index + 1
        if next_index >= len(session.objectives):
            return None
        session.current_objective_index = next_index
        return session.objectives[next_index].objective_id

    @staticmethod
    def objectives_to_review(
        session: StudySession, now: Optional[datetime] = None
    ) -> List[ObjectiveProgress]:
        """Objectives flagged for review, not yet developed, or due for FSRS review."""
        now = now or utc_now()
        return [
            p
            for p in session.objectives
            if p.needs_review
            or p.mastery_level in (MasteryLevel.NOVICE, MasteryLevel.DEVELOPING)
            or (p.next_review_date is not None and p.next_review_date <= now)
        ]

    @staticmethod
    def weak_objectives(session: StudySession, limit: int = 3) -> List[ObjectiveProgress]:
        """The lowest-scoring objectives among those attempted."""
        attempted = [p for p in session.objectives if p.questions_attempted > 0]
        return sorted(attempted, key=lambda p: p.average_score)[:limit]

    # ==================== TIMER ====================

    @staticmethod
    def tick(session: StudySession, elapsed_seconds: float) -> StudySession:
        """Advance the countdown by the caller's elapsed wall time.

        A running break consumes the break allowance instead of exam time
        and ends itself when the allowance runs out; a paused timer does
        not move.
        """
        timer = session.timer
        if timer.remaining_seconds is None:
            return session
        if elapsed_seconds < 0:
            logger.warning(f"Ignoring negative tick of {elapsed_seconds}s")
            return session

        if timer.break_active:
            timer.break_remaining_seconds = max(0.0, timer.break_remaining_seconds - elapsed_seconds)
            if timer.break_remaining_seconds == 0:
                timer.break_active = False
                logger.info(f"Break over for session {session.session_id}")
        elif not timer.is_paused:
            timer.remaining_seconds = max(0.0, timer.remaining_seconds - elapsed_seconds)
        return session

    @staticmethod
    def pause(session: StudySession) -> StudySession:
        session.timer.is_paused = True
        return session

    @staticmethod
    def resume(session: StudySession) -> StudySession:
        session.timer.is_paused = False
        return session

    @staticmethod
    def is_break_due(session: StudySession) -> bool:
        """Mock runs offer one break once the halfway question is answered."""
        after = session.exam_conditions.break_after_question
        if after is None or session.timer.break_taken or session.timer.break_active:
            return False
        return session.total_questions_answered >= after

    @staticmethod
    def start_break(session: StudySession) -> StudySession:
        if not SessionTracker.is_break_due(session):
            logger.warning(f"No break available for session {session.session_id}")
            return session
        session.timer.break_active = True
        session.timer.break_taken = True
        session.timer.break_remaining_seconds = float(session.exam_conditions.break_duration_seconds)
        return session

    @staticmethod
    def end_break(session: StudySession) -> StudySession:
        session.timer.break_active = False
        session.timer.break_remaining_seconds = 0.0
        return session

    @staticmethod
    def is_time_expired(session: StudySession) -> bool:
        remaining = session.timer.remaining_seconds
        return remaining is not None and remaining <= 0

    @staticmethod
    def is_exam_complete(session: StudySession) -> bool:
        """All questions of a bounded run answered, or its time is up."""
        total = session.exam_conditions.total_questions
        if total is not None and session.total_questions_answered >= total:
            return True
        return SessionTracker.is_time_expired(session)

    @staticmethod
    def time_status(session: StudySession) -> TimeStatus:
        remaining = session.timer.remaining_seconds
        if remaining is None or remaining > Config.TIME_WARNING_SECONDS:
            return TimeStatus.NORMAL
        if remaining > Config.TIME_CRITICAL_SECONDS:
            return TimeStatus.WARNING
        return TimeStatus.CRITICAL

    # ==================== STATIC METHODS (Pure Calculations) ====================

    @staticmethod
    def calculate_session_score(session: StudySession) -> float:
        if session.total_questions_answered == 0:
            return 0.0
        return session.total_correct_answers / session.total_questions_answered * 100

    @staticmethod
    def blended_score(progress: ObjectiveProgress) -> float:
        """Question accuracy and flashcard ratings merged on a 0-100 scale.

        Flashcard ratings map 1-4 onto 0-100; each channel is weighted by
        its number of attempts.
        """
        questions = progress.questions_attempted
        flashcards = progress.flashcards_studied
        if questions + flashcards == 0:
            return 0.0

        flashcard_percent = 0.0
        if flashcards > 0:
            flashcard_percent = (progress.flashcard_mastery_score - 1) / 3 * 100

        return (progress.average_score * questions + flashcard_percent * flashcards) / (
            questions + flashcards
        )

    @staticmethod
    def calculate_mastery_level(progress: ObjectiveProgress) -> MasteryLevel:
        """Classify mastery from the blended score.

        Fewer than three attempts across both channels is always novice.
        """
        if progress.total_attempts < Config.MIN_ATTEMPTS_FOR_MASTERY:
            return MasteryLevel.NOVICE

        score = SessionTracker.blended_score(progress)
        if score >= SessionTracker.MASTERY_SCORE:
            return MasteryLevel.MASTERY
        if score >= SessionTracker.PROFICIENT_SCORE:
            return MasteryLevel.PROFICIENT
        if score >= SessionTracker.DEVELOPING_SCORE:
            return MasteryLevel.DEVELOPING
        return MasteryLevel.NOVICE

    @staticmethod
    def recalculate(progress: ObjectiveProgress) -> ObjectiveProgress:
        """Recompute the derived fields of a progress row from its counts."""
        if progress.questions_attempted > 0:
            progress.average_score = progress.questions_correct / progress.questions_attempted * 100
        else:
            progress.average_score = 0.0

        if progress.flashcard_attempts:
            progress.flashcard_mastery_score = sum(
                a.rating.score for a in progress.flashcard_attempts
            ) / len(progress.flashcard_attempts)
        else:
            progress.flashcard_mastery_score = 0.0

        progress.mastery_level = SessionTracker.calculate_mastery_level(progress)
        return progress

    @staticmethod
    def aggregate_progress(
        sessions: Iterable[StudySession], exam_id: Optional[str] = None
    ) -> List[ObjectiveProgress]:
        """Merge objective progress across several sessions.

        Args:
            sessions: Sessions to merge (left untouched)
            exam_id: Only merge sessions of this exam

        Returns:
            One merged progress row per objective, in first-seen order
        """
        merged: Dict[str, ObjectiveProgress] = {}

        for session in sessions:
            if exam_id is not None and session.exam_id != exam_id:
                continue
            for progress in session.objectives:
                existing = merged.get(progress.objective_id)
                if existing is None:
                    merged[progress.objective_id] = replace(
                        progress,
                        attempts=list(progress.attempts),
                        flashcard_attempts=list(progress.flashcard_attempts),
                    )
                    continue

                existing.questions_attempted += progress.questions_attempted
                existing.questions_correct += progress.questions_correct
                existing.flashcards_studied += progress.flashcards_studied
                existing.flashcards_mastered += progress.flashcards_mastered
                existing.total_time_spent += progress.total_time_spent
                existing.flashcard_time_spent += progress.flashcard_time_spent
                existing.attempts.extend(progress.attempts)
                existing.flashcard_attempts.extend(progress.flashcard_attempts)
                existing.needs_review = existing.needs_review or progress.needs_review
                if progress.last_studied and (
                    existing.last_studied is None or progress.last_studied > existing.last_studied
                ):
                    existing.last_studied = progress.last_studied
                    existing.next_review_date = progress.next_review_date
                    existing.flashcard_schedule = progress.flashcard_schedule

        for progress in merged.values():
            progress.attempts.sort(key=lambda a: a.timestamp)
            progress.flashcard_attempts.sort(key=lambda a: a.timestamp)
            SessionTracker.recalculate(progress)

        return list(merged.values())
