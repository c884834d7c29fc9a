"""
StudySession <-> JSON-compatible dict conversion.

Timestamps are ISO-8601 strings in UTC, enums are stored by value and
attempts carry a "kind" discriminator ("question" or "flashcard").
"""

from typing import Any, Dict, Optional

from core.dto.exam import DifficultyTag, SamplingMode, StudyMode
from core.dto.session import (
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
)
from core.timeutils import from_iso, to_iso

SCHEMA_VERSION = 1


def _difficulty(value: Optional[str]) -> Optional[DifficultyTag]:
    return DifficultyTag(value) if value else None


# ==================== ATTEMPTS ====================


def attempt_to_dict(attempt: Attempt) -> Dict[str, Any]:
    data = {
        "kind": attempt.kind,
        "objective_id": attempt.objective_id,
        "time_spent": attempt.time_spent,
        "attempt": attempt.attempt,
        "timestamp": to_iso(attempt.timestamp),
        "difficulty": attempt.difficulty.value if attempt.difficulty else None,
    }
    if isinstance(attempt, FlashcardAttempt):
        data["flashcard_id"] = attempt.flashcard_id
        data["rating"] = attempt.rating.value
    else:
        data["question_id"] = attempt.question_id
        data["correct"] = attempt.correct
    return data


def attempt_from_dict(data: Dict[str, Any]) -> Attempt:
    """Rebuild an attempt from its tagged dict.

    Raises:
        ValueError: If the kind is unknown
    """
    kind = data.get("kind")
    common = dict(
        objective_id=data["objective_id"],
        time_spent=float(data["time_spent"]),
        attempt=int(data.get("attempt", 0)),
        timestamp=from_iso(data["timestamp"]),
        difficulty=_difficulty(data.get("difficulty")),
    )
    if kind == "question":
        return QuestionAttempt(question_id=data["question_id"], correct=bool(data["correct"]), **common)
    if kind == "flashcard":
        return FlashcardAttempt(
            flashcard_id=data["flashcard_id"], rating=FlashcardRating(data["rating"]), **common
        )
    raise ValueError(f"Unknown attempt kind: {kind!r}")


# ==================== PROGRESS ====================


def _schedule_to_dict(schedule: Optional[FlashcardSchedule]) -> Optional[Dict[str, Any]]:
    if schedule is None:
        return None
    return {
        "stability": schedule.stability,
        "difficulty": schedule.difficulty,
        "state": schedule.state,
        "step": schedule.step,
        "reps": schedule.reps,
        "due": to_iso(schedule.due),
        "last_review": to_iso(schedule.last_review),
    }


def _schedule_from_dict(data: Optional[Dict[str, Any]]) -> Optional[FlashcardSchedule]:
    if not data:
        return None
    return FlashcardSchedule(
        stability=data["stability"],
        difficulty=data["difficulty"],
        state=data["state"],
        step=data.get("step"),
        reps=data.get("reps", 0),
        due=from_iso(data["due"]),
        last_review=from_iso(data["last_review"]),
    )


def progress_to_dict(progress: ObjectiveProgress) -> Dict[str, Any]:
    return {
        "objective_id": progress.objective_id,
        "questions_per_session": progress.questions_per_session,
        "questions_attempted": progress.questions_attempted,
        "questions_correct": progress.questions_correct,
        "flashcards_studied": progress.flashcards_studied,
        "flashcards_mastered": progress.flashcards_mastered,
        "total_time_spent": progress.total_time_spent,
        "flashcard_time_spent": progress.flashcard_time_spent,
        "average_score": progress.average_score,
        "flashcard_mastery_score": progress.flashcard_mastery_score,
        "mastery_level": progress.mastery_level.value,
        "attempts": [attempt_to_dict(a) for a in progress.attempts],
        "flashcard_attempts": [attempt_to_dict(a) for a in progress.flashcard_attempts],
        "last_studied": to_iso(progress.last_studied),
        "needs_review": progress.needs_review,
        "next_review_date": to_iso(progress.next_review_date),
        "flashcard_schedule": _schedule_to_dict(progress.flashcard_schedule),
    }


def progress_from_dict(data: Dict[str, Any]) -> ObjectiveProgress:
    return ObjectiveProgress(
        objective_id=data["objective_id"],
        questions_per_session=data.get("questions_per_session", 10),
        questions_attempted=data.get("questions_attempted", 0),
        questions_correct=data.get("questions_correct", 0),
        flashcards_studied=data.get("flashcards_studied", 0),
        flashcards_mastered=data.get("flashcards_mastered", 0),
        total_time_spent=data.get("total_time_spent", 0.0),
        flashcard_time_spent=data.get("flashcard_time_spent", 0.0),
        average_score=data.get("average_score", 0.0),
        flashcard_mastery_score=data.get("flashcard_mastery_score", 0.0),
        mastery_level=MasteryLevel(data.get("mastery_level", MasteryLevel.NOVICE.value)),
        attempts=[attempt_from_dict(a) for a in data.get("attempts", [])],
        flashcard_attempts=[attempt_from_dict(a) for a in data.get("flashcard_attempts", [])],
        last_studied=from_iso(data.get("last_studied")),
        needs_review=data.get("needs_review", False),
        next_review_date=from_iso(data.get("next_review_date")),
        flashcard_schedule=_schedule_from_dict(data.get("flashcard_schedule")),
    )


# ==================== SESSION ====================


def session_to_dict(session: StudySession) -> Dict[str, Any]:
    """Flatten a session into JSON-compatible primitives."""
    config = session.config
    conditions = session.exam_conditions
    timer = session.timer
    return {
        "schema_version": SCHEMA_VERSION,
        "session_id": session.session_id,
        "exam_id": session.exam_id,
        "config": {
            "exam_id": config.exam_id,
            "exam_mode": config.exam_mode.value,
            "study_mode": config.study_mode.value,
            "questions_per_objective": config.questions_per_objective,
            "target_questions": config.target_questions,
            "focus_objective_ids": config.focus_objective_ids,
            "adaptive_difficulty": config.adaptive_difficulty,
            "spaced_repetition": config.spaced_repetition,
        },
        "objectives": [progress_to_dict(p) for p in session.objectives],
        "current_objective_index": session.current_objective_index,
        "questions_per_objective": session.questions_per_objective,
        "mastery_threshold": session.mastery_threshold,
        "started_at": to_iso(session.started_at),
        "ended_at": to_iso(session.ended_at),
        "total_questions_answered": session.total_questions_answered,
        "total_correct_answers": session.total_correct_answers,
        "total_flashcards_studied": session.total_flashcards_studied,
        "session_score": session.session_score,
        "exam_conditions": {
            "mode": conditions.mode.value,
            "total_questions": conditions.total_questions,
            "time_limit_seconds": conditions.time_limit_seconds,
            "break_after_question": conditions.break_after_question,
            "break_duration_seconds": conditions.break_duration_seconds,
        },
        "timer": {
            "remaining_seconds": timer.remaining_seconds,
            "is_paused": timer.is_paused,
            "break_active": timer.break_active,
            "break_remaining_seconds": timer.break_remaining_seconds,
            "break_taken": timer.break_taken,
        },
    }


def session_from_dict(data: Dict[str, Any]) -> StudySession:
    """Rebuild a session from session_to_dict output.

    Raises:
        ValueError: If the payload has an unsupported schema version or bad values
    """
    version = data.get("schema_version", SCHEMA_VERSION)
    if version != SCHEMA_VERSION:
        raise ValueError(f"Unsupported session schema version: {version}")

    config_data = data["config"]
    config = StudySessionConfig(
        exam_id=config_data["exam_id"],
        exam_mode=SamplingMode(config_data["exam_mode"]),
        study_mode=StudyMode(config_data["study_mode"]),
        questions_per_objective=config_data.get("questions_per_objective"),
        target_questions=config_data.get("target_questions"),
        focus_objective_ids=config_data.get("focus_objective_ids"),
        adaptive_difficulty=config_data.get("adaptive_difficulty", False),
        spaced_repetition=config_data.get("spaced_repetition", False),
    )

    conditions_data = data["exam_conditions"]
    timer_data = data.get("timer", {})

    return StudySession(
        session_id=data["session_id"],
        exam_id=data["exam_id"],
        config=config,
        objectives=[progress_from_dict(p) for p in data["objectives"]],
        current_objective_index=data.get("current_objective_index", 0),
        questions_per_objective=data.get("questions_per_objective", 10),
        mastery_threshold=data.get("mastery_threshold", 80),
        started_at=from_iso(data["started_at"]),
        ended_at=from_iso(data.get("ended_at")),
        total_questions_answered=data.get("total_questions_answered", 0),
        total_correct_answers=data.get("total_correct_answers", 0),
        total_flashcards_studied=data.get("total_flashcards_studied", 0),
        session_score=data.get("session_score", 0.0),
        exam_conditions=ExamConditions(
            mode=SamplingMode(conditions_data["mode"]),
            total_questions=conditions_data.get("total_questions"),
            time_limit_seconds=conditions_data.get("time_limit_seconds"),
            break_after_question=conditions_data.get("break_after_question"),
            break_duration_seconds=conditions_data.get("break_duration_seconds", 900),
        ),
        timer=TimerState(
            remaining_seconds=timer_data.get("remaining_seconds"),
            is_paused=timer_data.get("is_paused", False),
            break_active=timer_data.get("break_active", False),
            break_remaining_seconds=timer_data.get("break_remaining_seconds", 0.0),
            break_taken=timer_data.get("break_taken", False),
        ),
    )
