"""
Tests for the storage layer: in-memory session store, session
serialization and the SQLite session database.
"""

import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.dto.exam import ExamConstraints, ExamProfile, Objective, SamplingMode
from core.dto.session import (
    FlashcardAttempt,
    FlashcardRating,
    QuestionAttempt,
    StudySessionConfig,
)
from core.session_tracker import SessionTracker
from storage.database import Database
from storage.memory_store import InMemorySessionStore
from storage.serialization import (
    attempt_from_dict,
    attempt_to_dict,
    session_from_dict,
    session_to_dict,
)

START = datetime(2025, 3, 1, 8, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self):
        self.now = START

    def __call__(self):
        return self.now


def make_session(exam_id="test-exam", session_id="s1", mode=SamplingMode.MOCK, started=START):
    profile = ExamProfile(
        id=exam_id,
        name="Test Exam",
        objectives=[
            Objective(id="a", title="Alpha", weight=60),
            Objective(id="b", title="Beta", weight=40),
        ],
        constraints=ExamConstraints(total_questions=40, time_minutes=60),
    )
    tracker = SessionTracker(clock=lambda: started)
    session = tracker.create_session(
        StudySessionConfig(exam_id=exam_id, exam_mode=mode, spaced_repetition=True),
        profile,
        session_id=session_id,
    )
    for i, correct in enumerate((True, False, True)):
        tracker.record_question_attempt(
            session,
            QuestionAttempt(
                question_id=f"q{i}",
                objective_id="a",
                correct=correct,
                time_spent=45.0,
                timestamp=started + timedelta(minutes=i),
            ),
        )
    tracker.record_flashcard_attempt(
        session,
        FlashcardAttempt(
            flashcard_id="f1",
            objective_id="b",
            rating=FlashcardRating.HARD,
            time_spent=12.5,
            timestamp=started + timedelta(minutes=5),
        ),
    )
    tracker.tick(session, 600)
    return session


# ============================================================================
# Test InMemorySessionStore
# ============================================================================


class TestInMemorySessionStore:
    """TTL store with lazy expiry."""

    def test_put_get_delete(self):
        store = InMemorySessionStore(ttl_seconds=60, clock=FakeClock())
        store.put("s1", {"count": 1})

        assert store.get("s1") == {"count": 1}
        assert "s1" in store
        assert len(store) == 1
        assert store.delete("s1") is True
        assert store.delete("s1") is False
        assert store.get("s1") is None

    def test_expired_entry_is_removed_on_read(self):
        clock = FakeClock()
        store = InMemorySessionStore(ttl_seconds=60, clock=clock)
        store.put("s1", "value")

        clock.now += timedelta(seconds=60)
        assert store.get("s1") == "value", "Entry is live up to its TTL"

        clock.now += timedelta(seconds=1)
        assert store.get("s1") is None
        assert len(store) == 0

    def test_put_refreshes_expiry(self):
        clock = FakeClock()
        store = InMemorySessionStore(ttl_seconds=60, clock=clock)
        store.put("s1", 1)
        clock.now += timedelta(seconds=50)
        store.put("s1", 2)
        clock.now += timedelta(seconds=50)
        assert store.get("s1") == 2

    def test_sweep(self):
        clock = FakeClock()
        store = InMemorySessionStore(ttl_seconds=60, clock=clock)
        store.put("old", 1)
        clock.now += timedelta(seconds=45)
        store.put("new", 2)
        clock.now += timedelta(seconds=30)

        assert store.sweep() == 1
        assert "new" in store
        assert "old" not in store
        assert store.sweep() == 0


# ============================================================================
# Test serialization
# ============================================================================


def test_session_round_trip():
    """Test a session with both attempt kinds and FSRS state survives JSON conversion."""
    session = make_session()
    data = session_to_dict(session)

    assert data["schema_version"] == 1
    assert data["objectives"][0]["attempts"][0]["kind"] == "question"
    assert data["objectives"][1]["flashcard_attempts"][0]["kind"] == "flashcard"
    assert data["objectives"][1]["flashcard_schedule"] is not None

    restored = session_from_dict(data)
    assert restored == session
    assert restored.timer.remaining_seconds == session.timer.remaining_seconds
    assert restored.objectives[1].next_review_date == session.objectives[1].next_review_date
    print("✓ test_session_round_trip passed")


def test_attempt_kinds():
    question = QuestionAttempt(
        question_id="q1", objective_id="a", correct=True, time_spent=3.0, timestamp=START
    )
    restored = attempt_from_dict(attempt_to_dict(question))
    assert isinstance(restored, QuestionAttempt)
    assert restored.kind == "question"

    with pytest.raises(ValueError, match="Unknown attempt kind"):
        attempt_from_dict({**attempt_to_dict(question), "kind": "essay"})


def test_unsupported_schema_version():
    data = session_to_dict(make_session())
    data["schema_version"] = 99
    with pytest.raises(ValueError, match="schema version"):
        session_from_dict(data)


# ============================================================================
# Test Database
# ============================================================================


def test_database_save_and_load():
    """Test sessions persist and reload unchanged."""
    session = make_session()
    with Database(":memory:") as db:
        db.save_session(session)
        loaded = db.load_session("s1")

        assert loaded == session
        assert db.load_session("missing") is None
    print("✓ test_database_save_and_load passed")


def test_database_upsert():
    session = make_session()
    with Database(":memory:") as db:
        db.save_session(session)
        session.ended_at = START + timedelta(hours=1)
        db.save_session(session)

        rows = db.list_sessions()
        assert len(rows) == 1
        assert rows[0]["ended_at"] == session.ended_at.isoformat()
        assert db.load_session("s1").ended_at == session.ended_at


def test_database_list_and_filter():
    """Test listing newest first and filtering by exam."""
    with Database(":memory:") as db:
        db.save_session(make_session("exam-x", "s1", started=START))
        db.save_session(make_session("exam-x", "s2", started=START + timedelta(days=1)))
        db.save_session(make_session("exam-y", "s3", started=START + timedelta(days=2)))

        rows = db.list_sessions()
        assert [r["session_id"] for r in rows] == ["s3", "s2", "s1"]
        assert rows[0]["exam_mode"] == "mock"
        assert rows[0]["questions_answered"] == 3

        assert [r["session_id"] for r in db.list_sessions("exam-x", limit=1)] == ["s2"]
        assert [s.session_id for s in db.load_sessions("exam-x")] == ["s1", "s2"]
        assert len(db.load_sessions()) == 3


def test_database_delete():
    with Database(":memory:") as db:
        db.save_session(make_session())
        assert db.delete_session("s1") is True
        assert db.delete_session("s1") is False
        assert db.load_session("s1") is None


def test_database_file(tmp_path):
    """Test a file database persists across connections."""
    path = tmp_path / "nested" / "certprep.db"
    with Database(path) as db:
        db.save_session(make_session())

    with Database(path) as db:
        assert db.load_session("s1").session_id == "s1"
