"""
Database management for certprep-core.
Persists study sessions to SQLite as JSON documents keyed by session id.
"""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

from config import Config
from core.dto.session import StudySession
from core.timeutils import to_iso
from storage.serialization import session_from_dict, session_to_dict

logger = logging.getLogger(__name__)


class Database:
    """Manages SQLite storage of study sessions."""

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. Uses Config.DB_PATH if not provided.
                Pass ":memory:" for a throwaway database.
        """
        self.db_path = db_path or Config.DB_PATH
        self.conn: Optional[sqlite3.Connection] = None

    def connect(self):
        """Establish database connection."""
        if str(self.db_path) != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row  # Enable dict-like access

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        if self.conn:
            if exc_type is None:
                self.conn.commit()
            else:
                self.conn.rollback()
            self.close()

    def initialize(self):
        """Create all tables and indexes."""
        if not self.conn:
            self.connect()

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS study_sessions (
                session_id TEXT PRIMARY KEY,
                exam_id TEXT NOT NULL,
                exam_mode TEXT NOT NULL,
                started_at TEXT NOT NULL,
                ended_at TEXT,
                questions_answered INTEGER DEFAULT 0,
                session_score REAL DEFAULT 0,
                payload TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        self.conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_study_sessions_exam ON study_sessions(exam_id, started_at)"
        )
        self.conn.commit()

    # ==================== STUDY SESSIONS ====================

    def save_session(self, session: StudySession) -> str:
        """Insert or replace a session.

        Args:
            session: Session to persist

        Returns:
            Session ID
        """
        payload = json.dumps(session_to_dict(session))
        self.conn.execute(
            """
            INSERT INTO study_sessions
            (session_id, exam_id, exam_mode, started_at, ended_at,
             questions_answered, session_score, payload, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(session_id) DO UPDATE SET
                ended_at = excluded.ended_at,
                questions_answered = excluded.questions_answered,
                session_score = excluded.session_score,
                payload = excluded.payload,
                updated_at = CURRENT_TIMESTAMP
        """,
            (
                session.session_id,
                session.exam_id,
                session.config.exam_mode.value,
                to_iso(session.started_at),
                to_iso(session.ended_at),
                session.total_questions_answered,
                session.session_score,
                payload,
            ),
        )
        logger.debug(f"Saved session {session.session_id}")
        return session.session_id

    def load_session(self, session_id: str) -> Optional[StudySession]:
        """Load a session by ID.

        Returns:
            The session, or None if not found
        """
        cursor = self.conn.execute(
            "SELECT payload FROM study_sessions WHERE session_id = ?", (session_id,)
        )
        row = cursor.fetchone()
        return session_from_dict(json.loads(row["payload"])) if row else None

    def load_sessions(self, exam_id: Optional[str] = None) -> List[StudySession]:
        """Load every session, optionally only those of one exam, oldest first."""
        if exam_id:
            cursor = self.conn.execute(
                "SELECT payload FROM study_sessions WHERE exam_id = ? ORDER BY started_at",
                (exam_id,),
            )
        else:
            cursor = self.conn.execute("SELECT payload FROM study_sessions ORDER BY started_at")
        return [session_from_dict(json.loads(row["payload"])) for row in cursor.fetchall()]

    def list_sessions(self, exam_id: Optional[str] = None, limit: int = 20) -> List[Dict[str, Any]]:
        """Summary rows of recent sessions (without payloads), newest first.

        Args:
            exam_id: Optional exam filter
            limit: Maximum number of sessions to return
        """
        query = """
            SELECT session_id, exam_id, exam_mode, started_at, ended_at,
                   questions_answered, session_score
            FROM study_sessions
        """
        params: List[Any] = []
        if exam_id:
            query += " WHERE exam_id = ?"
            params.append(exam_id)
        query += " ORDER BY started_at DESC LIMIT ?"
        params.append(limit)

        cursor = self.conn.execute(query, params)
        return [dict(row) for row in cursor.fetchall()]

    def delete_session(self, session_id: str) -> bool:
        cursor = self.conn.execute("DELETE FROM study_sessions WHERE session_id = ?", (session_id,))
        return cursor.rowcount > 0
