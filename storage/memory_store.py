"""
In-memory session store with lazy expiry.

Entries live for a fixed time-to-live after their last write. Reads of
an expired entry delete it and return None; sweep() reclaims all expired
entries at once. All operations are guarded by a re-entrant lock so the
store can be shared between request threads.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Tuple, TypeVar

from config import Config
from core.ports.session_store import SessionStore
from core.timeutils import utc_now

logger = logging.getLogger(__name__)

V = TypeVar("V")


class InMemorySessionStore(SessionStore[V]):
    """Thread-safe dict of session values that expire after a TTL."""

    def __init__(
        self,
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the store.

        Args:
            ttl_seconds: Lifetime after the last write (default: Config.SESSION_TTL_SECONDS)
            clock: Returns the current UTC time; injectable for tests
        """
        self.ttl = timedelta(seconds=ttl_seconds if ttl_seconds is not None else Config.SESSION_TTL_SECONDS)
        self.clock = clock
        self._entries: Dict[str, Tuple[V, datetime]] = {}
        self._lock = threading.RLock()

    def _is_expired(self, written_at: datetime, now: datetime) -> bool:
        return now - written_at > self.ttl

    def get(self, session_id: str) -> Optional[V]:
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                return None
            value, written_at = entry
            if self._is_expired(written_at, self.clock()):
                del self._entries[session_id]
                logger.debug(f"Session {session_id} expired on read")
                return None
            return value

    def put(self, session_id: str, value: V) -> None:
        with self._lock:
            self._entries[session_id] = (value, self.clock())

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._entries.pop(session_id, None) is not None

    def sweep(self) -> int:
        with self._lock:
            now = self.clock()
            expired = [
                session_id
                for session_id, (_, written_at) in self._entries.items()
                if self._is_expired(written_at, now)
            ]
            for session_id in expired:
                del self._entries[session_id]

        if expired:
            logger.info(f"Swept {len(expired)} expired sessions")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, session_id: str) -> bool:
        return self.get(session_id) is not None
