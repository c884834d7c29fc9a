"""Abstract key-value store for per-session state.

The StyleDistributionTracker keeps one StyleDistributionState per session
id in a SessionStore handed to it at construction time.

Implementations:
- InMemorySessionStore: thread-safe dict with lazy expiry (storage.memory_store)
"""

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

V = TypeVar("V")


class SessionStore(ABC, Generic[V]):
    """Abstract store of values keyed by session id.

    Entries older than the store's time-to-live must never be returned;
    implementations may reclaim them lazily on read.
    """

    @abstractmethod
    def get(self, session_id: str) -> Optional[V]:
        """Get the live value of a session.

        Args:
            session_id: Session identifier

        Returns:
            The stored value, or None when absent or expired
        """
        pass

    @abstractmethod
    def put(self, session_id: str, value: V) -> None:
        """Store (or replace) the value of a session and refresh its expiry."""
        pass

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        """Remove a session's value.

        Returns:
            True if a value was removed
        """
        pass

    @abstractmethod
    def sweep(self) -> int:
        """Reclaim every expired entry.

        Returns:
            Number of entries removed
        """
        pass
