"""Ports (interfaces) for certprep-core dependency inversion.

These abstract interfaces define where certprep-core keeps state that
outlives a single call, allowing different implementations for different
environments (in-memory for the CLI and tests, shared caches for servers).
"""

from .session_store import SessionStore

__all__ = [
    "SessionStore",
]
