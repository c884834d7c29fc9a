"""Storage layer: in-memory session store, session serialization and SQLite persistence."""
