"""
Database layer for transcribe-server.

Provides the SQLite transcript store and its Alembic migrations.
"""

from transcribe_server.database.store import (
    TranscriptRecord,
    TranscriptStore,
    run_migrations,
)

__all__ = [
    "TranscriptRecord",
    "TranscriptStore",
    "run_migrations",
]
