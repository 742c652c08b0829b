"""
SQLite-backed transcript store.

A single ``transcriptions`` table holds one row per completed
transcription request. The store is an explicit handle: the application
lifespan creates it, calls ``open()`` (migrations + pragmas) and
``close()`` on shutdown. Every query opens a short-lived connection.
"""

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional

from transcribe_server.core.errors import StoreError

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

REQUIRED_COLUMNS = {"id", "filename", "text", "created_at"}


@dataclass(frozen=True)
class TranscriptRecord:
    """One stored transcription result."""

    id: str
    filename: str
    text: str
    created_at: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "TranscriptRecord":
        return cls(
            id=row["id"],
            filename=row["filename"],
            text=row["text"] or "",
            created_at=row["created_at"],
        )

    def to_dict(self) -> Dict[str, Any]:
        # _id mirrors id for browser clients written against document ids
        return {
            "id": self.id,
            "_id": self.id,
            "filename": self.filename,
            "text": self.text,
            "createdAt": self.created_at,
        }


def _format_timestamp(value: Optional[datetime] = None) -> str:
    """ISO 8601 UTC with fixed microsecond precision so strings sort by time."""
    moment = value or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def run_migrations(db_path: Path) -> bool:
    """
    Run pending Alembic migrations against ``db_path``.

    Returns:
        True if migrations ran successfully, False otherwise
    """
    try:
        from alembic import command
        from alembic.config import Config

        logger.info(f"Running database migrations for {db_path}")

        alembic_cfg = Config()
        alembic_cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
        alembic_cfg.set_main_option("sqlalchemy.url", f"sqlite:///{db_path}")

        command.upgrade(alembic_cfg, "head")

        logger.info("Database migrations completed successfully")
        return True

    except Exception as e:
        logger.error(f"Migration error: {e}", exc_info=True)
        return False


def _assert_schema_sanity(conn: sqlite3.Connection) -> None:
    """Raise RuntimeError if the migrated schema lacks required columns."""
    cursor = conn.cursor()
    cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
    tables = {row[0] for row in cursor.fetchall()}
    if "transcriptions" not in tables:
        raise RuntimeError(
            "Database schema validation failed; missing tables: transcriptions"
        )

    cursor.execute("PRAGMA table_info(transcriptions)")
    existing_columns = {row[1] for row in cursor.fetchall()}
    missing_columns = sorted(REQUIRED_COLUMNS - existing_columns)
    if missing_columns:
        raise RuntimeError(
            "Database schema validation failed; table 'transcriptions' is missing "
            f"columns: {', '.join(missing_columns)}"
        )


class TranscriptStore:
    """Durable collection of transcript records."""

    def __init__(self, db_path: Path):
        self._db_path = Path(db_path)
        self._opened = False

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def is_open(self) -> bool:
        return self._opened

    def open(self) -> None:
        """
        Prepare the database for use.

        1. Ensures the database directory exists
        2. Runs pending Alembic migrations
        3. Validates the schema
        4. Enables WAL journaling
        """
        if self._opened:
            return

        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Opening transcript store at {self._db_path}")

        if not run_migrations(self._db_path):
            raise RuntimeError(
                "Database migration failed; refusing to start with potentially invalid schema"
            )

        conn = self._connect()
        try:
            _assert_schema_sanity(conn)
            journal_mode = conn.execute("PRAGMA journal_mode=WAL").fetchone()[0]
            conn.execute("PRAGMA synchronous=NORMAL")
        finally:
            conn.close()

        self._opened = True
        logger.info(f"Transcript store ready (journal_mode={journal_mode})")

    def close(self) -> None:
        if self._opened:
            logger.info("Transcript store closed")
        self._opened = False

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self._db_path,
            timeout=30.0,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA busy_timeout=5000")
        return conn

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Yield a connection; sqlite errors surface as StoreError."""
        if not self._opened:
            raise StoreError("Transcript store is not open")
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot connect to transcript store: {e}") from e
        try:
            yield conn
        except sqlite3.Error as e:
            raise StoreError(f"Transcript store query failed: {e}") from e
        finally:
            conn.close()

    def insert(
        self,
        filename: str,
        text: str,
        created_at: Optional[datetime] = None,
    ) -> TranscriptRecord:
        """Create a record and return it with its assigned id."""
        record = TranscriptRecord(
            id=uuid.uuid4().hex,
            filename=filename,
            text=text,
            created_at=_format_timestamp(created_at),
        )
        with self.connection() as conn:
            conn.execute(
                """
                INSERT INTO transcriptions (id, filename, text, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (record.id, record.filename, record.text, record.created_at),
            )
            conn.commit()
        return record

    def list_all(self) -> List[TranscriptRecord]:
        """All records, newest first; ties fall back to insertion order."""
        with self.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM transcriptions ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
        return [TranscriptRecord.from_row(row) for row in rows]

    def delete(self, record_id: str) -> bool:
        """Delete by id. Returns False when nothing matched."""
        with self.connection() as conn:
            cursor = conn.execute(
                "DELETE FROM transcriptions WHERE id = ?", (record_id,)
            )
            conn.commit()
            return cursor.rowcount > 0
