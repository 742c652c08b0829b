"""Transcriptions table.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
from sqlalchemy import text


# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the transcriptions table if it doesn't exist."""
    conn = op.get_bind()

    conn.execute(
        text("""
        CREATE TABLE IF NOT EXISTS transcriptions (
            id TEXT PRIMARY KEY,
            filename TEXT NOT NULL,
            text TEXT NOT NULL DEFAULT '',
            created_at TEXT NOT NULL
        )
    """)
    )

    conn.execute(
        text(
            "CREATE INDEX IF NOT EXISTS idx_transcriptions_created_at "
            "ON transcriptions(created_at)"
        )
    )


def downgrade() -> None:
    conn = op.get_bind()
    conn.execute(text("DROP INDEX IF EXISTS idx_transcriptions_created_at"))
    conn.execute(text("DROP TABLE IF EXISTS transcriptions"))
