"""
SQLite connection management for video metadata.

Provides a connection factory and context manager. Mock mode uses an
in-memory database, enabling local development and tests without a
database file on disk.

Using the repository pattern means most code never touches this module
directly - it goes through VideoRepository which handles the translation
between domain models and database rows.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"

SCHEMA = """
CREATE TABLE IF NOT EXISTS videos (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    title TEXT NOT NULL DEFAULT '',
    description TEXT NOT NULL DEFAULT '',
    thumbnail_url TEXT,
    video_url TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_videos_user_id ON videos (user_id);
"""


class DatabaseConnectionError(Exception):
    """Raised when the database cannot be opened."""
    pass


def initialize_schema(conn: sqlite3.Connection) -> None:
    """Create tables if they don't exist yet. Safe to call repeatedly."""
    conn.executescript(SCHEMA)
    conn.commit()


@contextmanager
def get_database_connection(path: str) -> Generator[sqlite3.Connection, None, None]:
    """
    Provide a SQLite connection with automatic cleanup.

    The connection is shared by request handlers running on the event
    loop and by sync code in the threadpool, hence check_same_thread=False.

    Usage:
        with get_database_connection("reelhouse.db") as conn:
            repo = VideoRepository(conn)
    """
    try:
        if path != IN_MEMORY:
            Path(path).parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(path, check_same_thread=False)
        initialize_schema(conn)

    except (sqlite3.Error, OSError) as e:
        logger.error(
            "Database connection failed",
            extra={"path": path, "error": str(e)}
        )
        raise DatabaseConnectionError(f"Database connection failed: {e}")

    logger.debug("Opened database connection", extra={"path": path})

    try:
        yield conn
    finally:
        try:
            conn.close()
            logger.debug("Closed database connection")
        except sqlite3.Error as e:
            logger.warning(
                "Error closing database connection",
                extra={"error": str(e)}
            )


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

@contextmanager
def create_database_connection(
    path: Optional[str] = None,
    mock_mode: bool = False,
) -> Generator[sqlite3.Connection, None, None]:
    """
    Create database connection based on configuration.

    Args:
        path: SQLite file path (required if not mock_mode)
        mock_mode: If True, use an in-memory database

    Yields:
        sqlite3.Connection with the schema in place
    """
    if mock_mode:
        logger.info("Using in-memory database")
        with get_database_connection(IN_MEMORY) as conn:
            yield conn
    else:
        if not path:
            raise ValueError("path is required when not in mock mode")

        with get_database_connection(path) as conn:
            yield conn
