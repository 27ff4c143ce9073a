"""
SQLite repository for video records.

This module implements the repository pattern for video metadata.
The repository:
1. Translates between the Video domain model and database rows
2. Encapsulates all SQL queries
3. Provides a clean interface for the application layer

Writes touch one row at a time; there is no cross-record transaction.
"""

import logging
from datetime import datetime
from typing import Optional, Protocol

from src.core.videos.models import Video

logger = logging.getLogger(__name__)

_COLUMNS = """
    id, user_id, title, description, thumbnail_url, video_url,
    created_at, updated_at
"""


class DatabaseConnection(Protocol):
    """
    Protocol for DB-API connections.

    sqlite3 satisfies it; tests can pass anything with the same shape.
    """

    def cursor(self): ...
    def commit(self) -> None: ...


class VideoRepository:
    """
    Repository for video record persistence.

    Each method corresponds to a use case the application needs:
    - get_video: Load a record by id (None if absent)
    - update_video: Overwrite a record's mutable fields
    - set_video_url / set_thumbnail_url: Attach one asset, leaving the rest alone
    - create_video: Insert a new draft record
    - list_videos: A user's records, newest first
    """

    def __init__(self, connection: DatabaseConnection) -> None:
        self._conn = connection

    def create_video(self, video: Video) -> Video:
        cursor = self._conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO videos ({_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, self._to_row(video))

            self._conn.commit()

            logger.info(
                "Created video record",
                extra={"video_id": video.id, "user_id": video.user_id}
            )

            return video

        except Exception as e:
            logger.error(
                "Failed to create video",
                extra={"video_id": video.id, "error": str(e)}
            )
            raise
        finally:
            cursor.close()

    def get_video(self, video_id: str) -> Optional[Video]:
        cursor = self._conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {_COLUMNS}
                FROM videos
                WHERE id = ?
            """, (video_id,))

            row = cursor.fetchone()
            return self._from_row(row) if row else None

        finally:
            cursor.close()

    def update_video(self, video: Video) -> None:
        """
        Persist a record's mutable fields.

        Last writer wins: concurrent updates to the same id are not
        serialized here.
        """
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                UPDATE videos SET
                    title = ?,
                    description = ?,
                    thumbnail_url = ?,
                    video_url = ?,
                    updated_at = ?
                WHERE id = ?
            """, (
                video.title,
                video.description,
                video.thumbnail_url,
                video.video_url,
                video.updated_at.isoformat(),
                video.id,
            ))

            self._conn.commit()

            logger.debug(
                "Updated video record",
                extra={"video_id": video.id, "rows": cursor.rowcount}
            )

        except Exception as e:
            logger.error(
                "Failed to update video",
                extra={"video_id": video.id, "error": str(e)}
            )
            raise
        finally:
            cursor.close()

    def set_video_url(self, video_id: str, video_url: str, updated_at: datetime) -> None:
        """Point a record at a newly stored video without touching other columns."""
        self._set_column("video_url", video_id, video_url, updated_at)

    def set_thumbnail_url(self, video_id: str, thumbnail_url: str, updated_at: datetime) -> None:
        self._set_column("thumbnail_url", video_id, thumbnail_url, updated_at)

    def list_videos(self, user_id: str, limit: int = 100) -> list[Video]:
        cursor = self._conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {_COLUMNS}
                FROM videos
                WHERE user_id = ?
                ORDER BY created_at DESC
                LIMIT ?
            """, (user_id, limit))

            return [self._from_row(row) for row in cursor.fetchall()]

        finally:
            cursor.close()

    # -----------------------------------------------------------------------
    # Private Methods
    # -----------------------------------------------------------------------

    def _set_column(self, column: str, video_id: str, value: str, updated_at: datetime) -> None:
        # column is one of the two asset columns, never caller input
        cursor = self._conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE videos SET
                    {column} = ?,
                    updated_at = ?
                WHERE id = ?
            """, (value, updated_at.isoformat(), video_id))

            self._conn.commit()

            logger.debug(
                "Updated video asset",
                extra={"video_id": video_id, "column": column, "rows": cursor.rowcount}
            )

        except Exception as e:
            logger.error(
                "Failed to update video",
                extra={"video_id": video_id, "column": column, "error": str(e)}
            )
            raise
        finally:
            cursor.close()

    def _to_row(self, video: Video) -> tuple:
        return (
            video.id,
            video.user_id,
            video.title,
            video.description,
            video.thumbnail_url,
            video.video_url,
            video.created_at.isoformat(),
            video.updated_at.isoformat(),
        )

    def _from_row(self, row) -> Video:
        return Video(
            id=row[0],
            user_id=row[1],
            title=row[2] or "",
            description=row[3] or "",
            thumbnail_url=row[4],
            video_url=row[5],
            created_at=datetime.fromisoformat(row[6]),
            updated_at=datetime.fromisoformat(row[7]),
        )
