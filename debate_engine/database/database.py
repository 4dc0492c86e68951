"""SQLite database manager for discussion records."""

import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, TypedDict

from .schema import SchemaManager

if TYPE_CHECKING:
    from debate_engine.debate import Debate

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_PATH = "moderation.db"


class DiscussionData(TypedDict):
    """Stored summary of a discussion."""

    id: int
    title: str
    description: str
    admin_username: str
    start_time: str
    finish_time: str | None


def get_database_path() -> Path:
    """Database location, overridable with MODERATION_DB_PATH."""
    return Path(os.environ.get("MODERATION_DB_PATH", DEFAULT_DATABASE_PATH))


class DatabaseManager:
    """Manages SQLite connections and schema for discussion records."""

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = Path(db_path) if db_path is not None else get_database_path()
        self.schema_manager = SchemaManager()
        self._init_database()

    def _init_database(self):
        """Initialize the database with required tables using schema manager."""
        if not self.schema_manager.validate_schema_files():
            raise RuntimeError("Database schema validation failed - missing schema files")

        with self._get_connection() as conn:
            cursor = conn.cursor()
            self.schema_manager.initialize_database_schema(cursor)
            conn.commit()
            logger.info(f"Database initialized at {self.db_path}")

    @contextmanager
    def _get_connection(self):
        """Get a database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row  # Enable column access by name
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            if conn:
                conn.close()

    def save_discussion(self, debate: "Debate") -> bool:
        """Persist a newly created debate. Returns False if the id is already stored."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    """
                    INSERT INTO discussions (
                        id, title, description, admin_username, admin_id, start_time
                    ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                    (
                        debate.debate_id,
                        debate.title,
                        debate.description,
                        debate.creator,
                        debate.creator_id,
                        debate.start_time.isoformat(),
                    ),
                )
            except sqlite3.IntegrityError as e:
                logger.warning(f"Discussion {debate.debate_id} not saved: {e}")
                return False

            conn.commit()
            return cursor.rowcount > 0

    def save_end_discussion(self, discussion_id: int, finish_time: datetime | None = None) -> bool:
        """Mark a discussion as finished.

        Returns:
            True if an open discussion was updated, False otherwise
        """
        if finish_time is None:
            finish_time = datetime.now()

        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE discussions
                SET finish_time = ?
                WHERE id = ? AND finish_time IS NULL
            """,
                (finish_time.isoformat(), discussion_id),
            )
            updated = cursor.rowcount > 0
            conn.commit()

            if updated:
                logger.info(f"Discussion {discussion_id} marked as finished")

            return updated

    def get_discussions_admin(self, username: str) -> list[DiscussionData]:
        """All discussions created by an administrator, newest first."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, title, description, admin_username, start_time, finish_time
                FROM discussions
                WHERE admin_username = ?
                ORDER BY id DESC
            """,
                (username,),
            )

            return [
                {
                    "id": row["id"],
                    "title": row["title"],
                    "description": row["description"],
                    "admin_username": row["admin_username"],
                    "start_time": row["start_time"],
                    "finish_time": row["finish_time"],
                }
                for row in cursor.fetchall()
            ]

    def get_max_discussion_id(self) -> int:
        """Highest stored discussion id, or -1 when there is none."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT MAX(id) AS max_id FROM discussions")
            row = cursor.fetchone()
            if row is None or row["max_id"] is None:
                return -1
            return row["max_id"]
