"""Database operations for administrator accounts."""

import sqlite3
import logging
from typing import TypedDict
from contextlib import contextmanager
from pathlib import Path
from debate_engine.database.database import get_database_path

logger = logging.getLogger(__name__)


class AdminData(TypedDict):
    """Type definition for administrator data."""
    id: int
    username: str
    password_hash: str
    created_at: str


class AuthDatabaseManager:
    """Database manager specifically for administrator credentials."""

    def __init__(self, db_path: str | Path | None = None):
        """Initialize with database path."""
        if db_path is None:
            self.db_path = get_database_path()
        else:
            self.db_path = Path(db_path)

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

    def create_admin(self, username: str, password_hash: str) -> int:
        """
        Create a new administrator account.

        Args:
            username: Administrator username
            password_hash: Bcrypt hashed password

        Returns:
            Administrator ID

        Raises:
            sqlite3.IntegrityError: If username already exists
        """
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute(
                """
                INSERT INTO admins (username, password_hash, created_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
            """,
                (username, password_hash),
            )

            admin_id = cursor.lastrowid
            if admin_id is None:
                raise RuntimeError("Failed to get admin ID from database")

            conn.commit()
            logger.info(f"Created administrator account: {username}")
            return admin_id

    def get_admin(self, username: str) -> AdminData | None:
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute(
                "SELECT * FROM admins WHERE username = ?",
                (username,)
            )
            row = cursor.fetchone()

            if not row:
                return None

            return {
                "id": row["id"],
                "username": row["username"],
                "password_hash": row["password_hash"],
                "created_at": row["created_at"],
            }

    def get_admin_password(self, username: str) -> str | None:
        """Stored bcrypt hash for an administrator, or None if unknown."""
        admin = self.get_admin(username)
        return admin["password_hash"] if admin else None

    def get_admin_id(self, username: str) -> int | None:
        """Durable numeric id of an administrator, or None if unknown."""
        admin = self.get_admin(username)
        return admin["id"] if admin else None

    def username_exists(self, username: str) -> bool:
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute(
                "SELECT 1 FROM admins WHERE username = ?",
                (username,)
            )
            return cursor.fetchone() is not None
