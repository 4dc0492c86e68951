"""Database management module."""

from .database import DatabaseManager, DiscussionData, get_database_path

__all__ = ["DatabaseManager", "DiscussionData", "get_database_path"]
