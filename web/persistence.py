"""Asynchronous, time-bounded access to discussion and administrator storage."""

import asyncio
import logging
import sqlite3
from collections.abc import Callable
from typing import TYPE_CHECKING, TypeVar

from debate_engine.database import DatabaseManager, DiscussionData
from web.auth_database import AuthDatabaseManager

if TYPE_CHECKING:
    from debate_engine.debate import Debate

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PersistenceError(Exception):
    """A storage call failed or did not complete in time."""


class PersistenceGateway:
    """Runs blocking sqlite operations off the event loop.

    Every call is bounded by ``timeout`` seconds and surfaces failures as
    PersistenceError so callers can decide whether they are fatal.
    """

    def __init__(
        self,
        discussions: DatabaseManager,
        admins: AuthDatabaseManager,
        timeout: float = 5.0,
    ):
        self.discussions = discussions
        self.admins = admins
        self.timeout = timeout

    async def _run(self, operation: Callable[..., T], *args) -> T:
        name = getattr(operation, "__name__", repr(operation))
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(operation, *args), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise PersistenceError(f"{name} timed out after {self.timeout}s") from e
        except sqlite3.Error as e:
            raise PersistenceError(f"{name} failed: {e}") from e

    async def save_discussion(self, debate: "Debate") -> bool:
        return await self._run(self.discussions.save_discussion, debate)

    async def save_end_discussion(self, discussion_id: int) -> bool:
        return await self._run(self.discussions.save_end_discussion, discussion_id)

    async def get_discussions_admin(self, username: str) -> list[DiscussionData]:
        return await self._run(self.discussions.get_discussions_admin, username)

    async def get_admin_password(self, username: str) -> str | None:
        return await self._run(self.admins.get_admin_password, username)

    async def get_admin_id(self, username: str) -> int | None:
        return await self._run(self.admins.get_admin_id, username)

    def first_free_debate_id(self) -> int:
        """First debate id that no stored discussion uses."""
        return self.discussions.get_max_discussion_id() + 1
