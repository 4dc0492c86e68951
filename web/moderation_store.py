"""In-memory moderator sessions and active debates.

Both registries are owned by a single ModerationStore built once per server
process. They are only mutated from inside event handlers running on the
event loop, so paired mutations (registry entry plus tracked set) must happen
without an ``await`` between them.
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any

from debate_engine.debate import Debate

logger = logging.getLogger(__name__)


@dataclass
class ModeratorSession:
    """A moderator's current connection and the debates it tracks."""

    username: str
    connection: Any
    active_debates: set[int] = field(default_factory=set)


class SessionRegistry:
    """Moderator sessions keyed by username, kept for the process lifetime."""

    def __init__(self):
        self._sessions: dict[str, ModeratorSession] = {}

    def __contains__(self, username: str) -> bool:
        return username in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def initialize(self, username: str, connection: Any) -> ModeratorSession:
        """Create a session or swap in the new connection of a known moderator."""
        session = self._sessions.get(username)
        if session is not None:
            logger.debug(f"Existing user username ({username})")
            session.connection = connection
            return session

        logger.debug(f"New user username ({username})")
        session = ModeratorSession(username=username, connection=connection)
        self._sessions[username] = session
        return session

    def get(self, username: str) -> ModeratorSession | None:
        return self._sessions.get(username)

    def track_debate(self, username: str, debate_id: int) -> None:
        session = self._sessions.get(username)
        if session is None:
            logger.warning(f"Cannot track debate {debate_id}: no session for {username}")
            return
        session.active_debates.add(debate_id)

    def untrack_debate(self, username: str, debate_id: int) -> None:
        session = self._sessions.get(username)
        if session is not None:
            session.active_debates.discard(debate_id)

    def tracked(self, username: str) -> set[int]:
        """Snapshot of the debate ids a moderator tracks."""
        session = self._sessions.get(username)
        return set(session.active_debates) if session else set()


class DebateRegistry:
    """Currently open debates keyed by their identifier.

    Identifiers come from a monotonically increasing counter and are never
    handed out twice, so a closed id stays permanently unknown.
    """

    def __init__(self, first_id: int = 0):
        self._debates: dict[int, Debate] = {}
        self._ids = itertools.count(first_id)

    def __contains__(self, debate_id: int) -> bool:
        return debate_id in self._debates

    def __len__(self) -> int:
        return len(self._debates)

    def allocate_id(self) -> int:
        return next(self._ids)

    def lookup(self, debate_id: int) -> Debate | None:
        """Return the open debate with this id, or None."""
        return self._debates.get(debate_id)

    def register(self, debate: Debate) -> None:
        if debate.debate_id in self._debates:
            raise ValueError(f"Debate id {debate.debate_id} is already registered")
        self._debates[debate.debate_id] = debate

    def unregister(self, debate_id: int) -> Debate | None:
        return self._debates.pop(debate_id, None)


class ModerationStore:
    """Sessions and debates registries, mutated in lockstep."""

    def __init__(self, first_debate_id: int = 0):
        self.sessions = SessionRegistry()
        self.debates = DebateRegistry(first_debate_id)

    def open_debate(self, debate: Debate) -> None:
        """Register a debate and track it under its creator."""
        self.debates.register(debate)
        self.sessions.track_debate(debate.creator, debate.debate_id)

    def close_debate(self, debate_id: int, closed_by: str | None = None) -> Debate | None:
        """Unregister a debate and untrack it from its creator and the closer."""
        debate = self.debates.unregister(debate_id)
        if debate is None:
            return None

        self.sessions.untrack_debate(debate.creator, debate_id)
        if closed_by is not None and closed_by != debate.creator:
            self.sessions.untrack_debate(closed_by, debate_id)
        return debate

    def tracked_debates(self, username: str) -> list[Debate]:
        """Open debates tracked by a moderator, in id order."""
        debates = []
        for debate_id in sorted(self.sessions.tracked(username)):
            debate = self.debates.lookup(debate_id)
            if debate is not None:
                debates.append(debate)
        return debates
