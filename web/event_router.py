"""Command handlers of the privileged (moderator) channel.

Every handler receives the moderator context, the raw payload and a reply
callback. Handlers validate first and touch no state on invalid input. A
request with a callable reply gets exactly one reply: the result, or the
command's sentinel (``-1`` for id or list results, ``False`` for boolean
results). A reply callback that is not callable aborts the handler silently.

Handlers may suspend on persistence or broadcast calls. Registry mutations
that belong together are done before any ``await``, and anything read before
a suspension is looked up again afterwards.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from config.settings import DebateLimits
from debate_engine.debate import Debate
from debate_engine.types import DebateSummary
from web.audience_hub import AudienceHub
from web.auth_utils import ModeratorIdentity
from web.commands import (
    BanUserCommand,
    NewDebateCommand,
    NewQuestionCommand,
    SuggestionDecisionCommand,
    debate_id_adapter,
)
from web.moderation_store import ModerationStore
from web.persistence import PersistenceError, PersistenceGateway

logger = logging.getLogger(__name__)

type Reply = Callable[[Any], Awaitable[None]]
type Handler = Callable[["ModeratorContext", Any, Reply], Awaitable[None]]

ID_FAILURE = -1
BOOL_FAILURE = False

FAILURE_REPLIES: dict[str, Any] = {
    "getDebates": [],
    "getDebateQuestions": ID_FAILURE,
    "getDebateSuggestions": ID_FAILURE,
    "newDebate": ID_FAILURE,
    "closeDebate": BOOL_FAILURE,
    "newQuestion": ID_FAILURE,
    "banUser": BOOL_FAILURE,
    "approveQuestion": BOOL_FAILURE,
    "rejectQuestion": BOOL_FAILURE,
}


@dataclass(frozen=True)
class ModeratorContext:
    """Per-connection context handed to every command."""

    identity: ModeratorIdentity
    connection: Any
    connection_id: str

    @property
    def username(self) -> str:
        return self.identity.username

    @property
    def user_id(self) -> int:
        return self.identity.user_id


class PrivilegedEventRouter:
    """Dispatches moderator events to their command handlers."""

    def __init__(
        self,
        store: ModerationStore,
        persistence: PersistenceGateway,
        hub: AudienceHub,
        limits: DebateLimits,
    ):
        self.store = store
        self.persistence = persistence
        self.hub = hub
        self.limits = limits

        self.handlers: dict[str, Handler] = {
            "getDebates": self.get_debates,
            "getDebateQuestions": self.get_debate_questions,
            "getDebateSuggestions": self.get_debate_suggestions,
            "newDebate": self.new_debate,
            "closeDebate": self.close_debate,
            "newQuestion": self.new_question,
            "banUser": self.ban_user,
            "approveQuestion": self.approve_question,
            "rejectQuestion": self.reject_question,
        }

    def attach(self, identity: ModeratorIdentity, connection: Any, connection_id: str) -> ModeratorContext:
        """Initialize the moderator session for an authenticated connection."""
        logger.debug(f"New connected socket (socketid: {connection_id}, username: {identity.username})")
        self.store.sessions.initialize(identity.username, connection)
        return ModeratorContext(identity=identity, connection=connection, connection_id=connection_id)

    async def dispatch(self, ctx: ModeratorContext, event: str, payload: Any, reply: Reply | None) -> bool:
        """Run the handler for an event. Returns False for unknown events."""
        handler = self.handlers.get(event)
        if handler is None:
            logger.debug(f"Unknown event ({event}) from {ctx.username}")
            return False

        replied = False

        async def reply_once(value: Any) -> None:
            nonlocal replied
            if replied:
                return
            replied = True
            await reply(value)

        try:
            await handler(ctx, payload, reply_once if callable(reply) else reply)
        except Exception:
            logger.exception(f"Handler for {event} failed (username: {ctx.username})")
            if callable(reply) and not replied:
                await reply_once(FAILURE_REPLIES[event])
        return True

    def _validate[M: BaseModel](self, model: type[M], payload: Any, command: str) -> M | None:
        try:
            return model.model_validate(payload, context={"limits": self.limits})
        except ValidationError as e:
            logger.debug(f"Invalid arguments for {command} ({e.error_count()} errors)")
            return None

    def _validate_debate_id(self, payload: Any, command: str) -> int | None:
        try:
            return debate_id_adapter.validate_python(payload)
        except ValidationError:
            logger.debug(f"Invalid arguments for {command}.")
            return None

    def _get_active_debate(self, debate_id: int) -> Debate | None:
        debate = self.store.debates.lookup(debate_id)
        if debate is None:
            logger.debug(f"Debate with id ({debate_id}) not found.")
        return debate

    async def get_debates(self, ctx: ModeratorContext, payload: Any, reply: Reply) -> None:
        """Reply with the moderator's open debates followed by its stored discussions."""
        logger.debug(f"Get debate requested from {ctx.username}")

        if not callable(reply):
            logger.debug("callback is not a function.")
            return

        logger.debug("Getting discussions from database")
        try:
            discussions = await self.persistence.get_discussions_admin(ctx.username)
        except PersistenceError as e:
            logger.error(f"getDiscussionsAdmin failed for {ctx.username}: {e}")
            discussions = []

        # Read after the database call so debates closed meanwhile are not listed as open
        debates: list[DebateSummary] = []
        open_ids: set[int] = set()
        for debate in self.store.tracked_debates(ctx.username):
            open_ids.add(debate.debate_id)
            debates.append({
                "debateId": debate.debate_id,
                "title": debate.title,
                "description": debate.description,
                "closed": False,
            })

        for discussion in discussions:
            if discussion["id"] in open_ids:
                continue
            debates.append({
                "debateId": discussion["id"],
                "title": discussion["title"],
                "description": discussion["description"],
                "closed": discussion["finish_time"] is not None,
            })

        await reply(debates)

    async def get_debate_questions(self, ctx: ModeratorContext, payload: Any, reply: Reply) -> None:
        logger.info(f"getDebateQuestions requested from {ctx.username}")

        if not callable(reply):
            logger.debug("callback is not a function.")
            return

        debate_id = self._validate_debate_id(payload, "getDebateQuestions")
        if debate_id is None:
            await reply(ID_FAILURE)
            return

        debate = self._get_active_debate(debate_id)
        if debate is None:
            await reply(ID_FAILURE)
            return

        await reply(debate.get_formatted_questions())

    async def get_debate_suggestions(self, ctx: ModeratorContext, payload: Any, reply: Reply) -> None:
        logger.info(f"getDebateSuggestions requested from {ctx.username}")

        if not callable(reply):
            logger.debug("callback is not a function.")
            return

        debate_id = self._validate_debate_id(payload, "getDebateSuggestions")
        if debate_id is None:
            await reply(ID_FAILURE)
            return

        debate = self._get_active_debate(debate_id)
        if debate is None:
            await reply(ID_FAILURE)
            return

        await reply(debate.question_suggestion.get_approved_suggestions())

    async def new_debate(self, ctx: ModeratorContext, payload: Any, reply: Reply) -> None:
        """Create, register and persist a debate; reply with its id."""
        logger.info(f"New debate creation requested from {ctx.username}")

        if not callable(reply):
            logger.debug("callback is not a function.")
            return

        command = self._validate(NewDebateCommand, payload, "newDebate")
        if command is None:
            await reply(ID_FAILURE)
            return

        debate = Debate(
            debate_id=self.store.debates.allocate_id(),
            title=command.title,
            description=command.description,
            creator=ctx.username,
            creator_id=ctx.user_id,
            broadcast=self.hub.broadcast,
            max_suggestion_length=self.limits.max_suggestion_length,
        )
        self.store.open_debate(debate)

        # The debate stays live even if it cannot be stored
        try:
            saved = await self.persistence.save_discussion(debate)
            if saved:
                logger.info("Debate saved to db")
            else:
                logger.warning("Cannot save debate to db")
        except PersistenceError as e:
            logger.error(f"saveDiscussion threw : {e}.")

        if self.store.debates.lookup(debate.debate_id) is debate:
            debate.open()
        else:
            # The close marker found no row while the save was pending
            logger.debug(f"Debate {debate.debate_id} closed before it was opened")
            try:
                await self.persistence.save_end_discussion(debate.debate_id)
            except PersistenceError as e:
                logger.error(f"saveEndDiscussion failed for debate {debate.debate_id}: {e}")

        await reply(debate.debate_id)

    async def close_debate(self, ctx: ModeratorContext, payload: Any, reply: Reply) -> None:
        """Close an open debate; reply with the result of storing its end."""
        logger.debug(f"Close debate requested from {ctx.username}")

        if not callable(reply):
            logger.debug("callback is not a function.")
            return

        debate_id = self._validate_debate_id(payload, "closeDebate")
        if debate_id is None:
            await reply(BOOL_FAILURE)
            return

        debate = self.store.close_debate(debate_id, closed_by=ctx.username)
        if debate is None:
            logger.debug(f"No active debate with the id {debate_id} was found")
            await reply(BOOL_FAILURE)
            return

        logger.info(f"User ({ctx.username}) closed debate {debate_id}")
        await debate.close()
        await self.hub.close_debate(debate_id)

        try:
            update = await self.persistence.save_end_discussion(debate_id)
        except PersistenceError as e:
            logger.error(f"saveEndDiscussion failed for debate {debate_id}: {e}")
            update = False

        logger.debug(f"result update: {update}")
        await reply(update)

    async def new_question(self, ctx: ModeratorContext, payload: Any, reply: Reply) -> None:
        """Add a question to a debate and broadcast it; reply with its id."""
        logger.debug(f"newQuestion received from user ({ctx.username}), id({ctx.connection_id})")

        if not callable(reply):
            logger.debug("callback is not a function.")
            return

        command = self._validate(NewQuestionCommand, payload, "newQuestion")
        if command is None:
            await reply(ID_FAILURE)
            return

        debate = self._get_active_debate(command.debate_id)
        if debate is None:
            await reply(ID_FAILURE)
            return

        question = debate.new_question(command.title, command.answers, command.is_open_question)
        await debate.send_new_question(question)
        await reply(question.id)

    async def ban_user(self, ctx: ModeratorContext, payload: Any, reply: Reply) -> None:
        """Acknowledge a ban request for a user of an open debate.

        Nothing is stored and nobody is kicked yet.
        """
        logger.debug(f"banUser received from user ({ctx.username}), id({ctx.connection_id})")

        if not callable(reply):
            logger.debug("callback is not a function.")
            return

        command = self._validate(BanUserCommand, payload, "banUser")
        if command is None:
            await reply(BOOL_FAILURE)
            return

        debate = self.store.debates.lookup(command.debate_id)
        if debate is None:
            logger.warning(f"Debate with id ({command.debate_id}) not found.")
            await reply(BOOL_FAILURE)
            return

        logger.info(f"User ({ctx.username}) requested ban of ({command.uuid}) in debate ({command.debate_id})")
        await reply(True)

    async def approve_question(self, ctx: ModeratorContext, payload: Any, reply: Reply) -> None:
        logger.debug(f"approveQuestion received from user ({ctx.username}), id({ctx.connection_id})")

        if not callable(reply):
            logger.debug("callback is not a function.")
            return

        command = self._validate(SuggestionDecisionCommand, payload, "approveQuestion")
        if command is None:
            await reply(BOOL_FAILURE)
            return

        debate = self._get_active_debate(command.debate_id)
        if debate is None:
            await reply(BOOL_FAILURE)
            return

        if not await debate.approve_suggestion(command.suggestion_id):
            logger.debug("Cannot approve suggestion.")
            await reply(BOOL_FAILURE)
            return

        logger.info(f"User ({ctx.username}) approved suggestion with id ({command.suggestion_id})")
        await reply(True)

    async def reject_question(self, ctx: ModeratorContext, payload: Any, reply: Reply) -> None:
        logger.debug(f"rejectQuestion received from user ({ctx.username}), id({ctx.connection_id})")

        if not callable(reply):
            logger.debug("callback is not a function.")
            return

        command = self._validate(SuggestionDecisionCommand, payload, "rejectQuestion")
        if command is None:
            await reply(BOOL_FAILURE)
            return

        debate = self._get_active_debate(command.debate_id)
        if debate is None:
            await reply(BOOL_FAILURE)
            return

        if not debate.reject_suggestion(command.suggestion_id):
            logger.debug("Cannot reject suggestion.")
            await reply(BOOL_FAILURE)
            return

        logger.info(f"User ({ctx.username}) rejected suggestion with id ({command.suggestion_id})")
        await reply(True)
