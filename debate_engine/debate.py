"""Live debate entity owning questions and audience suggestions."""

import itertools
import logging
from datetime import datetime
from typing import Any

from .models import Question
from .suggestions import QuestionSuggestion
from .types import BroadcastCallback, FormattedQuestion

logger = logging.getLogger(__name__)


class Debate:
    """A debate opened by a moderator.

    The debate owns its question and suggestion collections and fans out
    changes to its audience through the broadcast callback it was built with.
    """

    def __init__(
        self,
        debate_id: int,
        title: str,
        description: str,
        creator: str,
        broadcast: BroadcastCallback,
        creator_id: int | None = None,
        max_suggestion_length: int | None = None,
    ):
        self.debate_id = debate_id
        self.title = title
        self.description = description
        self.creator = creator
        self.creator_id = creator_id
        self.start_time = datetime.now()
        self.is_open = False

        self.questions: dict[int, Question] = {}
        self.question_suggestion = QuestionSuggestion(debate_id, max_length=max_suggestion_length)

        self._broadcast = broadcast
        self._question_ids = itertools.count(0)

    def __repr__(self) -> str:
        return f"Debate(id={self.debate_id}, title={self.title!r}, creator={self.creator!r})"

    def open(self) -> None:
        """Start accepting audience participants."""
        self.is_open = True
        logger.info(f"Debate {self.debate_id} open to audience")

    def new_question(
        self, title: str, answers: list[str], is_open_question: bool = False
    ) -> Question:
        question = Question(
            id=next(self._question_ids),
            title=title,
            answers=list(answers),
            is_open_question=is_open_question,
        )
        self.questions[question.id] = question
        return question

    def get_formatted_questions(self) -> list[FormattedQuestion]:
        return [q.format() for q in self.questions.values()]

    async def send_new_question(self, question: Question) -> None:
        """Broadcast a question to the audience."""
        await self._send("newQuestion", {"question": question.format()})

    async def approve_suggestion(self, suggestion_id: int) -> bool:
        suggestion = self.question_suggestion.approve_suggestion(suggestion_id)
        if suggestion is None:
            return False

        await self._send("suggestionApproved", {"suggestion": suggestion.format()})
        return True

    def reject_suggestion(self, suggestion_id: int) -> bool:
        return self.question_suggestion.reject_suggestion(suggestion_id) is not None

    async def close(self) -> None:
        """Notify the audience that the debate is over."""
        if not self.is_open:
            return
        self.is_open = False
        await self._send("debateClosed", {})

    async def _send(self, event_type: str, payload: dict[str, Any]) -> None:
        message = {"type": event_type, "debateId": self.debate_id, **payload}
        try:
            await self._broadcast(self.debate_id, message)
        except Exception as e:
            # Audience fan-out never fails a moderator command
            logger.warning(f"Debate {self.debate_id}: broadcast of {event_type} failed: {e}")
