"""Audience suggestion workflow for a single debate."""

import itertools
import logging

from .models import Suggestion
from .types import ApprovedSuggestion, SuggestionState

logger = logging.getLogger(__name__)


class QuestionSuggestion:
    """Stores audience suggestions and their moderation state.

    A suggestion starts pending and is decided exactly once: approving or
    rejecting a suggestion that is unknown or already decided fails.
    """

    def __init__(self, debate_id: int, max_length: int | None = None):
        self.debate_id = debate_id
        self.max_length = max_length
        self._suggestions: dict[int, Suggestion] = {}
        self._ids = itertools.count(0)

    def __len__(self) -> int:
        return len(self._suggestions)

    def submit(self, content: str, author_uuid: str | None = None) -> Suggestion:
        """Record a new pending suggestion and return it.

        Raises ValueError when the content exceeds the configured length.
        """
        if self.max_length is not None and len(content) > self.max_length:
            raise ValueError(f"Suggestion exceeds {self.max_length} characters")

        suggestion = Suggestion(
            id=next(self._ids), content=content, author_uuid=author_uuid
        )
        self._suggestions[suggestion.id] = suggestion
        logger.debug(f"Debate {self.debate_id}: new suggestion {suggestion.id}")
        return suggestion

    def get(self, suggestion_id: int) -> Suggestion | None:
        return self._suggestions.get(suggestion_id)

    def approve_suggestion(self, suggestion_id: int) -> Suggestion | None:
        """Approve a pending suggestion. Returns None if it cannot be approved."""
        return self._decide(suggestion_id, SuggestionState.APPROVED)

    def reject_suggestion(self, suggestion_id: int) -> Suggestion | None:
        """Reject a pending suggestion. Returns None if it cannot be rejected."""
        return self._decide(suggestion_id, SuggestionState.REJECTED)

    def _decide(self, suggestion_id: int, state: SuggestionState) -> Suggestion | None:
        suggestion = self._suggestions.get(suggestion_id)
        if suggestion is None:
            logger.debug(f"Debate {self.debate_id}: suggestion {suggestion_id} not found")
            return None

        if suggestion.state is not SuggestionState.PENDING:
            logger.debug(
                f"Debate {self.debate_id}: suggestion {suggestion_id} already {suggestion.state.value}"
            )
            return None

        suggestion.state = state
        return suggestion

    def get_pending_suggestions(self) -> list[Suggestion]:
        return [
            s for s in self._suggestions.values() if s.state is SuggestionState.PENDING
        ]

    def get_approved_suggestions(self) -> list[ApprovedSuggestion]:
        """Approved suggestions in submission order, formatted for the wire."""
        return [
            s.format()
            for s in self._suggestions.values()
            if s.state is SuggestionState.APPROVED
        ]
