"""Data models for debates."""

from dataclasses import dataclass, field
from datetime import datetime

from .types import ApprovedSuggestion, FormattedQuestion, SuggestionState


@dataclass
class Question:
    """A question asked by a moderator to the debate audience."""

    id: int
    title: str
    answers: list[str] = field(default_factory=list)
    is_open_question: bool = False
    created_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        # Open questions never carry answer choices
        if self.is_open_question:
            self.answers = []

    def format(self) -> FormattedQuestion:
        return {
            "id": self.id,
            "title": self.title,
            "answers": list(self.answers),
            "isOpenQuestion": self.is_open_question,
        }


@dataclass
class Suggestion:
    """A candidate question submitted by an audience member."""

    id: int
    content: str
    author_uuid: str | None = None
    state: SuggestionState = SuggestionState.PENDING
    created_at: datetime = field(default_factory=datetime.now)

    def format(self) -> ApprovedSuggestion:
        return {"id": self.id, "suggestion": self.content}
