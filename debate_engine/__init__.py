"""Debate entities: questions, audience suggestions and their storage."""

from .debate import Debate
from .models import Question, Suggestion
from .suggestions import QuestionSuggestion
from .types import SuggestionState

__all__ = [
    "Debate",
    "Question",
    "Suggestion",
    "QuestionSuggestion",
    "SuggestionState",
]
