"""Shared types and enums for debates."""

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypedDict


class FormattedQuestion(TypedDict):
    """Wire representation of a debate question."""

    id: int
    title: str
    answers: list[str]
    isOpenQuestion: bool


class ApprovedSuggestion(TypedDict):
    """Wire representation of an approved audience suggestion."""

    id: int
    suggestion: str


class DebateSummary(TypedDict):
    """Entry of the moderator debate listing."""

    debateId: int
    title: str
    description: str
    closed: bool


# Fan-out used by a debate to reach its audience
type BroadcastCallback = Callable[[int, dict[str, Any]], Awaitable[None]]


class SuggestionState(Enum):
    """Moderation state of an audience suggestion."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
