"""Pydantic schemas for privileged channel command payloads.

Length and count bounds come from configuration and are passed through the
validation context: ``Model.model_validate(payload, context={"limits": limits})``.
"""

from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    TypeAdapter,
    ValidationInfo,
    field_validator,
    model_validator,
)

from config.settings import DebateLimits

debate_id_adapter: TypeAdapter[int] = TypeAdapter(StrictInt)


def _limits(info: ValidationInfo) -> DebateLimits:
    context = info.context or {}
    return context.get("limits") or DebateLimits()


def _check_length(value: str, max_length: int, field_name: str) -> str:
    if len(value) > max_length:
        raise ValueError(f"{field_name} exceeds {max_length} characters")
    return value


class CommandModel(BaseModel):
    """Base for command payloads: camelCase on the wire, no extra coercion."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class NewDebateCommand(CommandModel):
    """Payload of ``newDebate``."""

    title: StrictStr
    description: StrictStr

    @field_validator("title")
    @classmethod
    def validate_title(cls, title: str, info: ValidationInfo) -> str:
        return _check_length(title, _limits(info).max_title_length, "title")

    @field_validator("description")
    @classmethod
    def validate_description(cls, description: str, info: ValidationInfo) -> str:
        return _check_length(description, _limits(info).max_description_length, "description")


class NewQuestionCommand(CommandModel):
    """Payload of ``newQuestion``.

    A non-boolean ``isOpenQuestion`` counts as false. Open questions drop
    whatever answers were supplied before validation.
    """

    debate_id: StrictInt = Field(alias="debateId")
    title: StrictStr
    answers: list[StrictStr]
    is_open_question: StrictBool = Field(default=False, alias="isOpenQuestion")

    @model_validator(mode="before")
    @classmethod
    def normalize_open_question(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        data = dict(data)
        is_open = data.get("isOpenQuestion", data.get("is_open_question"))
        data.pop("is_open_question", None)
        if is_open is True:
            data["isOpenQuestion"] = True
            data["answers"] = []
        else:
            data["isOpenQuestion"] = False
        return data

    @field_validator("title")
    @classmethod
    def validate_title(cls, title: str, info: ValidationInfo) -> str:
        return _check_length(title, _limits(info).max_question_length, "title")

    @field_validator("answers")
    @classmethod
    def validate_answers(cls, answers: list[str], info: ValidationInfo) -> list[str]:
        max_answers = _limits(info).max_closed_answers
        if len(answers) > max_answers:
            raise ValueError(f"at most {max_answers} answers are allowed")
        return answers


class SuggestionDecisionCommand(CommandModel):
    """Payload of ``approveQuestion`` and ``rejectQuestion``."""

    suggestion_id: StrictInt = Field(alias="suggestionId")
    debate_id: StrictInt = Field(alias="debateId")


class BanUserCommand(CommandModel):
    """Payload of ``banUser``."""

    uuid: StrictStr
    debate_id: StrictInt = Field(alias="debateId")
