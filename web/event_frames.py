from typing import Any

from pydantic import BaseModel, Field, StrictInt, StrictStr


class EventFrame(BaseModel):
    """Inbound frame on the privileged channel.

    ``args`` holds the positional command arguments; ``ack`` is present when
    the client expects a reply.
    """

    event: StrictStr
    args: list[Any] = Field(default_factory=list)
    ack: StrictInt | None = None

    @property
    def payload(self) -> Any:
        return self.args[0] if self.args else None


class AckResponse(BaseModel):
    """Reply to a frame that carried an ``ack`` id."""

    type: str = "ack"
    ack: int
    data: Any
