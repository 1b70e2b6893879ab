"""
Protocol events decoded from a bot's response stream.

ProtocolEvent is a closed union of six variants discriminated on ``type``.
Tags the decoder does not recognise arrive as Meta so newer servers do
not break older clients.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class TextDelta(BaseModel):
    """Text appended to the current reply epoch."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text_delta"] = "text_delta"
    text: str = Field(description="Text fragment")


class Replace(BaseModel):
    """Replacement of the whole reply text so far."""

    model_config = ConfigDict(frozen=True)

    type: Literal["replace"] = "replace"
    text: str = Field(description="New full reply text")


class Suggestion(BaseModel):
    """Suggested follow-up message."""

    model_config = ConfigDict(frozen=True)

    type: Literal["suggestion"] = "suggestion"
    text: str = Field(description="Suggested reply text")


class Meta(BaseModel):
    """Key/value metadata, also used for unrecognised event tags."""

    model_config = ConfigDict(frozen=True)

    type: Literal["meta"] = "meta"
    key: str = Field(description="Metadata key or unknown event tag")
    value: Any = Field(default=None, description="Metadata value")


class Error(BaseModel):
    """Error reported by the service inside the stream."""

    model_config = ConfigDict(frozen=True)

    type: Literal["error"] = "error"
    code: str | None = Field(default=None, description="Raw error code")
    detail: str = Field(default="", description="Diagnostic text")


class Done(BaseModel):
    """End of the reply."""

    model_config = ConfigDict(frozen=True)

    type: Literal["done"] = "done"


ProtocolEvent = Annotated[
    Union[TextDelta, Replace, Suggestion, Meta, Error, Done],
    Field(discriminator="type"),
]

_EVENT_ADAPTER: TypeAdapter[Any] = TypeAdapter(ProtocolEvent)


def parse_event(data: dict[str, Any]) -> TextDelta | Replace | Suggestion | Meta | Error | Done:
    """Validate a dict into its ProtocolEvent variant."""
    return _EVENT_ADAPTER.validate_python(data)
