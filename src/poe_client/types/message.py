"""
Chat messages exchanged with a bot.

Messages are immutable once constructed; a session reads them to build
the outbound query and never modifies them.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    """Message role enumeration."""

    USER = "user"
    BOT = "bot"
    SYSTEM = "system"


class Attachment(BaseModel):
    """Reference to a file attached to a message."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(description="Location of the uploaded file")
    content_type: str = Field(description="MIME type of the file")
    name: str | None = Field(default=None, description="Original file name")
    parsed_content: str | None = Field(
        default=None, description="Text extracted from the file by the service"
    )


class Message(BaseModel):
    """A single chat message.

    Example:
        >>> Message.user("What's the weather?")
        >>> Message.system("Answer in French.")
    """

    model_config = ConfigDict(frozen=True)

    role: MessageRole = Field(description="Author of the message")
    content: str = Field(description="Text content")
    content_type: str = Field(default="text/markdown", description="MIME type of content")
    attachments: tuple[Attachment, ...] = Field(
        default=(), description="Attached file references"
    )

    @classmethod
    def user(cls, content: str, attachments: list[Attachment] | None = None) -> Message:
        """Create a user message."""
        return cls(role=MessageRole.USER, content=content, attachments=tuple(attachments or ()))

    @classmethod
    def bot(cls, content: str) -> Message:
        """Create a bot message."""
        return cls(role=MessageRole.BOT, content=content)

    @classmethod
    def system(cls, content: str) -> Message:
        """Create a system message."""
        return cls(role=MessageRole.SYSTEM, content=content)

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the query wire format."""
        data: dict[str, Any] = {
            "role": self.role.value,
            "content": self.content,
            "content_type": self.content_type,
        }
        if self.attachments:
            data["attachments"] = [
                a.model_dump(exclude_none=True) for a in self.attachments
            ]
        return data
