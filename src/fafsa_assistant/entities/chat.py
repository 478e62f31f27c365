"""Chat domain entities."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Sender(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ChatMessage:
    """One chat bubble.

    Attributes:
        content: Message text
        sender: Who wrote it
        id: Unique message id
        timestamp: Creation time (UTC)
        metadata: Sources, privacy warnings, error tags, cache flags
    """

    content: str
    sender: Sender
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=_now)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def sources(self) -> list[str]:
        return list(self.metadata.get("sources", []))

    @property
    def is_error(self) -> bool:
        return bool(self.metadata.get("is_error", False))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "sender": self.sender.value,
            "timestamp": self.timestamp.isoformat(),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChatMessage":
        return cls(
            content=data["content"],
            sender=Sender(data["sender"]),
            id=data["id"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass(frozen=True)
class ChatTurn:
    """One user question plus the assistant answer.

    Ownership passes to the conversation store once persisted.
    """

    user_message: ChatMessage
    assistant_message: ChatMessage
    conversation_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "conversation_id": self.conversation_id,
            "user_message": self.user_message.to_dict(),
            "assistant_message": self.assistant_message.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChatTurn":
        return cls(
            user_message=ChatMessage.from_dict(data["user_message"]),
            assistant_message=ChatMessage.from_dict(data["assistant_message"]),
            conversation_id=data.get("conversation_id"),
        )


@dataclass(frozen=True)
class ChatReply:
    """What ``send_message`` hands back to the UI."""

    message: ChatMessage
    sources: list[str] = field(default_factory=list)
    conversation_id: str | None = None
    privacy_warnings: list[str] | None = None


@dataclass(frozen=True)
class ChatHistory:
    messages: list[ChatMessage]
    has_more: bool


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error: str | None = None
