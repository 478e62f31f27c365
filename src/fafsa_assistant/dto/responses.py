"""Response DTOs for API endpoints."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from fafsa_assistant.entities import ChatMessage


class MessageItem(BaseModel):
    """Single chat message (in responses and history)."""

    id: str = Field(..., description="Unique message id")
    content: str = Field(..., description="Message text")
    sender: str = Field(..., description="'user' or 'assistant'")
    timestamp: datetime = Field(..., description="Creation time (UTC)")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Sources, privacy warnings and error tags",
    )

    @classmethod
    def from_entity(cls, message: ChatMessage) -> "MessageItem":
        return cls(
            id=message.id,
            content=message.content,
            sender=message.sender.value,
            timestamp=message.timestamp,
            metadata=dict(message.metadata),
        )


class ChatResponse(BaseModel):
    """Response DTO for a chat turn."""

    message: MessageItem = Field(..., description="The assistant message (possibly an error bubble)")
    sources: list[str] = Field(default_factory=list, description="Citations for the answer")
    conversation_id: str | None = Field(None, description="Conversation the turn belongs to")
    privacy_warnings: list[str] | None = Field(
        None,
        description="One warning per PII type removed from the question",
    )


class ChatHistoryResponse(BaseModel):
    """Response DTO for conversation history."""

    messages: list[MessageItem] = Field(default_factory=list, description="Messages, oldest first")
    has_more: bool = Field(..., description="Whether older turns exist beyond the limit")


class ValidationResponse(BaseModel):
    """Response DTO for message validation."""

    is_valid: bool = Field(..., description="Whether the message would be accepted")
    error: str | None = Field(None, description="User-facing reason when invalid")


class CacheStatsResponse(BaseModel):
    """Response DTO for cache and performance statistics."""

    entries: int = Field(..., description="Live cache entries", ge=0)
    hits: int = Field(..., description="Cache hits since the last clear", ge=0)
    misses: int = Field(..., description="Cache misses since the last clear", ge=0)
    hit_rate: float = Field(..., description="hits / (hits + misses)", ge=0.0, le=1.0)
    approx_memory_bytes: int = Field(..., description="Rough memory footprint", ge=0)
    performance: dict[str, Any] = Field(
        default_factory=dict,
        description="Chat turn counters and timings",
    )


class CacheCleanupResponse(BaseModel):
    """Response DTO for an explicit cache sweep."""

    removed: int = Field(..., description="Expired entries deleted", ge=0)


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'degraded'")
    generation_model: str = Field(..., description="Model answering questions")
    conversation_store_healthy: bool | None = Field(
        None,
        description="Whether the conversation store is reachable (null when persistence is off)",
    )
    cache_entries: int = Field(..., description="Live cache entries", ge=0)


class ErrorDetail(BaseModel):
    """Classified error body for non-2xx chat responses."""

    kind: str = Field(..., description="Error kind, e.g. 'Validation'")
    severity: str = Field(..., description="Low, Medium, High or Critical")
    message: str = Field(..., description="Diagnostic message")
    user_message: str = Field(..., description="Text safe to show to the student")
    recoverable: bool
    retryable: bool
    context: dict[str, Any] = Field(default_factory=dict)
