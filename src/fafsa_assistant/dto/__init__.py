"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import SendMessageRequest, ValidateMessageRequest
from .responses import (
    CacheCleanupResponse,
    CacheStatsResponse,
    ChatHistoryResponse,
    ChatResponse,
    ErrorDetail,
    HealthCheckResponse,
    MessageItem,
    ValidationResponse,
)

__all__ = [
    "SendMessageRequest",
    "ValidateMessageRequest",
    "MessageItem",
    "ChatResponse",
    "ChatHistoryResponse",
    "ValidationResponse",
    "CacheStatsResponse",
    "CacheCleanupResponse",
    "HealthCheckResponse",
    "ErrorDetail",
]
