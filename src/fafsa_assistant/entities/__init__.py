"""Domain entities for internal representation.

These are dataclasses used internally by services and repositories.
They are NOT used for API contracts - use DTOs from the dto package
for that.

Entities should have:
- No JSON serialization logic beyond plain dict conversion
- No Pydantic validation
- No external dependencies
"""

from .cache_entry import CacheEntry, CacheStats, CachedAnswer
from .chat import ChatHistory, ChatMessage, ChatReply, ChatTurn, Sender, ValidationResult
from .errors import ClassifiedError, ErrorContext, ErrorKind, ErrorSeverity
from .knowledge import Generation, KnowledgeDocument, SearchResult, TokenUsage
from .privacy import PIIDetectionResult
from .retry import RetryOutcome

__all__ = [
    "CacheEntry",
    "CacheStats",
    "CachedAnswer",
    "ChatHistory",
    "ChatMessage",
    "ChatReply",
    "ChatTurn",
    "Sender",
    "ValidationResult",
    "ClassifiedError",
    "ErrorContext",
    "ErrorKind",
    "ErrorSeverity",
    "Generation",
    "KnowledgeDocument",
    "SearchResult",
    "TokenUsage",
    "PIIDetectionResult",
    "RetryOutcome",
]
