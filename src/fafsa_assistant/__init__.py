"""FAFSA Assistant - resilient chat pipeline for financial aid questions.

This package provides a layered architecture for answering FAFSA questions:

Layers:
    - protocols: Interface contracts (GenerationBackend, KnowledgeLookup, stores)
    - repositories: Ollama/Bedrock backends, keyword knowledge base, Redis and memory stores
    - services: Chat orchestration, PII redaction, caching, retries
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from fafsa_assistant.repositories import KeywordKnowledgeBase, OllamaGenerationBackend
    from fafsa_assistant.services import ChatService

    service = ChatService.create(
        generation_backend=OllamaGenerationBackend.create(),
        knowledge_base=KeywordKnowledgeBase.create(),
    )
    reply = await service.send_message("What is FAFSA?")
    ```

For HTTP API:
    ```python
    from fafsa_assistant.api.app import app
    ```
"""

from fafsa_assistant.config import get_redis_client, settings
from fafsa_assistant.dto import SendMessageRequest, ValidateMessageRequest
from fafsa_assistant.entities import ChatMessage, ChatReply, ClassifiedError, ErrorKind
from fafsa_assistant.exceptions import BackendError, ChatServiceError
from fafsa_assistant.handlers import ChatHandler
from fafsa_assistant.protocols import (
    ConversationStore,
    GenerationBackend,
    KnowledgeLookup,
    ProgressStore,
)
from fafsa_assistant.repositories import (
    BedrockGenerationBackend,
    InMemoryConversationStore,
    KeywordKnowledgeBase,
    OllamaGenerationBackend,
    RedisConversationStore,
)
from fafsa_assistant.services import ChatService, ErrorClassifier, PrivacyFilter, ResponseCache

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    # Protocols (interfaces)
    "ConversationStore",
    "GenerationBackend",
    "KnowledgeLookup",
    "ProgressStore",
    # Services (business logic)
    "ChatService",
    "ErrorClassifier",
    "PrivacyFilter",
    "ResponseCache",
    # Handlers (HTTP)
    "ChatHandler",
    # Repositories
    "BedrockGenerationBackend",
    "InMemoryConversationStore",
    "KeywordKnowledgeBase",
    "OllamaGenerationBackend",
    "RedisConversationStore",
    # Entities (domain models)
    "ChatMessage",
    "ChatReply",
    "ClassifiedError",
    "ErrorKind",
    # Errors
    "BackendError",
    "ChatServiceError",
    # DTOs (API contracts)
    "SendMessageRequest",
    "ValidateMessageRequest",
]
