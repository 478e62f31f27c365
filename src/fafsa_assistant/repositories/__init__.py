"""Repository layer for external collaborators.

This layer wraps external dependencies (generation APIs, document search,
Redis) behind protocol-based interfaces. This enables:
- Easy swapping of implementations (Ollama → Bedrock, memory → Redis, etc.)
- Unit testing with fake implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from fafsa_assistant.protocols import (
    ConversationStore,
    GenerationBackend,
    KnowledgeLookup,
    ProgressStore,
)

from .bedrock_generation_backend import BedrockGenerationBackend
from .knowledge_base import KeywordKnowledgeBase
from .memory_store import InMemoryConversationStore, InMemoryProgressStore
from .ollama_generation_backend import OllamaGenerationBackend
from .redis_store import RedisConversationStore, RedisProgressStore

__all__ = [
    "BedrockGenerationBackend",
    "ConversationStore",
    "GenerationBackend",
    "InMemoryConversationStore",
    "InMemoryProgressStore",
    "KeywordKnowledgeBase",
    "KnowledgeLookup",
    "OllamaGenerationBackend",
    "ProgressStore",
    "RedisConversationStore",
    "RedisProgressStore",
]
