"""Protocol interfaces for swappable collaborators.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (Ollama → Bedrock, memory → Redis, etc.)
- Unit testing with fake implementations
- Clear separation of concerns

Usage:
    ```python
    from fafsa_assistant.protocols import ConversationStore, GenerationBackend

    # Type hints work with any implementation
    store: ConversationStore = RedisConversationStore.create()
    store: ConversationStore = InMemoryConversationStore()
    ```
"""

from .conversation_store import ConversationStore
from .generation_backend import GenerationBackend
from .knowledge_lookup import KnowledgeLookup
from .progress_store import ProgressStore

__all__ = [
    "ConversationStore",
    "GenerationBackend",
    "KnowledgeLookup",
    "ProgressStore",
]
