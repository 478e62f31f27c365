"""Service layer for business logic.

This layer contains the chat pipeline and its resilience machinery.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Generation, knowledge, persistence)

Usage:
    ```python
    from fafsa_assistant.services import ChatService

    # Using factory method (recommended)
    service = ChatService.create(generation_backend=backend, knowledge_base=kb)

    # Or manual creation with custom collaborators
    service = ChatService(
        generation_backend=backend,
        knowledge_base=kb,
        cache=ResponseCache(max_entries=100),
        retry_coordinator=RetryCoordinator(sleep=fake_sleep),
    )
    ```
"""

from .background import BackgroundTaskRunner
from .chat_service import ChatService
from .citations import OFFICIAL_FAFSA_URL, format_source_attribution
from .errors import ErrorClassifier
from .privacy import PrivacyFilter, is_guest_user
from .response_cache import ResponseCache
from .retry import RetryCoordinator, RetryOptions

__all__ = [
    "BackgroundTaskRunner",
    "ChatService",
    "ErrorClassifier",
    "OFFICIAL_FAFSA_URL",
    "PrivacyFilter",
    "ResponseCache",
    "RetryCoordinator",
    "RetryOptions",
    "format_source_attribution",
    "is_guest_user",
]
