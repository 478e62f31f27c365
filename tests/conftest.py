"""Shared fixtures."""

import pytest

from fafsa_assistant.repositories import InMemoryConversationStore, InMemoryProgressStore
from fafsa_assistant.services import (
    BackgroundTaskRunner,
    ChatService,
    ResponseCache,
    RetryCoordinator,
    RetryOptions,
)

from fakes import FakeClock, FakeGenerationBackend, FakeKnowledgeBase, RecordingSleep


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def retry_coordinator(sleep) -> RetryCoordinator:
    return RetryCoordinator(sleep=sleep)


@pytest.fixture
def backend() -> FakeGenerationBackend:
    return FakeGenerationBackend()


@pytest.fixture
def knowledge_base() -> FakeKnowledgeBase:
    return FakeKnowledgeBase()


@pytest.fixture
def conversation_store() -> InMemoryConversationStore:
    return InMemoryConversationStore()


@pytest.fixture
def progress_store() -> InMemoryProgressStore:
    return InMemoryProgressStore()


@pytest.fixture
def cache(clock) -> ResponseCache:
    return ResponseCache(max_entries=100, default_ttl=1800, common_ttl=7200, clock=clock)


@pytest.fixture
def make_service(knowledge_base, conversation_store, progress_store, cache, retry_coordinator):
    """Build a ChatService around a given backend with instant retries."""

    def _make(backend, **overrides) -> ChatService:
        options = dict(
            generation_backend=backend,
            knowledge_base=knowledge_base,
            conversation_store=conversation_store,
            progress_store=progress_store,
            cache=cache,
            retry_coordinator=retry_coordinator,
            background=BackgroundTaskRunner(retry_coordinator),
            retry_options=RetryOptions(max_attempts=3, base_delay=1.0, max_delay=30.0),
        )
        options.update(overrides)
        return ChatService(**options)

    return _make
