"""Tests for the chat turn orchestration."""

import asyncio

import pytest

from fafsa_assistant.entities import ErrorKind, Sender
from fafsa_assistant.exceptions import BackendError, ChatServiceError
from fafsa_assistant.services import OFFICIAL_FAFSA_URL

from fakes import (
    DEPENDENCY_URL,
    FailingConversationStore,
    FakeGenerationBackend,
    FakeKnowledgeBase,
    HangingKnowledgeBase,
)

QUESTION = "What is dependency status?"


@pytest.mark.asyncio
async def test_cache_miss_generates_with_context_and_citation(make_service, backend, knowledge_base):
    service = make_service(backend)

    reply = await service.send_message(QUESTION, user_id="user-1")

    assert len(backend.calls) == 1
    prompt, context = backend.calls[0]
    assert prompt == QUESTION
    assert context == "Dependency Status Questions: Dependency status determines whose information you report."
    assert reply.message.sender == Sender.ASSISTANT
    assert reply.message.content == f"{backend.answer}\n\n**Source:** {DEPENDENCY_URL}"
    assert reply.sources == [DEPENDENCY_URL]
    assert reply.privacy_warnings is None
    assert reply.conversation_id


@pytest.mark.asyncio
async def test_repeated_question_is_served_from_cache(make_service, backend, knowledge_base):
    service = make_service(backend)

    first = await service.send_message(QUESTION, user_id="user-1")
    second = await service.send_message(QUESTION, user_id="user-1")

    assert len(backend.calls) == 1
    assert len(knowledge_base.queries) == 1
    assert second.message.content == first.message.content
    assert second.sources == [DEPENDENCY_URL]
    assert second.message.metadata["from_cache"] is True
    assert service.metrics.cache_hits == 1
    assert service.metrics.cache_misses == 1


@pytest.mark.asyncio
async def test_cache_is_scoped_per_user(make_service, backend):
    service = make_service(backend)

    await service.send_message(QUESTION, user_id="user-1")
    await service.send_message(QUESTION, user_id="user-2")

    assert len(backend.calls) == 2


@pytest.mark.asyncio
async def test_pii_is_redacted_and_never_cached(make_service, backend, cache, conversation_store):
    service = make_service(backend)

    reply = await service.send_message("My SSN is 123-45-6789, am I dependent?", user_id="user-1")
    await service.background.drain()

    prompt, _ = backend.calls[0]
    assert "123-45-6789" not in prompt
    assert "[SSN_REDACTED]" in prompt
    assert reply.privacy_warnings == ["Social Security Number detected and removed for your privacy"]
    assert reply.message.content.startswith("⚠️ Privacy Notice: Social Security Number detected")
    assert len(cache) == 0

    [turn] = await conversation_store.query("user-1", 10)
    assert "123-45-6789" not in turn.user_message.content
    assert turn.user_message.metadata["pii_detected"] is True


@pytest.mark.asyncio
async def test_service_unavailable_resolves_with_error_message(make_service, cache, sleep):
    backend = FakeGenerationBackend(failures=[BackendError(503)] * 3)
    service = make_service(backend)

    reply = await service.send_message(QUESTION, user_id="user-1")

    assert len(backend.calls) == 3
    assert sleep.delays == [1.0, 2.0]
    assert reply.message.is_error
    assert reply.message.metadata["error_type"] == "ServiceUnavailable"
    assert reply.message.metadata["retryable"] is True
    assert reply.message.content == "I'm temporarily unavailable. Please try again in a moment."
    assert reply.sources == []
    assert len(cache) == 0
    assert service.metrics.failures == 1


@pytest.mark.asyncio
async def test_recovers_after_transient_failure(make_service):
    backend = FakeGenerationBackend(failures=[BackendError(503)])
    service = make_service(backend)

    reply = await service.send_message(QUESTION)

    assert not reply.message.is_error
    assert len(backend.calls) == 2


@pytest.mark.asyncio
async def test_authentication_failure_is_not_retried(make_service):
    backend = FakeGenerationBackend(failures=[BackendError(401)])
    service = make_service(backend)

    reply = await service.send_message(QUESTION)

    assert len(backend.calls) == 1
    assert reply.message.metadata["error_type"] == ErrorKind.AUTHENTICATION.value


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   ", "x" * 11])
async def test_invalid_input_raises_before_any_io(make_service, backend, knowledge_base, content):
    service = make_service(backend, max_message_length=10)

    with pytest.raises(ChatServiceError) as exc_info:
        await service.send_message(content, user_id="user-1")

    assert exc_info.value.kind == ErrorKind.VALIDATION
    assert backend.calls == []
    assert knowledge_base.queries == []
    assert service.cache.stats().misses == 0


def test_validate_message(make_service, backend):
    service = make_service(backend)

    assert service.validate_message("What is the FAFSA?").is_valid
    assert service.validate_message("  ").error == "Please enter a FAFSA question or topic you'd like help with."
    too_long = service.validate_message("x" * 5001)
    assert not too_long.is_valid
    assert too_long.error == "Please limit your question to 5000 characters or less."


@pytest.mark.asyncio
async def test_knowledge_failure_falls_back_to_official_source(make_service, backend):
    service = make_service(backend, knowledge_base=FakeKnowledgeBase(error=RuntimeError("index offline")))

    reply = await service.send_message(QUESTION)

    assert backend.calls[0][1] is None
    assert reply.sources == [OFFICIAL_FAFSA_URL]
    assert reply.message.content.endswith(f"**Source:** {OFFICIAL_FAFSA_URL}")


@pytest.mark.asyncio
async def test_signed_in_turns_are_persisted(make_service, backend, conversation_store, progress_store):
    service = make_service(backend)

    reply = await service.send_message(QUESTION, user_id="user-1")
    await service.background.drain()

    [turn] = await conversation_store.query("user-1", 10)
    assert turn.conversation_id == reply.conversation_id
    assert turn.user_message.content == QUESTION
    assert turn.assistant_message.id == reply.message.id
    assert await progress_store.get_interaction_count("user-1") == 1


@pytest.mark.asyncio
async def test_existing_conversation_id_is_kept(make_service, backend):
    service = make_service(backend)

    reply = await service.send_message(QUESTION, user_id="user-1", conversation_id="conv-9")

    assert reply.conversation_id == "conv-9"


@pytest.mark.asyncio
@pytest.mark.parametrize("user_id", [None, "guest_123"])
async def test_guests_are_not_persisted(make_service, backend, conversation_store, progress_store, user_id):
    service = make_service(backend)

    reply = await service.send_message(QUESTION, user_id=user_id)
    await service.background.drain()

    assert reply.conversation_id is None
    assert service.background.completed == 0
    assert await progress_store.get_interaction_count(user_id or "") == 0


@pytest.mark.asyncio
async def test_persistence_failure_does_not_fail_the_turn(make_service, backend):
    store = FailingConversationStore()
    service = make_service(backend, conversation_store=store, progress_store=None)

    reply = await service.send_message(QUESTION, user_id="user-1")
    await service.background.drain()

    assert not reply.message.is_error
    assert store.attempts == 2
    assert service.background.failed == 1


@pytest.mark.asyncio
async def test_history_is_oldest_first_with_has_more(make_service, backend):
    service = make_service(backend)
    await service.send_message("What is FAFSA?", user_id="user-1")
    await service.send_message("When is the deadline?", user_id="user-1")
    await service.background.drain()

    full = await service.get_history("user-1")
    assert [m.sender for m in full.messages] == [Sender.USER, Sender.ASSISTANT] * 2
    assert full.messages[0].content == "What is FAFSA?"
    assert full.has_more is False

    latest = await service.get_history("user-1", limit=1)
    assert [m.content for m in latest.messages][0] == "When is the deadline?"
    assert latest.has_more is True


@pytest.mark.asyncio
async def test_history_for_guest_is_empty(make_service, backend):
    service = make_service(backend)

    history = await service.get_history("guest_1")

    assert history.messages == []
    assert history.has_more is False


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [0, 101])
async def test_history_limit_is_validated(make_service, backend, limit):
    service = make_service(backend)

    with pytest.raises(ChatServiceError) as exc_info:
        await service.get_history("user-1", limit=limit)

    assert exc_info.value.kind == ErrorKind.VALIDATION


@pytest.mark.asyncio
async def test_history_store_failure_raises_after_two_attempts(make_service, backend):
    store = FailingConversationStore()
    service = make_service(backend, conversation_store=store)

    with pytest.raises(ChatServiceError) as exc_info:
        await service.get_history("user-1")

    assert exc_info.value.kind == ErrorKind.SERVICE_UNAVAILABLE
    assert store.attempts == 2


def test_welcome_message_depends_on_caller(make_service, backend):
    service = make_service(backend)

    assert service.create_welcome_message("user-1", "Sam").content.startswith("Hi Sam!")
    guest = service.create_welcome_message("guest_1")
    assert guest.content.startswith("Welcome to EducateFirstAI!")
    assert guest.sources == [OFFICIAL_FAFSA_URL]


@pytest.mark.asyncio
async def test_answer_is_cached_under_normalized_key(make_service, backend, knowledge_base, cache):
    service = make_service(backend)

    await service.send_message("What is FAFSA?", user_id="user-1")
    assert cache.has("user:user-1:what is fafsa?")

    await service.send_message("  what is fafsa?", user_id="user-1")
    assert len(backend.calls) == 1
    assert len(knowledge_base.queries) == 1


@pytest.mark.asyncio
async def test_lowercase_ssn_question_is_answered_but_not_cached(make_service, backend, cache):
    service = make_service(backend)

    reply = await service.send_message("my ssn is 123-45-6789", user_id="user-1")

    assert not reply.message.is_error
    assert not cache.has(cache.make_key("my ssn is [SSN_REDACTED]", "user-1"))
    assert not cache.has(cache.make_key("my ssn is 123-45-6789", "user-1"))


@pytest.mark.asyncio
async def test_internal_server_error_resolves_after_max_attempts(make_service):
    backend = FakeGenerationBackend(failures=[BackendError(500)] * 10)
    service = make_service(backend)

    reply = await service.send_message("What is FAFSA?")

    assert len(backend.calls) == 3
    assert reply.message.metadata["error_type"] == "ServiceUnavailable"


@pytest.mark.asyncio
async def test_only_pii_free_answers_reach_the_injected_cache(make_service, backend, cache):
    service = make_service(backend)

    await service.send_message(QUESTION, user_id="user-1")
    await service.send_message("My SSN is 123-45-6789, am I dependent?", user_id="user-1")

    assert service.cache is cache
    assert len(cache) == 1
    assert cache.has(cache.make_key(QUESTION, "user-1"))


@pytest.mark.asyncio
async def test_hanging_knowledge_lookup_falls_back_to_official_source(make_service, backend):
    knowledge_base = HangingKnowledgeBase()
    service = make_service(backend, knowledge_base=knowledge_base, lookup_timeout=0.01)

    reply = await asyncio.wait_for(service.send_message(QUESTION), timeout=5)

    assert knowledge_base.queries == [QUESTION]
    assert backend.calls[0][1] is None
    assert not reply.message.is_error
    assert reply.sources == [OFFICIAL_FAFSA_URL]


@pytest.mark.asyncio
async def test_mutating_a_reply_does_not_change_the_cached_answer(make_service, backend, cache):
    service = make_service(backend)

    first = await service.send_message(QUESTION, user_id="user-1")
    first.sources.append("https://example.com/other")
    first.message.metadata["sources"].append("https://example.com/other")

    second = await service.send_message(QUESTION, user_id="user-1")

    assert cache.get(cache.make_key(QUESTION, "user-1")).sources == (DEPENDENCY_URL,)
    assert second.sources == [DEPENDENCY_URL]
    assert second.message.metadata["sources"] == [DEPENDENCY_URL]
