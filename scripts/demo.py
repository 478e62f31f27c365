#!/usr/bin/env python3
"""
Demo script for the FAFSA assistant chat pipeline.

This script walks through caching, PII redaction, history and error
handling against the configured generation backend (Ollama by default).
"""

import asyncio
import time

from fafsa_assistant.api.dependencies import build_generation_backend, close_collaborators
from fafsa_assistant.config import configure_logging
from fafsa_assistant.entities import Generation
from fafsa_assistant.exceptions import BackendError, ChatServiceError
from fafsa_assistant.repositories import (
    InMemoryConversationStore,
    InMemoryProgressStore,
    KeywordKnowledgeBase,
)
from fafsa_assistant.services import ChatService, ResponseCache, RetryOptions


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


class UnavailableBackend:
    """Backend that always answers 503, to show the error path."""

    model_name = "unavailable"

    async def generate(self, prompt: str, context: str | None = None) -> Generation:
        raise BackendError(503)


async def demo_caching(service: ChatService) -> None:
    """Demonstrate cache misses and hits."""
    print_section("Response Caching")

    # The last question has no user, so it is answered from the preloaded global scope
    for question, user_id in (
        ("What is dependency status?", "demo-user"),
        ("What is dependency status?", "demo-user"),
        ("What is FAFSA?", None),
    ):
        start = time.perf_counter()
        reply = await service.send_message(question, user_id=user_id)
        elapsed_ms = (time.perf_counter() - start) * 1000
        source = "cache" if reply.message.metadata.get("from_cache") else "generated"
        print(f"\n❓ {question}")
        print(f"   {source} in {elapsed_ms:.1f} ms, sources: {', '.join(reply.sources)}")
        print(f"   {reply.message.content[:120]}...")

    stats = service.cache.stats()
    print(f"\n📊 Cache: {stats.entries} entries, hit rate {stats.hit_rate:.0%}")


async def demo_privacy(service: ChatService) -> None:
    """Demonstrate PII redaction."""
    print_section("PII Redaction")

    reply = await service.send_message(
        "My SSN is 123-45-6789 and my email is jane@example.com. Am I independent?",
        user_id="demo-user",
    )
    for warning in reply.privacy_warnings or []:
        print(f"  ⚠️  {warning}")
    print(f"\n  {reply.message.content[:200]}...")


async def demo_history(service: ChatService) -> None:
    """Show persisted history for the demo user."""
    print_section("Conversation History")

    await service.background.drain()
    history = await service.get_history("demo-user", limit=10)
    for message in history.messages:
        print(f"  [{message.sender.value:>9}] {message.content[:70]}")
    print(f"\n  has_more: {history.has_more}")


async def demo_errors() -> None:
    """Demonstrate validation and exhausted retries."""
    print_section("Error Handling")

    service = ChatService(
        generation_backend=UnavailableBackend(),
        knowledge_base=KeywordKnowledgeBase(),
        retry_options=RetryOptions(max_attempts=3, base_delay=0.1),
    )

    try:
        await service.send_message("   ")
    except ChatServiceError as e:
        print(f"  ✗ Rejected: {e.error.user_message}")

    reply = await service.send_message("How do I list schools?")
    print(f"  ✗ {reply.message.metadata['error_type']}: {reply.message.content}")
    await service.close()


async def main() -> None:
    """Run all demos."""
    configure_logging("WARNING")

    print("\n" + "=" * 70)
    print("  FAFSA ASSISTANT DEMO")
    print("=" * 70)

    cache = ResponseCache()
    cache.preload_common_responses()
    service = ChatService.create(
        generation_backend=build_generation_backend(),
        knowledge_base=KeywordKnowledgeBase.create(),
        conversation_store=InMemoryConversationStore(),
        progress_store=InMemoryProgressStore(),
        cache=cache,
    )

    try:
        await demo_caching(service)
        await demo_privacy(service)
        await demo_history(service)
        await demo_errors()
    finally:
        await service.close()
        await close_collaborators(service)

    print_section("Demo Complete")
    print("\n✅ All demos completed!")
    print("\nNext steps:")
    print("  1. Start API server: python -m fafsa_assistant.api.app")
    print("  2. Visit API docs: http://localhost:8000/docs")


if __name__ == "__main__":
    asyncio.run(main())
