"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Tests pre-populate app.state.chat_service to skip real backends
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from fafsa_assistant.config import settings
from fafsa_assistant.handlers import ChatHandler
from fafsa_assistant.protocols import GenerationBackend
from fafsa_assistant.repositories import (
    BedrockGenerationBackend,
    InMemoryConversationStore,
    InMemoryProgressStore,
    KeywordKnowledgeBase,
    OllamaGenerationBackend,
    RedisConversationStore,
    RedisProgressStore,
)
from fafsa_assistant.services import ChatService, ResponseCache

logger = logging.getLogger(__name__)


def get_chat_service(request: Request) -> ChatService:
    """Dependency injection for ChatService from app.state.

    Raises:
        RuntimeError: If service is not initialized
    """
    service = getattr(request.app.state, "chat_service", None)
    if service is None:
        raise RuntimeError("ChatService not initialized. Check lifespan setup.")
    return service


def get_handler(request: Request) -> ChatHandler:
    """Dependency injection for ChatHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "chat_handler", None)
    if handler is None:
        raise RuntimeError("ChatHandler not initialized. Check lifespan setup.")
    return handler


def build_generation_backend() -> GenerationBackend:
    if settings.uses_bedrock:
        return BedrockGenerationBackend.create()
    return OllamaGenerationBackend.create()


def build_chat_service() -> ChatService:
    """Wire the chat service from settings."""
    if settings.conversation_store.lower() == "redis":
        conversation_store = RedisConversationStore.create()
        progress_store = RedisProgressStore.create()
    else:
        conversation_store = InMemoryConversationStore()
        progress_store = InMemoryProgressStore()

    return ChatService.create(
        generation_backend=build_generation_backend(),
        knowledge_base=KeywordKnowledgeBase.create(),
        conversation_store=conversation_store,
        progress_store=progress_store,
        cache=ResponseCache(),
    )


async def close_collaborators(service: ChatService) -> None:
    for resource in (service.generation_backend, service.conversation_store, service.progress_store):
        close = getattr(resource, "close", None)
        if close is not None:
            await close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores in app.state:
    1. Service (business logic) - stored in app.state.chat_service
    2. Handler (HTTP endpoints) - stored in app.state.chat_handler

    Cleanup:
        Drains background persistence, stops cache maintenance and closes
        clients on shutdown
    """
    service: ChatService | None = getattr(app.state, "chat_service", None)
    owns_service = service is None
    if owns_service:
        service = build_chat_service()

    service.cache.start()
    if owns_service and settings.cache_preload:
        count = service.cache.preload_common_responses()
        logger.info("Preloaded %d common responses", count)

    app.state.chat_service = service
    app.state.chat_handler = ChatHandler(chat_service=service)
    logger.info("Chat service initialized (model: %s)", service.model_name)

    yield

    await service.close()
    if owns_service:
        await close_collaborators(service)
    del app.state.chat_handler
    del app.state.chat_service
    logger.info("Chat service shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[ChatHandler, Depends(get_handler)]
ServiceDep = Annotated[ChatService, Depends(get_chat_service)]
