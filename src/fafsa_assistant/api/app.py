from typing import Any

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware

from fafsa_assistant.config import configure_logging, settings
from fafsa_assistant.dto import (
    CacheCleanupResponse,
    CacheStatsResponse,
    ChatHistoryResponse,
    ChatResponse,
    HealthCheckResponse,
    MessageItem,
    SendMessageRequest,
    ValidateMessageRequest,
    ValidationResponse,
)

from .dependencies import HandlerDep, ServiceDep, lifespan

API_VERSION = "0.1.0"
API_DESCRIPTION = "FAFSA assistant chat pipeline with caching, retries and PII redaction"


def create_app() -> FastAPI:
    """Build the FastAPI application.

    Pre-populating ``app.state.chat_service`` before startup makes the
    lifespan reuse it instead of wiring real backends.
    """
    app = FastAPI(
        title="FAFSA Assistant API",
        description=API_DESCRIPTION,
        version=API_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": "FAFSA Assistant API",
            "version": API_VERSION,
            "description": API_DESCRIPTION,
            "endpoints": {
                "chat": "/chat/message",
                "history": "/chat/history/{user_id}",
                "stats": "/cache/stats",
                "health": "/health",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthCheckResponse)
    async def health(handler: HandlerDep) -> HealthCheckResponse:
        return await handler.health_check()

    @app.post("/chat/message", response_model=ChatResponse)
    async def send_message(request: SendMessageRequest, handler: HandlerDep) -> ChatResponse:
        """Answer one student question."""
        return await handler.send_message(request)

    @app.post("/chat/validate", response_model=ValidationResponse)
    async def validate_message(request: ValidateMessageRequest, handler: HandlerDep) -> ValidationResponse:
        return await handler.validate_message(request)

    @app.get("/chat/welcome", response_model=MessageItem)
    async def welcome(
        service: ServiceDep,
        user_id: str | None = None,
        display_name: str | None = None,
    ) -> MessageItem:
        """Greeting for a new conversation."""
        return MessageItem.from_entity(service.create_welcome_message(user_id, display_name))

    @app.get("/chat/history/{user_id}", response_model=ChatHistoryResponse)
    async def get_history(
        user_id: str,
        handler: HandlerDep,
        limit: int = Query(50, description="Maximum number of turns (1-100)"),
    ) -> ChatHistoryResponse:
        """Recent messages of a signed-in user, oldest first."""
        return await handler.get_history(user_id, limit)

    @app.get("/cache/stats", response_model=CacheStatsResponse)
    async def cache_stats(handler: HandlerDep) -> CacheStatsResponse:
        return await handler.get_stats()

    @app.post("/cache/cleanup", response_model=CacheCleanupResponse)
    async def cache_cleanup(handler: HandlerDep) -> CacheCleanupResponse:
        """Delete expired entries now instead of waiting for the periodic sweep."""
        return await handler.cleanup_cache()

    @app.delete("/cache")
    async def clear_cache(handler: HandlerDep) -> dict[str, Any]:
        return await handler.clear_cache()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    configure_logging()
    uvicorn.run(
        "fafsa_assistant.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
