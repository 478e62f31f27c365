"""HTTP handlers for chat and cache operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes and error mapping.
"""

import logging

from fastapi import HTTPException, status

from fafsa_assistant.dto import (
    CacheCleanupResponse,
    CacheStatsResponse,
    ChatHistoryResponse,
    ChatResponse,
    ErrorDetail,
    HealthCheckResponse,
    MessageItem,
    SendMessageRequest,
    ValidateMessageRequest,
    ValidationResponse,
)
from fafsa_assistant.entities import ErrorKind
from fafsa_assistant.exceptions import ChatServiceError
from fafsa_assistant.services import ChatService

logger = logging.getLogger(__name__)


def _http_status_for(kind: ErrorKind) -> int:
    match kind:
        case ErrorKind.VALIDATION:
            return status.HTTP_400_BAD_REQUEST
        case ErrorKind.AUTHENTICATION:
            return status.HTTP_401_UNAUTHORIZED
        case _:
            return status.HTTP_503_SERVICE_UNAVAILABLE


def _to_http_exception(exc: ChatServiceError) -> HTTPException:
    detail = ErrorDetail(**exc.error.to_log_dict())
    return HTTPException(status_code=_http_status_for(exc.kind), detail=detail.model_dump())


class ChatHandler:
    """HTTP handlers for chat operations.

    This handler delegates business logic to ChatService
    and handles HTTP-specific concerns like:
    - Converting entities to DTOs
    - Mapping classified errors to status codes

    Example:
        ```python
        handler = ChatHandler(chat_service=service)

        @app.post("/chat/message", response_model=ChatResponse)
        async def send_message(request: SendMessageRequest):
            return await handler.send_message(request)
        ```
    """

    def __init__(self, chat_service: ChatService) -> None:
        """Initialize the chat handler.

        Args:
            chat_service: The chat service for business logic (required).
        """
        self._chat = chat_service

    async def send_message(self, request: SendMessageRequest) -> ChatResponse:
        """Handle POST /chat/message requests.

        Generation failures come back as a 200 with an error bubble; only
        invalid input is rejected with a non-2xx status.

        Raises:
            HTTPException: 400 for invalid input, 401/503 for other terminal failures
        """
        try:
            reply = await self._chat.send_message(
                request.content,
                user_id=request.user_id,
                conversation_id=request.conversation_id,
            )
        except ChatServiceError as e:
            logger.info("Rejected chat message: %s", e.error.to_log_dict())
            raise _to_http_exception(e) from e

        return ChatResponse(
            message=MessageItem.from_entity(reply.message),
            sources=reply.sources,
            conversation_id=reply.conversation_id,
            privacy_warnings=reply.privacy_warnings,
        )

    async def validate_message(self, request: ValidateMessageRequest) -> ValidationResponse:
        result = self._chat.validate_message(request.content)
        return ValidationResponse(is_valid=result.is_valid, error=result.error)

    async def get_history(self, user_id: str, limit: int) -> ChatHistoryResponse:
        """Handle GET /chat/history/{user_id} requests."""
        try:
            history = await self._chat.get_history(user_id, limit)
        except ChatServiceError as e:
            logger.warning("History lookup failed: %s", e.error.to_log_dict())
            raise _to_http_exception(e) from e

        return ChatHistoryResponse(
            messages=[MessageItem.from_entity(message) for message in history.messages],
            has_more=history.has_more,
        )

    async def get_stats(self) -> CacheStatsResponse:
        stats = self._chat.cache.stats()
        return CacheStatsResponse(
            entries=stats.entries,
            hits=stats.hits,
            misses=stats.misses,
            hit_rate=stats.hit_rate,
            approx_memory_bytes=stats.approx_memory_bytes,
            performance=self._chat.metrics.to_dict(),
        )

    async def cleanup_cache(self) -> CacheCleanupResponse:
        return CacheCleanupResponse(removed=self._chat.cache.cleanup())

    async def clear_cache(self) -> dict:
        """Handle DELETE /cache requests.

        Returns:
            Dict with clear operation result
        """
        count = len(self._chat.cache)
        self._chat.cache.clear()
        return {
            "success": True,
            "deleted_count": count,
            "message": "Cache cleared successfully",
        }

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests."""
        store = self._chat.conversation_store
        store_healthy = await store.health_check() if store is not None else None

        return HealthCheckResponse(
            status="degraded" if store_healthy is False else "healthy",
            generation_model=self._chat.model_name,
            conversation_store_healthy=store_healthy,
            cache_entries=len(self._chat.cache),
        )
