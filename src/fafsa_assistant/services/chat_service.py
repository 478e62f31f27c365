"""Chat service for core business logic.

This service orchestrates one chat turn end to end: validation, PII
redaction, the response cache, best-effort knowledge lookup, generation
under retry, and fire-and-forget persistence of the turn.
"""

import asyncio
import logging
import time
import uuid

from fafsa_assistant.config import settings
from fafsa_assistant.entities import (
    CachedAnswer,
    ChatHistory,
    ChatMessage,
    ChatReply,
    ChatTurn,
    ClassifiedError,
    ErrorContext,
    ErrorKind,
    Sender,
    ValidationResult,
)
from fafsa_assistant.exceptions import ChatServiceError
from fafsa_assistant.models import PerformanceMetrics
from fafsa_assistant.protocols import (
    ConversationStore,
    GenerationBackend,
    KnowledgeLookup,
    ProgressStore,
)

from .background import BackgroundTaskRunner
from .citations import OFFICIAL_FAFSA_URL, format_source_attribution
from .privacy import PrivacyFilter, is_guest_user
from .response_cache import ResponseCache
from .retry import RetryCoordinator, RetryOptions

logger = logging.getLogger(__name__)

MAX_CONTEXT_DOCUMENTS = 3
MAX_HISTORY_LIMIT = 100
HISTORY_RETRY = RetryOptions(max_attempts=2, base_delay=1.0)

EMPTY_MESSAGE_ERROR = "Please enter a FAFSA question or topic you'd like help with."

PRIVACY_NOTICE_SUFFIX = "Your question has been processed safely without storing personal information."

WELCOME_MEMBER = (
    "Hi {name}! 👋 I'm your FAFSA assistant. I'm here to help you understand the Free "
    "Application for Federal Student Aid in plain English.\n\n"
    'Ask me anything about FAFSA - from basic questions like "What is FAFSA?" to specific help '
    "with forms, deadlines, or requirements. I can explain complex terms, help you avoid common "
    "mistakes, and guide you through each section.\n\n"
    "What would you like to know about FAFSA today?"
)

WELCOME_GUEST = (
    "Welcome to EducateFirstAI! 👋 I'm your FAFSA assistant, here to help you understand the "
    "Free Application for Federal Student Aid in plain English.\n\n"
    'Ask me anything about FAFSA - from basic questions like "What is FAFSA?" to specific help '
    "with forms, deadlines, or requirements. I can explain complex terms, help you avoid common "
    "mistakes, and guide you through each section.\n\n"
    "You can use me as a guest, or sign up to save your progress and conversation history.\n\n"
    "What would you like to know about FAFSA today?"
)


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


class ChatService:
    """Core chat orchestration service.

    This service depends on PROTOCOLS, not concrete implementations:
    - GenerationBackend: can be Ollama, Bedrock, etc.
    - KnowledgeLookup: keyword search, a vector index, etc.
    - ConversationStore / ProgressStore: Redis, in-memory, etc.

    A turn either resolves with an assistant message (possibly an error
    bubble) or, for invalid input only, raises ``ChatServiceError``.

    Example:
        ```python
        from fafsa_assistant.services import ChatService

        service = ChatService.create(
            generation_backend=OllamaGenerationBackend.create(),
            knowledge_base=KeywordKnowledgeBase.create(),
        )
        reply = await service.send_message("What is FAFSA?", user_id="u-1")
        reply.message.content
        ```
    """

    def __init__(
        self,
        generation_backend: GenerationBackend,
        knowledge_base: KnowledgeLookup,
        conversation_store: ConversationStore | None = None,
        progress_store: ProgressStore | None = None,
        cache: ResponseCache | None = None,
        privacy_filter: PrivacyFilter | None = None,
        retry_coordinator: RetryCoordinator | None = None,
        background: BackgroundTaskRunner | None = None,
        retry_options: RetryOptions | None = None,
        max_message_length: int | None = None,
        metrics: PerformanceMetrics | None = None,
        lookup_timeout: float | None = None,
    ) -> None:
        """Initialize the chat service.

        Args:
            generation_backend: Text-generation service (required).
            knowledge_base: Document search service (required).
            conversation_store: Where signed-in turns are persisted. None disables persistence.
            progress_store: Per-user interaction counters. None disables progress updates.
            cache: Response cache. If None, creates default.
            privacy_filter: PII redactor. If None, creates default.
            retry_coordinator: Retry coordinator. If None, creates default.
            background: Runner for fire-and-forget persistence. If None, creates default.
            retry_options: Retry policy for generation. Defaults to settings.
            max_message_length: Longest accepted question. Defaults to settings.
            metrics: Performance counters. If None, creates new.
            lookup_timeout: Deadline in seconds for the knowledge lookup. Defaults to settings.
        """
        self._generation = generation_backend
        self._knowledge = knowledge_base
        self._conversations = conversation_store
        self._progress = progress_store
        self._cache = cache if cache is not None else ResponseCache()
        self._privacy = privacy_filter if privacy_filter is not None else PrivacyFilter()
        self._retry = retry_coordinator if retry_coordinator is not None else RetryCoordinator()
        self._background = background if background is not None else BackgroundTaskRunner(self._retry)
        self._retry_options = retry_options if retry_options is not None else RetryOptions.from_settings()
        self._max_message_length = (
            max_message_length if max_message_length is not None else settings.max_message_length
        )
        self.metrics = metrics if metrics is not None else PerformanceMetrics()
        self._lookup_timeout = lookup_timeout if lookup_timeout is not None else settings.request_timeout

    @classmethod
    def create(
        cls,
        generation_backend: GenerationBackend,
        knowledge_base: KnowledgeLookup,
        conversation_store: ConversationStore | None = None,
        progress_store: ProgressStore | None = None,
        cache: ResponseCache | None = None,
    ) -> "ChatService":
        """Factory method to create ChatService with sensible defaults.

        Args:
            generation_backend: Text-generation service (required).
            knowledge_base: Document search service (required).
            conversation_store: Conversation persistence. Optional.
            progress_store: Progress counters. Optional.
            cache: Response cache. If None, creates one from settings.

        Returns:
            Configured ChatService instance
        """
        return cls(
            generation_backend=generation_backend,
            knowledge_base=knowledge_base,
            conversation_store=conversation_store,
            progress_store=progress_store,
            cache=cache,
        )

    @property
    def model_name(self) -> str:
        return self._generation.model_name

    @property
    def generation_backend(self) -> GenerationBackend:
        return self._generation

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def background(self) -> BackgroundTaskRunner:
        return self._background

    @property
    def conversation_store(self) -> ConversationStore | None:
        return self._conversations

    @property
    def progress_store(self) -> ProgressStore | None:
        return self._progress

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def validate_message(self, content: str) -> ValidationResult:
        """Check a question before any I/O happens."""
        if not content or not content.strip():
            return ValidationResult(is_valid=False, error=EMPTY_MESSAGE_ERROR)

        if len(content) > self._max_message_length:
            return ValidationResult(
                is_valid=False,
                error=f"Please limit your question to {self._max_message_length} characters or less.",
            )

        return ValidationResult(is_valid=True)

    # ------------------------------------------------------------------
    # Chat turn
    # ------------------------------------------------------------------
    async def send_message(
        self,
        content: str,
        user_id: str | None = None,
        conversation_id: str | None = None,
    ) -> ChatReply:
        """Answer one student question.

        Business logic:
        1. Validate the question (raises on invalid input)
        2. Redact PII from the question
        3. Answer from cache, or look up context and generate under retry
        4. Cache PII-free answers and prefix a privacy notice otherwise
        5. Persist the turn in the background for signed-in users

        Args:
            content: Raw question text
            user_id: Caller identity. None or ``guest_*`` means anonymous.
            conversation_id: Existing conversation, if any

        Returns:
            ChatReply with the assistant message, its sources and the
            conversation id

        Raises:
            ChatServiceError: If the question fails validation
        """
        started = time.perf_counter()
        context = ErrorContext(
            action="send_chat_message",
            user_id=user_id,
            conversation_id=conversation_id,
            extra={"message_length": len(content or ""), "has_conversation_id": conversation_id is not None},
        )

        validation = self.validate_message(content)
        if not validation.is_valid:
            raise ChatServiceError(self._retry.classifier.validation_error(context, validation.error))

        privacy = self._privacy.detect_and_redact(content)
        question = privacy.sanitized_text
        warnings = list(privacy.warnings)

        cache_key = self._cache.make_key(question, user_id)
        cached = self._cache.get(cache_key)

        if cached is not None:
            answer, sources = cached.content, list(cached.sources)
            from_cache = True
        else:
            from_cache = False
            answer, sources, error = await self._generate_answer(question, context)
            if error is not None:
                self.metrics.record_failure(error.kind.value, _elapsed_ms(started))
                return ChatReply(
                    message=self.create_error_message(error),
                    sources=[],
                    conversation_id=conversation_id,
                    privacy_warnings=warnings or None,
                )

            if not privacy.has_pii:
                self._cache.set(
                    cache_key,
                    CachedAnswer(content=answer, sources=tuple(sources)),
                    ttl=self._cache.ttl_for(question),
                )

        if warnings:
            notice = "⚠️ Privacy Notice: " + ". ".join(warnings) + ". " + PRIVACY_NOTICE_SUFFIX
            answer = f"{notice}\n\n{answer}"

        assistant_message = ChatMessage(
            content=answer,
            sender=Sender.ASSISTANT,
            metadata={
                "sources": list(sources),
                "privacy_warnings": warnings or None,
                "from_cache": from_cache,
            },
        )

        if user_id and not is_guest_user(user_id):
            conversation_id = conversation_id or str(uuid.uuid4())
            user_message = self._privacy.sanitize_for_storage(self.create_user_message(content))
            self._persist_turn(
                user_id,
                ChatTurn(user_message, assistant_message, conversation_id),
                context,
            )

        if from_cache:
            self.metrics.record_hit(_elapsed_ms(started))
        else:
            self.metrics.record_miss(_elapsed_ms(started))

        return ChatReply(
            message=assistant_message,
            sources=sources,
            conversation_id=conversation_id,
            privacy_warnings=warnings or None,
        )

    async def _generate_answer(
        self, question: str, context: ErrorContext
    ) -> tuple[str, list[str], ClassifiedError | None]:
        documents_context, sources = await self._lookup_context(question)

        started = time.perf_counter()
        outcome = await self._retry.with_retry(
            lambda: self._generation.generate(question, documents_context),
            context,
            self._retry_options,
        )
        if not outcome.success:
            return "", [], outcome.error

        generation = outcome.data
        usage = generation.usage
        self.metrics.record_generation(
            _elapsed_ms(started),
            usage.input_tokens if usage else 0,
            usage.output_tokens if usage else 0,
        )
        return generation.content + format_source_attribution(sources), sources, None

    async def _lookup_context(self, question: str) -> tuple[str | None, list[str]]:
        try:
            result = await asyncio.wait_for(self._knowledge.search(question), timeout=self._lookup_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Knowledge lookup timed out after %.1fs, answering without context", self._lookup_timeout
            )
            return None, [OFFICIAL_FAFSA_URL]
        except Exception as exc:
            # Lookup is best-effort; generation proceeds without context
            logger.warning("Knowledge lookup failed, answering without context: %s", exc)
            return None, [OFFICIAL_FAFSA_URL]

        documents = result.documents[:MAX_CONTEXT_DOCUMENTS]
        if not documents:
            return None, list(result.sources) or [OFFICIAL_FAFSA_URL]

        text = "\n\n".join(f"{doc.title}: {doc.content}" for doc in documents)
        return text, list(result.sources) or [OFFICIAL_FAFSA_URL]

    def _persist_turn(self, user_id: str, turn: ChatTurn, context: ErrorContext) -> None:
        if self._conversations is not None:
            store = self._conversations
            self._background.submit(
                "store_conversation_turn",
                lambda: store.append(turn.conversation_id, user_id, turn),
                context,
            )
        if self._progress is not None:
            progress = self._progress
            self._background.submit(
                "update_user_progress",
                lambda: progress.increment_interaction_count(user_id),
                context,
            )

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    async def get_history(self, user_id: str, limit: int = 50) -> ChatHistory:
        """Load the recent messages of a signed-in user.

        Args:
            user_id: Conversation owner
            limit: Maximum number of turns (1..100)

        Returns:
            ChatHistory with messages oldest first

        Raises:
            ChatServiceError: On an invalid limit or when the store keeps failing
        """
        context = ErrorContext(action="get_chat_history", user_id=user_id, extra={"limit": limit})

        if not 1 <= limit <= MAX_HISTORY_LIMIT:
            raise ChatServiceError(
                self._retry.classifier.validation_error(
                    context, f"History limit must be between 1 and {MAX_HISTORY_LIMIT}."
                )
            )

        if is_guest_user(user_id) or self._conversations is None:
            return ChatHistory(messages=[], has_more=False)

        store = self._conversations
        outcome = await self._retry.with_retry(
            lambda: store.query(user_id, limit + 1),
            context,
            HISTORY_RETRY,
        )
        if not outcome.success:
            raise ChatServiceError(outcome.error)

        turns = outcome.data
        messages: list[ChatMessage] = []
        for turn in reversed(turns[:limit]):
            messages.append(turn.user_message)
            messages.append(turn.assistant_message)
        return ChatHistory(messages=messages, has_more=len(turns) > limit)

    # ------------------------------------------------------------------
    # Message factories
    # ------------------------------------------------------------------
    @staticmethod
    def create_welcome_message(user_id: str | None = None, display_name: str | None = None) -> ChatMessage:
        """Greeting shown when a conversation starts."""
        if user_id and not is_guest_user(user_id):
            content = WELCOME_MEMBER.format(name=display_name or "there")
        else:
            content = WELCOME_GUEST
        return ChatMessage(
            content=content,
            sender=Sender.ASSISTANT,
            metadata={"sources": [OFFICIAL_FAFSA_URL]},
        )

    @staticmethod
    def create_user_message(content: str) -> ChatMessage:
        return ChatMessage(content=content.strip(), sender=Sender.USER)

    @staticmethod
    def create_error_message(error: ClassifiedError) -> ChatMessage:
        """Assistant-authored bubble describing a failed turn."""
        match error.kind:
            case ErrorKind.NETWORK:
                content = (
                    "I'm having trouble connecting right now. "
                    "Please check your internet connection and try again."
                )
            case ErrorKind.SERVICE_UNAVAILABLE:
                content = "I'm temporarily unavailable. Please try again in a moment."
            case ErrorKind.TIMEOUT:
                content = "That took longer than expected. Please try asking your question again."
            case ErrorKind.RATE_LIMIT:
                content = "I'm getting a lot of questions right now. Please wait a moment and try again."
            case ErrorKind.VALIDATION:
                content = error.user_message
            case _:
                content = "I encountered an issue processing your request. Please try again."

        return ChatMessage(
            content=content,
            sender=Sender.ASSISTANT,
            metadata={
                "is_error": True,
                "error_type": error.kind.value,
                "error_severity": error.severity.value,
                "recoverable": error.recoverable,
                "retryable": error.retryable,
                "recovery_suggestions": error.recovery_suggestions,
            },
        )

    async def close(self) -> None:
        """Wait for queued persistence and stop cache maintenance."""
        await self._background.drain()
        await self._cache.close()
