"""Error classification.

Maps raw failures (exceptions, HTTP status codes, responses) onto the
fixed ``ErrorKind`` taxonomy with severity, retryability and a canned
user-facing message.
"""

import asyncio
from typing import Any

import httpx
import redis

from fafsa_assistant.entities import ClassifiedError, ErrorContext, ErrorKind, ErrorSeverity
from fafsa_assistant.exceptions import ChatServiceError

USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NETWORK: "Unable to connect to the server. Please check your internet connection.",
    ErrorKind.SERVICE_UNAVAILABLE: "The AI service is temporarily unavailable. Please try again in a moment.",
    ErrorKind.AUTHENTICATION: "Please sign in to continue.",
    ErrorKind.VALIDATION: "Invalid request. Please check your input.",
    ErrorKind.RATE_LIMIT: "Too many requests. Please wait a moment before trying again.",
    ErrorKind.TIMEOUT: "The request took too long. Please try again.",
    ErrorKind.UNKNOWN: "An unexpected error occurred. Please try again.",
}

# Kinds that can never succeed on a plain retry.
NEVER_RETRY: frozenset[ErrorKind] = frozenset({ErrorKind.VALIDATION, ErrorKind.AUTHENTICATION})


def _status_of(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, httpx.Response):
        return raw.status_code
    if isinstance(raw, httpx.HTTPStatusError):
        return raw.response.status_code
    for attr in ("status_code", "status"):
        value = getattr(raw, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


class ErrorClassifier:
    """Deterministic classifier for pipeline failures.

    Example:
        ```python
        classifier = ErrorClassifier()
        error = classifier.classify(503, ErrorContext(action="send_chat_message"))
        error.kind       # ErrorKind.SERVICE_UNAVAILABLE
        error.retryable  # True
        ```
    """

    def classify(self, raw: Any, context: ErrorContext) -> ClassifiedError:
        """Classify a raw failure.

        Args:
            raw: An exception, an HTTP status code or an ``httpx.Response``
            context: Where the failure was observed

        Returns:
            ClassifiedError (already classified inputs are returned unchanged)
        """
        if isinstance(raw, ClassifiedError):
            return raw
        if isinstance(raw, ChatServiceError):
            return raw.error

        # httpx.TimeoutException subclasses TransportError and TimeoutError
        # subclasses OSError, so deadlines are checked first.
        timeouts = (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException, redis.TimeoutError)
        if isinstance(raw, timeouts):
            return self._build(ErrorKind.TIMEOUT, context, str(raw) or "Request timeout")

        status = _status_of(raw)
        if status is not None:
            return self.from_status(status, context, self._technical(raw, status))

        if isinstance(raw, (httpx.TransportError, redis.ConnectionError, ConnectionError, OSError)):
            return self._build(ErrorKind.NETWORK, context, str(raw) or "Network request failed")

        return self._build(ErrorKind.UNKNOWN, context, str(raw) or type(raw).__name__)

    def from_status(self, status: int, context: ErrorContext, technical: str | None = None) -> ClassifiedError:
        """Classify a non-2xx HTTP status."""
        technical = technical or f"HTTP {status}"
        if status in (401, 403):
            kind = ErrorKind.AUTHENTICATION
        elif status == 429:
            kind = ErrorKind.RATE_LIMIT
        elif status >= 500:
            kind = ErrorKind.SERVICE_UNAVAILABLE
        elif status >= 400:
            kind = ErrorKind.VALIDATION
        else:
            kind = ErrorKind.UNKNOWN
        return self._build(kind, context, technical)

    def validation_error(self, context: ErrorContext, user_message: str) -> ClassifiedError:
        """Build a Validation error for a failed pre-flight check."""
        return self._build(ErrorKind.VALIDATION, context, "Validation failed", user_message=user_message)

    @staticmethod
    def is_retryable(error: ClassifiedError) -> bool:
        return error.retryable and error.kind not in NEVER_RETRY

    @staticmethod
    def _technical(raw: Any, status: int) -> str:
        if isinstance(raw, (int, httpx.Response)):
            return f"HTTP {status}"
        return str(raw) or f"HTTP {status}"

    def _build(
        self,
        kind: ErrorKind,
        context: ErrorContext,
        technical: str,
        user_message: str | None = None,
    ) -> ClassifiedError:
        match kind:
            case ErrorKind.NETWORK:
                severity, recoverable, retryable = ErrorSeverity.HIGH, True, True
            case ErrorKind.TIMEOUT:
                severity, recoverable, retryable = ErrorSeverity.MEDIUM, True, True
            case ErrorKind.AUTHENTICATION:
                severity, recoverable, retryable = ErrorSeverity.MEDIUM, True, False
            case ErrorKind.RATE_LIMIT:
                severity, recoverable, retryable = ErrorSeverity.MEDIUM, True, True
            case ErrorKind.SERVICE_UNAVAILABLE:
                severity, recoverable, retryable = ErrorSeverity.HIGH, True, True
            case ErrorKind.VALIDATION:
                severity, recoverable, retryable = ErrorSeverity.LOW, True, False
            case ErrorKind.UNKNOWN:
                severity, recoverable, retryable = ErrorSeverity.MEDIUM, True, True

        return ClassifiedError(
            kind=kind,
            severity=severity,
            user_message=user_message or USER_MESSAGES[kind],
            technical_message=technical,
            recoverable=recoverable,
            retryable=retryable,
            context=context,
        )
