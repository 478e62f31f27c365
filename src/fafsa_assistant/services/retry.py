"""Retry with deterministic exponential backoff.

This is the classification boundary of the pipeline: the operation may
raise anything, the caller only ever sees a tagged ``RetryOutcome``.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from fafsa_assistant.config import settings
from fafsa_assistant.entities import ClassifiedError, ErrorContext, RetryOutcome

from .errors import NEVER_RETRY, ErrorClassifier

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryPredicate = Callable[[ClassifiedError], bool]
Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryOptions:
    """Retry policy for one boundary call.

    Attributes:
        max_attempts: Upper bound on invocations (>= 1)
        base_delay: Delay in seconds before the second attempt
        max_delay: Cap on any single delay
        backoff_multiplier: Growth factor between consecutive delays
        retry_predicate: Extra caller filter on classified errors
        timeout: Per-attempt deadline in seconds; expiry counts as a Timeout
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    backoff_multiplier: float = 2.0
    retry_predicate: RetryPredicate | None = None
    timeout: float | None = None

    @classmethod
    def from_settings(cls, **overrides) -> "RetryOptions":
        values = {
            "max_attempts": settings.retry_max_attempts,
            "base_delay": settings.retry_base_delay,
            "max_delay": settings.retry_max_delay,
            "backoff_multiplier": settings.retry_backoff_multiplier,
            "timeout": settings.request_timeout,
        }
        values.update(overrides)
        return cls(**values)

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after failed attempt number ``attempt`` (1-based)."""
        return min(self.base_delay * self.backoff_multiplier ** (attempt - 1), self.max_delay)


class RetryCoordinator:
    """Runs async operations with bounded, classified retries.

    Example:
        ```python
        coordinator = RetryCoordinator()
        outcome = await coordinator.with_retry(
            lambda: backend.generate(prompt),
            ErrorContext(action="generate"),
            RetryOptions(max_attempts=3, base_delay=1.0),
        )
        if outcome.success:
            ...
        ```
    """

    def __init__(
        self,
        classifier: ErrorClassifier | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize the coordinator.

        Args:
            classifier: Error classifier. If None, creates default.
            sleep: Async sleep used between attempts (injectable for tests).
        """
        self._classifier = classifier if classifier is not None else ErrorClassifier()
        self._sleep = sleep

    @property
    def classifier(self) -> ErrorClassifier:
        return self._classifier

    async def with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        context: ErrorContext,
        options: RetryOptions | None = None,
    ) -> RetryOutcome[T]:
        """Execute ``operation`` until it succeeds or the policy gives up.

        Validation and Authentication failures are never retried, whatever
        the caller's predicate says.

        Args:
            operation: Zero-argument coroutine factory
            context: Error context attached to any classified failure
            options: Retry policy. Defaults to ``RetryOptions()``.

        Returns:
            RetryOutcome with the result or the last classified error
        """
        options = options if options is not None else RetryOptions()
        max_attempts = max(1, options.max_attempts)

        attempt = 0
        while True:
            attempt += 1
            try:
                if options.timeout is not None:
                    result = await asyncio.wait_for(operation(), timeout=options.timeout)
                else:
                    result = await operation()
                if attempt > 1:
                    logger.info("%s succeeded after %d attempts", context.action, attempt)
                return RetryOutcome.ok(result, attempts_made=attempt)
            except Exception as exc:
                error = self._classifier.classify(exc, context)

            if not self._should_retry(error, options) or attempt >= max_attempts:
                logger.warning(
                    "%s failed after %d attempt(s): %s (%s)",
                    context.action,
                    attempt,
                    error.kind.value,
                    error.technical_message,
                )
                return RetryOutcome.failed(error, attempts_made=attempt)

            delay = options.delay_for(attempt)
            logger.info(
                "%s attempt %d failed with %s, retrying in %.2fs",
                context.action,
                attempt,
                error.kind.value,
                delay,
            )
            await self._sleep(delay)

    def _should_retry(self, error: ClassifiedError, options: RetryOptions) -> bool:
        if error.kind in NEVER_RETRY:
            return False
        if not self._classifier.is_retryable(error):
            return False
        if options.retry_predicate is not None and not options.retry_predicate(error):
            return False
        return True
