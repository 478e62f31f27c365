"""Fire-and-forget tasks for best-effort side effects.

Conversation persistence and progress updates must never delay or fail a
chat turn. They are queued here as asyncio tasks with their own small
retry policy; outcomes are logged and failures reported through an
explicit hook.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fafsa_assistant.entities import ClassifiedError, ErrorContext

from .retry import RetryCoordinator, RetryOptions

logger = logging.getLogger(__name__)

FailureHook = Callable[[str, ClassifiedError], None]

DEFAULT_BACKGROUND_RETRY = RetryOptions(max_attempts=2, base_delay=0.5, max_delay=2.0)


def log_failure(name: str, error: ClassifiedError) -> None:
    logger.warning("Background task %s gave up: %s", name, error.to_log_dict())


class BackgroundTaskRunner:
    """Schedules best-effort coroutines without awaiting them.

    Example:
        ```python
        runner = BackgroundTaskRunner(RetryCoordinator())
        runner.submit("store_turn", lambda: store.append(cid, uid, turn), context)
        ...
        await runner.drain()  # on shutdown
        ```
    """

    def __init__(
        self,
        retry_coordinator: RetryCoordinator | None = None,
        options: RetryOptions = DEFAULT_BACKGROUND_RETRY,
        on_failure: FailureHook = log_failure,
    ) -> None:
        """Initialize the runner.

        Args:
            retry_coordinator: Retry coordinator. If None, creates default.
            options: Retry policy applied to every task.
            on_failure: Called once per task that exhausted its retries.
        """
        self._retry = retry_coordinator if retry_coordinator is not None else RetryCoordinator()
        self._options = options
        self._on_failure = on_failure
        self._tasks: set[asyncio.Task] = set()
        self.completed = 0
        self.failed = 0

    def submit(
        self,
        name: str,
        operation: Callable[[], Awaitable[Any]],
        context: ErrorContext,
    ) -> asyncio.Task:
        """Schedule ``operation`` on the running loop and return immediately."""
        task = asyncio.get_running_loop().create_task(self._run(name, operation, context), name=name)
        # Keep a strong reference until the task finishes
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, name: str, operation: Callable[[], Awaitable[Any]], context: ErrorContext) -> None:
        outcome = await self._retry.with_retry(operation, context, self._options)
        if outcome.success:
            self.completed += 1
            logger.debug("Background task %s done in %d attempt(s)", name, outcome.attempts_made)
            return

        self.failed += 1
        try:
            self._on_failure(name, outcome.error)
        except Exception:
            logger.exception("Failure hook raised for background task %s", name)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every queued task to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
