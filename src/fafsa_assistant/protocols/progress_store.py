"""Progress store protocol."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ProgressStore(Protocol):
    """Protocol for per-user progress counters.

    Updates are fire-and-forget; failures never reach the user.
    """

    async def increment_interaction_count(self, user_id: str) -> int:
        """Count one more assistant interaction for a user.

        Args:
            user_id: The signed-in user

        Returns:
            The new interaction total
        """
        ...
