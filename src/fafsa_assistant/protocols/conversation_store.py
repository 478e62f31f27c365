"""Conversation store protocol.

Defines the interface for persisting chat turns of signed-in users.

Implementations can include:
- Redis lists (default for deployments)
- In-memory (development and tests)
- DynamoDB or any document store
"""

from typing import Protocol, runtime_checkable

from fafsa_assistant.entities import ChatTurn


@runtime_checkable
class ConversationStore(Protocol):
    """Protocol for conversation persistence backends."""

    async def append(self, conversation_id: str, user_id: str, turn: ChatTurn) -> None:
        """Persist one turn.

        Args:
            conversation_id: Conversation the turn belongs to
            user_id: Owner of the conversation
            turn: Sanitized user message plus assistant message
        """
        ...

    async def query(self, user_id: str, limit: int) -> list[ChatTurn]:
        """Fetch the most recent turns of a user.

        Args:
            user_id: Owner of the conversations
            limit: Maximum number of turns to return

        Returns:
            Turns, newest first
        """
        ...

    async def health_check(self) -> bool:
        """Check if the store is accessible.

        Returns:
            True if healthy, False otherwise
        """
        ...
