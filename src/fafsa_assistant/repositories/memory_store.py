"""In-memory stores for development and tests."""

from collections import defaultdict, deque
from datetime import datetime, timezone

from fafsa_assistant.entities import ChatTurn

from .redis_store import MAX_STORED_TURNS


class InMemoryConversationStore:
    """Process-local implementation of ConversationStore protocol.

    Turns are kept newest first and nothing survives a restart.
    """

    def __init__(self, max_turns: int = MAX_STORED_TURNS) -> None:
        self._turns: dict[str, deque[ChatTurn]] = defaultdict(lambda: deque(maxlen=max_turns))

    async def append(self, conversation_id: str, user_id: str, turn: ChatTurn) -> None:
        if turn.conversation_id != conversation_id:
            turn = ChatTurn(turn.user_message, turn.assistant_message, conversation_id)
        self._turns[user_id].appendleft(turn)

    async def query(self, user_id: str, limit: int) -> list[ChatTurn]:
        turns = self._turns.get(user_id)
        if not turns:
            return []
        return list(turns)[:limit]

    async def clear(self, user_id: str) -> None:
        self._turns.pop(user_id, None)

    async def health_check(self) -> bool:
        return True


class InMemoryProgressStore:
    """Process-local implementation of ProgressStore protocol."""

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}
        self._updated_at: dict[str, datetime] = {}

    async def increment_interaction_count(self, user_id: str) -> int:
        self._counts[user_id] = self._counts.get(user_id, 0) + 1
        self._updated_at[user_id] = datetime.now(timezone.utc)
        return self._counts[user_id]

    async def get_interaction_count(self, user_id: str) -> int:
        return self._counts.get(user_id, 0)
