"""Knowledge lookup protocol.

Defines the interface for document search over official FAFSA material.
Lookups are best-effort: callers degrade to generation without context
when a lookup fails.
"""

from typing import Protocol, runtime_checkable

from fafsa_assistant.entities import SearchResult


@runtime_checkable
class KnowledgeLookup(Protocol):
    """Protocol for knowledge search services."""

    async def search(self, query: str) -> SearchResult:
        """Find documents relevant to a query.

        Args:
            query: The (redacted) student question

        Returns:
            Matching documents, best first, with their source URLs
        """
        ...
