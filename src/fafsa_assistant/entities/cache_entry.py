"""Response cache domain entities."""

from dataclasses import dataclass
from typing import Any


@dataclass
class CacheEntry:
    """A single value held by the response cache.

    Unlike most entities this one is mutable: the cache bumps
    ``access_count`` and ``last_accessed_at`` on every hit.

    Attributes:
        data: The cached value
        created_at: Clock reading when the entry was stored (seconds)
        ttl: Time-to-live in seconds
        access_count: Number of hits served from this entry
        last_accessed_at: Clock reading of the last hit (or of creation)
    """

    data: Any
    created_at: float
    ttl: float
    access_count: int = 0
    last_accessed_at: float = 0.0

    def is_expired(self, now: float) -> bool:
        """Check whether the entry has outlived its TTL at ``now``."""
        return now - self.created_at > self.ttl


@dataclass(frozen=True)
class CachedAnswer:
    """Assistant answer stored in the response cache.

    Attributes:
        content: Answer text, source attribution included
        sources: Citations captured when the answer was generated
    """

    content: str
    sources: tuple[str, ...] = ()


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time cache statistics."""

    entries: int
    hit_rate: float
    hits: int
    misses: int
    approx_memory_bytes: int
    oldest_entry: float | None = None
    newest_entry: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert stats to dictionary."""
        return {
            "entries": self.entries,
            "hit_rate": self.hit_rate,
            "hits": self.hits,
            "misses": self.misses,
            "approx_memory_bytes": self.approx_memory_bytes,
            "oldest_entry": self.oldest_entry,
            "newest_entry": self.newest_entry,
        }
