"""In-process response cache for assistant answers.

Keys are derived from the normalized (redacted) question text and the
caller's scope, so guest and signed-in answers never mix. Entries expire
after a TTL and the store evicts the least-recently-accessed entry when
full.
"""

import asyncio
import json
import logging
import time
from collections.abc import Callable
from dataclasses import asdict, is_dataclass
from typing import Any

from fafsa_assistant.config import settings
from fafsa_assistant.entities import CacheEntry, CacheStats, CachedAnswer

from .citations import OFFICIAL_FAFSA_URL

logger = logging.getLogger(__name__)

# Common FAFSA questions that are cached longer
COMMON_QUERIES: tuple[str, ...] = (
    "what is fafsa",
    "fafsa requirements",
    "fafsa deadlines",
    "dependency status",
    "federal student aid",
    "pell grant",
    "student loans",
    "fafsa documents needed",
    "how to fill out fafsa",
    "fafsa eligibility",
)

PRELOADED_RESPONSES: tuple[tuple[str, str], ...] = (
    (
        "what is fafsa",
        "The FAFSA (Free Application for Federal Student Aid) is a form that students fill out "
        "to apply for federal financial aid for college. It helps determine your eligibility "
        "for grants, loans, and work-study programs.",
    ),
    (
        "fafsa requirements",
        "To complete the FAFSA, you need your Social Security number, tax returns, bank "
        "statements, investment records, and records of untaxed income. You must be a U.S. "
        "citizen or eligible non-citizen.",
    ),
    (
        "dependency status",
        "Your dependency status determines whose financial information you need to provide on "
        "the FAFSA. If you're under 24, unmarried, and don't meet other independence criteria, "
        "you're considered dependent.",
    ),
    (
        "fafsa deadlines",
        "The federal FAFSA deadline is June 30th, but many states and schools have earlier "
        "deadlines. Submit your FAFSA as early as possible after October 1st for the best aid "
        "opportunities.",
    ),
    (
        "pell grant",
        "Pell Grants are federal grants that don't need to be repaid. Eligibility is based on "
        "financial need, cost of attendance, and enrollment status.",
    ),
)


def normalize_query(query: str) -> str:
    """Lowercase and trim a question for key derivation."""
    return query.lower().strip()


class ResponseCache:
    """TTL + LRU key/value store with hit/miss counters.

    Single-threaded cooperative use only: none of the methods suspend, so a
    read followed by a write inside one coroutine cannot interleave with
    another coroutine.

    Example:
        ```python
        cache = ResponseCache()
        key = cache.make_key("What is FAFSA?", user_id="u-1")
        cache.set(key, CachedAnswer("..."), ttl=cache.ttl_for("What is FAFSA?"))
        cache.get(key)

        # Periodic cleanup on the running event loop
        async with ResponseCache() as cache:
            ...
        ```
    """

    def __init__(
        self,
        max_entries: int | None = None,
        default_ttl: float | None = None,
        common_ttl: float | None = None,
        cleanup_interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            max_entries: Capacity. Defaults to settings.
            default_ttl: TTL in seconds for ordinary questions. Defaults to settings.
            common_ttl: TTL in seconds for common FAFSA questions. Defaults to settings.
            cleanup_interval: Seconds between background sweeps. Defaults to settings.
            clock: Time source in seconds (injectable for tests).
        """
        self._max_entries = max_entries or settings.cache_max_entries
        self._default_ttl = default_ttl or settings.cache_default_ttl
        self._common_ttl = common_ttl or settings.cache_common_ttl
        self._cleanup_interval = cleanup_interval or settings.cache_cleanup_interval
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._cleanup_task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Key and TTL policy
    # ------------------------------------------------------------------
    @staticmethod
    def make_key(query: str, user_id: str | None = None) -> str:
        """Derive the cache key for a question in a caller scope.

        Args:
            query: Question text (already redacted)
            user_id: Caller identity; None means the shared global scope

        Returns:
            ``user:<id>:<normalized>`` or ``global:<normalized>``
        """
        normalized = normalize_query(query)
        if user_id:
            return f"user:{user_id}:{normalized}"
        return f"global:{normalized}"

    @staticmethod
    def is_common_query(query: str) -> bool:
        """Check if a question is one of the common FAFSA questions."""
        normalized = normalize_query(query)
        if not normalized:
            return False
        return any(common in normalized or normalized in common for common in COMMON_QUERIES)

    def ttl_for(self, query: str) -> float:
        """Get the TTL in seconds for a question."""
        if self.is_common_query(query):
            return self._common_ttl
        return self._default_ttl

    # ------------------------------------------------------------------
    # Store operations
    # ------------------------------------------------------------------
    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Insert or overwrite an entry.

        Args:
            key: Cache key (see ``make_key``)
            value: Value to store
            ttl: Time-to-live in seconds. Defaults to the baseline TTL.
        """
        if key not in self._entries and len(self._entries) >= self._max_entries:
            self._evict_least_recently_used()

        now = self._clock()
        self._entries[key] = CacheEntry(
            data=value,
            created_at=now,
            ttl=ttl or self._default_ttl,
            access_count=0,
            last_accessed_at=now,
        )

    def get(self, key: str) -> Any | None:
        """Return a live value, or None on a miss.

        Expired entries are deleted when touched and count as misses.
        """
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        now = self._clock()
        if entry.is_expired(now):
            del self._entries[key]
            self._misses += 1
            return None

        entry.access_count += 1
        entry.last_accessed_at = now
        self._hits += 1
        return entry.data

    def has(self, key: str) -> bool:
        """Check for a live entry without touching counters."""
        entry = self._entries.get(key)
        if entry is None:
            return False

        if entry.is_expired(self._clock()):
            del self._entries[key]
            return False

        return True

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Drop every entry and reset counters."""
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def cleanup(self) -> int:
        """Delete all expired entries.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]

        if expired:
            logger.debug("Cache cleanup removed %d expired entries", len(expired))
        return len(expired)

    def _evict_least_recently_used(self) -> None:
        if not self._entries:
            return
        oldest_key = min(self._entries, key=lambda k: self._entries[k].last_accessed_at)
        del self._entries[oldest_key]
        logger.debug("Cache full, evicted %s", oldest_key)

    def preload_common_responses(self, ttl: float | None = None) -> int:
        """Seed canned answers to common questions in the global scope.

        Keys keep punctuation, so each phrase is stored both bare and as a
        question (``what is fafsa`` and ``what is fafsa?``).

        Returns:
            Number of entries added
        """
        ttl = ttl or settings.cache_preload_ttl
        added = 0
        for phrase, response in PRELOADED_RESPONSES:
            answer = CachedAnswer(content=response, sources=(OFFICIAL_FAFSA_URL,))
            for query in (phrase, f"{phrase}?"):
                self.set(self.make_key(query), answer, ttl=ttl)
                added += 1
        return added

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------
    def stats(self) -> CacheStats:
        """Get cache statistics."""
        total = self._hits + self._misses
        created = [entry.created_at for entry in self._entries.values()]
        return CacheStats(
            entries=len(self._entries),
            hit_rate=self._hits / total if total else 0.0,
            hits=self._hits,
            misses=self._misses,
            approx_memory_bytes=self._estimate_memory_usage(),
            oldest_entry=min(created) if created else None,
            newest_entry=max(created) if created else None,
        )

    def _estimate_memory_usage(self) -> int:
        # Rough: UTF-16-ish key and JSON payload sizes plus fixed metadata overhead
        total = 0
        for key, entry in self._entries.items():
            data = asdict(entry.data) if is_dataclass(entry.data) else entry.data
            total += len(key) * 2
            total += len(json.dumps(data, default=str)) * 2
            total += 64
        return total

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        """Schedule periodic cleanup on the running event loop."""
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.get_running_loop().create_task(self._cleanup_loop())

    async def close(self) -> None:
        """Stop periodic cleanup."""
        if self._cleanup_task is None:
            return
        self._cleanup_task.cancel()
        try:
            await self._cleanup_task
        except asyncio.CancelledError:
            pass
        self._cleanup_task = None

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self._cleanup_interval)
            self.cleanup()

    async def __aenter__(self) -> "ResponseCache":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def is_running(self) -> bool:
        return self._cleanup_task is not None and not self._cleanup_task.done()
