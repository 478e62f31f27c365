from dataclasses import dataclass, field


@dataclass
class PerformanceMetrics:
    """Track performance metrics for chat turns."""

    total_requests: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    failures: int = 0
    total_response_time_ms: float = 0.0
    generation_calls: int = 0
    total_generation_time_ms: float = 0.0
    input_tokens: int = 0
    output_tokens: int = 0
    errors_by_kind: dict[str, int] = field(default_factory=dict)

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        lookups = self.cache_hits + self.cache_misses
        if lookups == 0:
            return 0.0
        return self.cache_hits / lookups

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return (self.total_requests - self.failures) / self.total_requests

    @property
    def avg_response_time_ms(self) -> float:
        """Calculate average turn latency."""
        if self.total_requests == 0:
            return 0.0
        return self.total_response_time_ms / self.total_requests

    @property
    def avg_generation_time_ms(self) -> float:
        if self.generation_calls == 0:
            return 0.0
        return self.total_generation_time_ms / self.generation_calls

    def record_hit(self, response_time_ms: float) -> None:
        """Record a turn answered from cache."""
        self.total_requests += 1
        self.cache_hits += 1
        self.total_response_time_ms += response_time_ms

    def record_miss(self, response_time_ms: float) -> None:
        """Record a turn answered by the generation backend."""
        self.total_requests += 1
        self.cache_misses += 1
        self.total_response_time_ms += response_time_ms

    def record_failure(self, kind: str, response_time_ms: float) -> None:
        """Record a turn that ended with an error bubble."""
        self.total_requests += 1
        self.cache_misses += 1
        self.failures += 1
        self.total_response_time_ms += response_time_ms
        self.errors_by_kind[kind] = self.errors_by_kind.get(kind, 0) + 1

    def record_generation(self, duration_ms: float, input_tokens: int = 0, output_tokens: int = 0) -> None:
        """Record a generation backend call."""
        self.generation_calls += 1
        self.total_generation_time_ms += duration_ms
        self.input_tokens += input_tokens
        self.output_tokens += output_tokens

    def to_dict(self) -> dict[str, float | int | dict[str, int]]:
        """Convert metrics to dictionary."""
        return {
            "total_requests": self.total_requests,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "failures": self.failures,
            "hit_rate": self.hit_rate,
            "success_rate": self.success_rate,
            "avg_response_time_ms": self.avg_response_time_ms,
            "generation_calls": self.generation_calls,
            "avg_generation_time_ms": self.avg_generation_time_ms,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "errors_by_kind": dict(self.errors_by_kind),
        }
