"""PII detection domain entity."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PIIDetectionResult:
    """Result of scanning one text for personal information.

    Attributes:
        has_pii: Whether any matcher fired
        sanitized_text: Input with every match replaced by a typed placeholder
        detected_types: Labels of the matchers that fired
        warnings: User-facing notices, one per detected type
    """

    has_pii: bool
    sanitized_text: str
    detected_types: frozenset[str] = field(default_factory=frozenset)
    warnings: list[str] = field(default_factory=list)
