"""PII detection and redaction.

Best-effort, regex-based pattern matching. This is not a compliance-grade
detector: it catches the common shapes of identifiers, contact details and
financial numbers students paste into questions.
"""

import re
from dataclasses import dataclass, replace

from fafsa_assistant.entities import ChatMessage, PIIDetectionResult

GUEST_PREFIX = "guest_"


@dataclass(frozen=True)
class PIIMatcher:
    """One pattern and how to report it."""

    label: str
    pattern: re.Pattern[str]
    placeholder: str
    warning: str


# Every matcher always runs. Email goes first: the digit matchers would
# otherwise rewrite the local part and leave the rest of the address behind.
DEFAULT_MATCHERS: tuple[PIIMatcher, ...] = (
    PIIMatcher(
        label="email",
        pattern=re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
        placeholder="[EMAIL_REDACTED]",
        warning="Email address detected and removed for your privacy",
    ),
    PIIMatcher(
        label="ssn",
        pattern=re.compile(r"\b\d{3}-?\d{2}-?\d{4}\b"),
        placeholder="[SSN_REDACTED]",
        warning="Social Security Number detected and removed for your privacy",
    ),
    PIIMatcher(
        label="phone",
        pattern=re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b"),
        placeholder="[PHONE_REDACTED]",
        warning="Phone number detected and removed for your privacy",
    ),
    PIIMatcher(
        label="credit_card",
        pattern=re.compile(r"\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b"),
        placeholder="[CREDIT_CARD_REDACTED]",
        warning="Credit card number detected and removed for your privacy",
    ),
    PIIMatcher(
        label="bank_account",
        pattern=re.compile(r"\b\d{8,17}\b"),
        placeholder="[BANK_ACCOUNT_REDACTED]",
        warning="Bank account number detected and removed for your privacy",
    ),
    PIIMatcher(
        label="address",
        pattern=re.compile(
            r"\b\d+\s+[A-Za-z0-9\s,]+\b(?:Street|St|Avenue|Ave|Road|Rd|Drive|Dr|Lane|Ln|Boulevard|Blvd|Way|Court|Ct|Place|Pl)\b",
            re.IGNORECASE,
        ),
        placeholder="[ADDRESS_REDACTED]",
        warning="Street address detected and removed for your privacy",
    ),
    PIIMatcher(
        label="zip_code",
        pattern=re.compile(r"\b\d{5}(?:-\d{4})?\b"),
        placeholder="[ZIP_REDACTED]",
        warning="ZIP code detected and removed for your privacy",
    ),
    PIIMatcher(
        label="date_of_birth",
        pattern=re.compile(r"\b(?:0[1-9]|1[0-2])[-/](?:0[1-9]|[12]\d|3[01])[-/](?:19|20)\d{2}\b"),
        placeholder="[DOB_REDACTED]",
        warning="Date of birth detected and removed for your privacy",
    ),
    PIIMatcher(
        label="driver_license",
        pattern=re.compile(r"\b[A-Z]{1,2}\d{6,8}\b"),
        placeholder="[LICENSE_REDACTED]",
        warning="Driver license number detected and removed for your privacy",
    ),
)


def is_guest_user(user_id: str | None) -> bool:
    """Check whether a caller is anonymous or a guest session."""
    return not user_id or user_id.startswith(GUEST_PREFIX)


class PrivacyFilter:
    """Detects and redacts personal information in free text.

    Example:
        ```python
        result = PrivacyFilter().detect_and_redact("my ssn is 123-45-6789")
        result.has_pii          # True
        result.sanitized_text   # "my ssn is [SSN_REDACTED]"
        ```
    """

    def __init__(self, matchers: tuple[PIIMatcher, ...] = DEFAULT_MATCHERS) -> None:
        self._matchers = matchers

    def detect_and_redact(self, text: str) -> PIIDetectionResult:
        """Scan ``text`` with every matcher and redact all hits.

        Each matcher is tested against the original text, so a string that
        triggers two types reports both, and replacements accumulate in a
        single working copy.

        Args:
            text: Any user or assistant text

        Returns:
            PIIDetectionResult (never raises)
        """
        sanitized = text
        detected: list[str] = []
        warnings: list[str] = []

        for matcher in self._matchers:
            if matcher.pattern.search(text) is None:
                continue
            detected.append(matcher.label)
            warnings.append(matcher.warning)
            sanitized = matcher.pattern.sub(matcher.placeholder, sanitized)

        return PIIDetectionResult(
            has_pii=bool(detected),
            sanitized_text=sanitized,
            detected_types=frozenset(detected),
            warnings=warnings,
        )

    def validate_for_storage(self, text: str) -> tuple[bool, list[str]]:
        """Check that text is safe to persist as-is.

        Returns:
            (is_valid, issues)
        """
        result = self.detect_and_redact(text)
        if not result.has_pii:
            return True, []
        return False, [
            f"Detected PII types: {', '.join(sorted(result.detected_types))}",
            "Data contains personally identifiable information that should not be stored",
        ]

    def sanitize_for_storage(self, message: ChatMessage) -> ChatMessage:
        """Return a copy of ``message`` with its content redacted."""
        result = self.detect_and_redact(message.content)
        if not result.has_pii:
            return message
        metadata = {**message.metadata, "pii_detected": True}
        return replace(message, content=result.sanitized_text, metadata=metadata)
