"""Classified error domain entities.

One tagged record replaces a hierarchy of error subclasses: the ``kind``
field carries the taxonomy and code branches on it with ``match``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Fixed taxonomy of pipeline failures."""

    NETWORK = "Network"
    SERVICE_UNAVAILABLE = "ServiceUnavailable"
    AUTHENTICATION = "Authentication"
    VALIDATION = "Validation"
    RATE_LIMIT = "RateLimit"
    TIMEOUT = "Timeout"
    UNKNOWN = "Unknown"


class ErrorSeverity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


@dataclass(frozen=True)
class ErrorContext:
    """Where and for whom a failure happened.

    Attributes:
        action: Name of the operation that failed (e.g. ``send_chat_message``)
        timestamp: When the context was captured (UTC)
        user_id: Caller identity, if any
        conversation_id: Conversation the operation belongs to, if any
        extra: Free-form diagnostic data
    """

    action: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    conversation_id: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "timestamp": self.timestamp.isoformat(),
            "user_id": self.user_id,
            "conversation_id": self.conversation_id,
            "extra": dict(self.extra),
        }


_RECOVERY_SUGGESTIONS: dict[ErrorKind, tuple[str, ...]] = {
    ErrorKind.NETWORK: (
        "Check your internet connection",
        "Try refreshing the page",
        "Switch to a different network if available",
    ),
    ErrorKind.SERVICE_UNAVAILABLE: (
        "Wait a few minutes and try again",
        "Contact support if the problem persists",
    ),
    ErrorKind.AUTHENTICATION: (
        "Sign in to your account",
        "Reset your password if needed",
    ),
    ErrorKind.VALIDATION: (
        "Double-check your input",
        "Keep your question under the length limit",
    ),
    ErrorKind.RATE_LIMIT: (
        "Wait a moment before trying again",
        "Reduce the frequency of your requests",
    ),
    ErrorKind.TIMEOUT: (
        "Try again with a stable connection",
        "Break long questions into smaller ones",
    ),
}


@dataclass(frozen=True)
class ClassifiedError:
    """A failure normalized into the fixed taxonomy.

    Created once where the failure is first observed and never mutated.

    Attributes:
        kind: Taxonomy tag
        severity: How bad the failure is for the user
        user_message: Canned, user-facing explanation
        technical_message: Diagnostic text for logs
        recoverable: Whether the user can carry on after this failure
        retryable: Whether repeating the same request may succeed
        context: Where the failure happened
    """

    kind: ErrorKind
    severity: ErrorSeverity
    user_message: str
    technical_message: str
    recoverable: bool
    retryable: bool
    context: ErrorContext

    @property
    def recovery_suggestions(self) -> list[str]:
        """Hints the UI can show next to the error."""
        return list(
            _RECOVERY_SUGGESTIONS.get(
                self.kind,
                ("Try refreshing the page", "Contact support if the problem continues"),
            )
        )

    def to_log_dict(self) -> dict[str, Any]:
        """Structured payload for logging."""
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "message": self.technical_message,
            "user_message": self.user_message,
            "recoverable": self.recoverable,
            "retryable": self.retryable,
            "context": self.context.to_dict(),
        }
