"""Retry outcome domain entity."""

from dataclasses import dataclass
from typing import Generic, TypeVar

from .errors import ClassifiedError

T = TypeVar("T")


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    """Tagged result of a retried boundary call.

    Exactly one of ``data`` (when ``success``) or ``error`` is meaningful.

    Attributes:
        success: Whether any attempt succeeded
        data: The operation's result on success
        error: Classification of the last failure otherwise
        attempts_made: Number of times the operation was invoked
    """

    success: bool
    attempts_made: int
    data: T | None = None
    error: ClassifiedError | None = None

    @classmethod
    def ok(cls, data: T, attempts_made: int) -> "RetryOutcome[T]":
        return cls(success=True, attempts_made=attempts_made, data=data)

    @classmethod
    def failed(cls, error: ClassifiedError, attempts_made: int) -> "RetryOutcome[T]":
        return cls(success=False, attempts_made=attempts_made, error=error)
