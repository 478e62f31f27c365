"""Exceptions raised across layer boundaries."""

from fafsa_assistant.entities import ClassifiedError


class BackendError(Exception):
    """A collaborator answered with a non-2xx status.

    Repositories raise this so the classifier sees one shape for HTTP
    failures regardless of the client library underneath.
    """

    def __init__(self, status_code: int, message: str = "") -> None:
        self.status_code = status_code
        self.message = message or f"HTTP {status_code}"
        super().__init__(self.message)


class ChatServiceError(Exception):
    """Terminal, unrecoverable failure of a chat operation.

    Carries the single ``ClassifiedError`` describing it.
    """

    def __init__(self, error: ClassifiedError) -> None:
        self.error = error
        super().__init__(error.technical_message)

    @property
    def kind(self):
        return self.error.kind
