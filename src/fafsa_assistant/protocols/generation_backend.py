"""Generation backend protocol.

Defines the interface for any remote text-generation service that can
answer a student's question.

Implementations can include:
- Ollama (local, default)
- Amazon Bedrock
- Any other hosted model API
"""

from typing import Protocol, runtime_checkable

from fafsa_assistant.entities import Generation


@runtime_checkable
class GenerationBackend(Protocol):
    """Protocol for text-generation services.

    Implementations raise on failure (``BackendError`` for non-2xx answers,
    transport or timeout exceptions otherwise); the retry coordinator turns
    those into classified outcomes.
    """

    @property
    def model_name(self) -> str:
        """Return the name/identifier of the model.

        Returns:
            Model name or identifier
        """
        ...

    async def generate(self, prompt: str, context: str | None = None) -> Generation:
        """Generate an answer to a question.

        Args:
            prompt: The (redacted) student question
            context: Optional reference material to ground the answer

        Returns:
            The generated text and token usage
        """
        ...
