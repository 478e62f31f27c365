"""Ollama-based generation backend.

Uses Ollama's local chat API to answer questions. Ollama serves models
locally without API keys, which makes it the default for development.

Requirements:
    - Ollama installed: https://ollama.com
    - Model pulled: `ollama pull llama3.1`
    - Ollama running: `ollama serve` (usually runs automatically)
"""

import httpx

from fafsa_assistant.config import settings
from fafsa_assistant.entities import Generation, TokenUsage
from fafsa_assistant.exceptions import BackendError

from .prompts import FAFSA_SYSTEM_PROMPT, build_user_prompt


class OllamaGenerationBackend:
    """Ollama-based implementation of GenerationBackend protocol.

    This class satisfies the GenerationBackend protocol through structural
    typing - no explicit inheritance needed.

    Non-2xx answers raise ``BackendError`` with the HTTP status; transport
    and timeout failures propagate as ``httpx`` exceptions. Both are
    classified by the retry coordinator.

    Example:
        ```python
        backend = OllamaGenerationBackend.create(model_name="llama3.1")
        generation = await backend.generate("What is the FAFSA?")
        print(generation.content)
        ```
    """

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        max_tokens: int | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Ollama generation backend.

        Args:
            model_name: Name of the Ollama model.
                       Defaults to settings.generation_model.
            base_url: Ollama API base URL.
                     Defaults to settings.ollama_base_url.
            max_tokens: Upper bound on generated tokens.
            timeout: Request timeout in seconds.
            client: Pre-built HTTP client (tests inject a mock transport).
        """
        self._model_name = model_name or settings.generation_model
        self._base_url = (base_url or settings.ollama_base_url).rstrip("/")
        self._max_tokens = max_tokens or settings.generation_max_tokens
        self._timeout = timeout or settings.request_timeout
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @classmethod
    def create(
        cls,
        model_name: str | None = None,
        base_url: str | None = None,
    ) -> "OllamaGenerationBackend":
        """Factory method to create OllamaGenerationBackend with defaults.

        Args:
            model_name: Model name. If None, uses settings.
            base_url: Ollama API URL. If None, uses settings.

        Returns:
            Configured OllamaGenerationBackend
        """
        return cls(model_name=model_name, base_url=base_url)

    @property
    def model_name(self) -> str:
        return self._model_name

    async def generate(self, prompt: str, context: str | None = None) -> Generation:
        """Generate an answer with the Ollama chat endpoint.

        Args:
            prompt: The (redacted) student question
            context: Optional reference material

        Returns:
            Generated text and token usage

        Raises:
            BackendError: If Ollama answers with a non-2xx status
            httpx.TransportError: If Ollama cannot be reached
            ValueError: If the response format is invalid
        """
        payload = {
            "model": self._model_name,
            "stream": False,
            "messages": [
                {"role": "system", "content": FAFSA_SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(prompt, context)},
            ],
            "options": {"num_predict": self._max_tokens},
        }

        response = await self.client.post(f"{self._base_url}/api/chat", json=payload)
        if response.is_error:
            raise BackendError(response.status_code, f"Ollama API error: HTTP {response.status_code}")

        data = response.json()
        message = data.get("message") or {}
        if "content" not in message:
            raise ValueError(f"Unexpected response format: {data}")

        return Generation(
            content=message["content"],
            usage=TokenUsage(
                input_tokens=data.get("prompt_eval_count", 0),
                output_tokens=data.get("eval_count", 0),
            ),
        )

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
