"""Amazon Bedrock generation backend.

Calls an Anthropic model through the Bedrock runtime ``invoke_model`` API.
boto3 is synchronous, so each call runs in a worker thread.
"""

import asyncio
import json
from typing import Any

import boto3
from botocore.exceptions import ClientError

from fafsa_assistant.config import settings
from fafsa_assistant.entities import Generation, TokenUsage
from fafsa_assistant.exceptions import BackendError

from .prompts import FAFSA_SYSTEM_PROMPT, build_user_prompt

ANTHROPIC_VERSION = "bedrock-2023-05-31"


class BedrockGenerationBackend:
    """Bedrock implementation of GenerationBackend protocol.

    Example:
        ```python
        backend = BedrockGenerationBackend.create(region="us-east-1")
        generation = await backend.generate("When is the FAFSA deadline?")
        ```
    """

    def __init__(
        self,
        client: Any | None = None,
        model_id: str | None = None,
        max_tokens: int | None = None,
        region: str | None = None,
    ) -> None:
        """Initialize the Bedrock backend.

        Args:
            client: A ``bedrock-runtime`` client. If None, creates one.
            model_id: Bedrock model id. Defaults to settings.bedrock_model_id.
            max_tokens: Upper bound on generated tokens.
            region: AWS region for the default client.
        """
        self._region = region or settings.aws_region
        if client is None:
            client = boto3.client("bedrock-runtime", region_name=self._region)
        self._client = client
        self._model_id = model_id or settings.bedrock_model_id
        self._max_tokens = max_tokens or settings.generation_max_tokens

    @classmethod
    def create(cls, model_id: str | None = None, region: str | None = None) -> "BedrockGenerationBackend":
        return cls(model_id=model_id, region=region)

    @property
    def model_name(self) -> str:
        return self._model_id

    async def generate(self, prompt: str, context: str | None = None) -> Generation:
        """Generate an answer with the configured Bedrock model.

        Raises:
            BackendError: If Bedrock rejects the call (carries its HTTP status)
        """
        body = {
            "anthropic_version": ANTHROPIC_VERSION,
            "max_tokens": self._max_tokens,
            "system": FAFSA_SYSTEM_PROMPT,
            "messages": [{"role": "user", "content": build_user_prompt(prompt, context)}],
        }
        data = await asyncio.to_thread(self._invoke, body)

        usage = data.get("usage") or {}
        return Generation(
            content=data["content"][0]["text"],
            usage=TokenUsage(
                input_tokens=usage.get("input_tokens", 0),
                output_tokens=usage.get("output_tokens", 0),
            ),
        )

    def _invoke(self, body: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = self._client.invoke_model(
                modelId=self._model_id,
                contentType="application/json",
                accept="application/json",
                body=json.dumps(body),
            )
        except ClientError as e:
            status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 500)
            code = e.response.get("Error", {}).get("Code", "ClientError")
            raise BackendError(status, f"Bedrock API error: {code}") from e

        return json.loads(resp["body"].read())
