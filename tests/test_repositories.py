"""Tests for generation backends, the knowledge base and the memory stores."""

import io
import json

import httpx
import pytest
from botocore.exceptions import ClientError

from fafsa_assistant.entities import ChatMessage, ChatTurn, KnowledgeDocument, Sender
from fafsa_assistant.exceptions import BackendError
from fafsa_assistant.repositories import (
    BedrockGenerationBackend,
    InMemoryConversationStore,
    InMemoryProgressStore,
    KeywordKnowledgeBase,
    OllamaGenerationBackend,
)
from fafsa_assistant.repositories.knowledge_base import score_document
from fafsa_assistant.services import OFFICIAL_FAFSA_URL, format_source_attribution


def ollama_backend(handler) -> OllamaGenerationBackend:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OllamaGenerationBackend(model_name="llama3.1", base_url="http://ollama.test", client=client)


@pytest.mark.asyncio
async def test_ollama_generate_sends_prompt_and_parses_usage():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"message": {"role": "assistant", "content": "Answer"}, "prompt_eval_count": 12, "eval_count": 34},
        )

    generation = await ollama_backend(handler).generate("What is FAFSA?", "FAFSA: a form")

    assert seen["url"] == "http://ollama.test/api/chat"
    user_prompt = seen["body"]["messages"][1]["content"]
    assert user_prompt.startswith("Context: FAFSA: a form\n\nStudent Question: What is FAFSA?")
    assert seen["body"]["messages"][0]["role"] == "system"
    assert generation.content == "Answer"
    assert generation.usage.input_tokens == 12
    assert generation.usage.output_tokens == 34


@pytest.mark.asyncio
async def test_ollama_error_status_raises_backend_error():
    backend = ollama_backend(lambda request: httpx.Response(503, json={"error": "loading"}))

    with pytest.raises(BackendError) as exc_info:
        await backend.generate("What is FAFSA?")

    assert exc_info.value.status_code == 503


class StubBedrockClient:
    def __init__(self, payload=None, error: ClientError | None = None) -> None:
        self.payload = payload
        self.error = error
        self.requests = []

    def invoke_model(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        return {"body": io.BytesIO(json.dumps(self.payload).encode())}


@pytest.mark.asyncio
async def test_bedrock_generate_builds_anthropic_body():
    client = StubBedrockClient({"content": [{"text": "Answer"}], "usage": {"input_tokens": 5, "output_tokens": 7}})
    backend = BedrockGenerationBackend(client=client, model_id="anthropic.test", max_tokens=200)

    generation = await backend.generate("When is the deadline?")

    body = json.loads(client.requests[0]["body"])
    assert client.requests[0]["modelId"] == "anthropic.test"
    assert body["anthropic_version"] == "bedrock-2023-05-31"
    assert body["max_tokens"] == 200
    assert body["messages"][0]["content"].startswith("Student Question: When is the deadline?")
    assert generation.content == "Answer"
    assert generation.usage.output_tokens == 7


@pytest.mark.asyncio
async def test_bedrock_client_error_carries_status():
    error = ClientError(
        {"Error": {"Code": "ThrottlingException"}, "ResponseMetadata": {"HTTPStatusCode": 429}},
        "InvokeModel",
    )
    backend = BedrockGenerationBackend(client=StubBedrockClient(error=error))

    with pytest.raises(BackendError) as exc_info:
        await backend.generate("What is FAFSA?")

    assert exc_info.value.status_code == 429


def test_score_document():
    document = KnowledgeDocument(
        title="Dependency Status",
        content="Your dependency status decides whose income you report.",
        keywords=["dependent"],
    )

    # "dependency": title +3, two occurrences +2; "status": title +3, two occurrences +2
    assert score_document(document, ["dependency", "status"]) == 10
    assert score_document(document, ["depend"]) == 3 + 3 + 2
    assert score_document(document, ["pell"]) == 0


@pytest.mark.asyncio
async def test_search_ranks_and_deduplicates_sources():
    kb = KeywordKnowledgeBase(
        [
            KnowledgeDocument("Pell Grants", "Pell grants are need based.", source_url="https://a"),
            KnowledgeDocument("Loans", "Loans must be repaid.", source_url="https://b"),
            KnowledgeDocument("Pell Grant Amounts", "Maximum Pell award.", source_url="https://a"),
        ]
    )

    result = await kb.search("how much is a pell grant")

    assert [doc.title for doc in result.documents] == ["Pell Grants", "Pell Grant Amounts"]
    assert result.sources == ["https://a"]
    assert result.relevance_score > 0


@pytest.mark.asyncio
async def test_search_without_matches_falls_back_to_official_source():
    result = await KeywordKnowledgeBase([]).search("anything at all")

    assert result.documents == []
    assert result.sources == [OFFICIAL_FAFSA_URL]


@pytest.mark.asyncio
async def test_default_documents_answer_dependency_questions():
    result = await KeywordKnowledgeBase().search("am I dependent on my parents")

    assert result.documents[0].section == "dependency-status"


def test_from_directory_skips_malformed_files(tmp_path):
    (tmp_path / "good.json").write_text(
        json.dumps({"title": "Deadlines", "content": "June 30.", "sourceUrl": "https://d"}),
        encoding="utf-8",
    )
    (tmp_path / "bad.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "missing.json").write_text(json.dumps({"title": "No content"}), encoding="utf-8")

    kb = KeywordKnowledgeBase.from_directory(tmp_path)

    [document] = kb.documents
    assert document.title == "Deadlines"
    assert document.source_url == "https://d"


def test_format_source_attribution():
    assert format_source_attribution([]) == f"\n\n**Source:** {OFFICIAL_FAFSA_URL}"
    assert format_source_attribution(["https://a", "https://a"]) == "\n\n**Source:** https://a"
    assert format_source_attribution(["https://a", "https://b"]) == "\n\n**Sources:**\n1. https://a\n2. https://b"


def _turn(text: str) -> ChatTurn:
    return ChatTurn(
        ChatMessage(content=text, sender=Sender.USER),
        ChatMessage(content=f"re: {text}", sender=Sender.ASSISTANT),
    )


@pytest.mark.asyncio
async def test_memory_conversation_store_is_newest_first():
    store = InMemoryConversationStore(max_turns=2)
    for text in ("one", "two", "three"):
        await store.append("conv-1", "user-1", _turn(text))

    turns = await store.query("user-1", 10)

    assert [t.user_message.content for t in turns] == ["three", "two"]
    assert all(t.conversation_id == "conv-1" for t in turns)
    assert await store.query("someone-else", 10) == []


@pytest.mark.asyncio
async def test_memory_progress_store_counts():
    store = InMemoryProgressStore()

    assert await store.increment_interaction_count("user-1") == 1
    assert await store.increment_interaction_count("user-1") == 2
    assert await store.get_interaction_count("user-2") == 0


def test_turn_round_trips_through_dict():
    turn = _turn("What is FAFSA?")

    assert ChatTurn.from_dict(json.loads(json.dumps(turn.to_dict()))) == turn
