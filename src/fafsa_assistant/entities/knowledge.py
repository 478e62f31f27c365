"""Knowledge lookup and generation domain entities."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class KnowledgeDocument:
    """A reference document about one FAFSA topic.

    Attributes:
        title: Document title
        content: Plain-text body
        section: FAFSA form section the document covers
        source_url: Official page the content comes from
        keywords: Extra search terms
    """

    title: str
    content: str
    section: str = "general"
    source_url: str = ""
    keywords: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SearchResult:
    """Documents relevant to a query, best first."""

    documents: list[KnowledgeDocument]
    sources: list[str]
    relevance_score: float = 0.0


@dataclass(frozen=True)
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass(frozen=True)
class Generation:
    """Text produced by the generation backend."""

    content: str
    usage: TokenUsage | None = None
