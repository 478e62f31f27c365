"""Keyword knowledge base over official FAFSA documents.

Documents are scored with a simple term-frequency heuristic; there is no
vector index. The document set is either loaded from a directory of JSON
files or falls back to a small built-in set of StudentAid.gov summaries.
"""

import json
import logging
import re
from pathlib import Path

from fafsa_assistant.config import settings
from fafsa_assistant.entities import KnowledgeDocument, SearchResult
from fafsa_assistant.services.citations import OFFICIAL_FAFSA_URL, unique_sources

logger = logging.getLogger(__name__)

MAX_RESULTS = 5
MIN_TERM_LENGTH = 3

DEFAULT_DOCUMENTS: tuple[KnowledgeDocument, ...] = (
    KnowledgeDocument(
        title="How to Fill Out the FAFSA Form",
        content=(
            "Create a StudentAid.gov account (FSA ID) before starting. Gather tax returns, "
            "records of untaxed income and asset information. Submit the form online at "
            "fafsa.gov and list every school you want to receive your information."
        ),
        section="general",
        source_url="https://studentaid.gov/apply-for-aid/fafsa/filling-out",
        keywords=["fsa id", "submit", "apply", "steps"],
    ),
    KnowledgeDocument(
        title="Personal Information Section",
        content=(
            "Enter your name exactly as it appears on your Social Security card, your date of "
            "birth and your citizenship status. Eligible noncitizens provide their Alien "
            "Registration number."
        ),
        section="student-demographics",
        source_url="https://studentaid.gov/apply-for-aid/fafsa/filling-out/personal-info",
        keywords=["name", "citizenship", "birth"],
    ),
    KnowledgeDocument(
        title="Dependency Status Questions",
        content=(
            "Dependency status determines whose information you report. You are independent "
            "if you are 24 or older, married, a veteran, supporting children, or were a ward "
            "of the court. Otherwise you are dependent and must report parent information."
        ),
        section="dependency-status",
        source_url="https://studentaid.gov/apply-for-aid/fafsa/filling-out/dependency",
        keywords=["dependent", "independent", "parent", "parents"],
    ),
    KnowledgeDocument(
        title="Income and Tax Information",
        content=(
            "Income and tax information is transferred directly from the IRS when you give "
            "consent. Report untaxed income, child support received, and the current value of "
            "cash, savings and investments."
        ),
        section="student-finances",
        source_url="https://studentaid.gov/apply-for-aid/fafsa/filling-out/income",
        keywords=["tax", "irs", "income", "assets"],
    ),
    KnowledgeDocument(
        title="School Selection",
        content=(
            "List up to twenty schools using their Federal School Codes. Each school receives "
            "your FAFSA information and uses it to build your financial aid offer."
        ),
        section="school-selection",
        source_url="https://studentaid.gov/apply-for-aid/fafsa/filling-out/school-selection",
        keywords=["school code", "college", "colleges"],
    ),
)


def score_document(document: KnowledgeDocument, terms: list[str]) -> int:
    """Relevance of one document for already lowercased search terms.

    Title hit: +3 per term; each occurrence anywhere in the document: +1;
    keyword hit: +2 per term.
    """
    title = document.title.lower()
    keywords = [keyword.lower() for keyword in document.keywords]
    haystack = f"{title} {document.content} {' '.join(keywords)}".lower()

    score = 0
    for term in terms:
        if term in title:
            score += 3
        score += len(re.findall(re.escape(term), haystack))
        if any(term in keyword for keyword in keywords):
            score += 2
    return score


class KeywordKnowledgeBase:
    """Keyword-scored implementation of KnowledgeLookup protocol.

    Example:
        ```python
        kb = KeywordKnowledgeBase.from_directory("data/knowledge")
        result = await kb.search("dependency status parents")
        result.sources
        ```
    """

    def __init__(self, documents: list[KnowledgeDocument] | None = None) -> None:
        self._documents = list(DEFAULT_DOCUMENTS if documents is None else documents)

    @classmethod
    def create(cls, directory: str | None = None) -> "KeywordKnowledgeBase":
        """Factory method: load from a directory, or use the built-in documents.

        Args:
            directory: Folder of JSON documents. If None, uses settings.

        Returns:
            Configured KeywordKnowledgeBase
        """
        directory = directory or settings.knowledge_base_dir
        if directory:
            return cls.from_directory(directory)
        return cls()

    @classmethod
    def from_directory(cls, directory: str | Path) -> "KeywordKnowledgeBase":
        """Load every ``*.json`` document under ``directory`` (recursively).

        Each file holds one object with ``title``, ``content`` and optional
        ``section``, ``source_url`` (or ``sourceUrl``) and ``keywords``.
        Malformed files are skipped with a warning.
        """
        documents: list[KnowledgeDocument] = []
        for path in sorted(Path(directory).rglob("*.json")):
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
                documents.append(
                    KnowledgeDocument(
                        title=raw["title"],
                        content=raw["content"],
                        section=raw.get("section", "general"),
                        source_url=raw.get("source_url") or raw.get("sourceUrl", ""),
                        keywords=list(raw.get("keywords") or []),
                    )
                )
            except (OSError, ValueError, KeyError) as e:
                logger.warning("Skipping knowledge document %s: %s", path, e)

        logger.info("Loaded %d knowledge documents from %s", len(documents), directory)
        return cls(documents)

    @property
    def documents(self) -> list[KnowledgeDocument]:
        return list(self._documents)

    def add_document(self, document: KnowledgeDocument) -> None:
        self._documents.append(document)

    async def search(self, query: str, section: str | None = None) -> SearchResult:
        """Find the best matching documents for a question.

        Args:
            query: The (redacted) student question
            section: Restrict the search to one FAFSA section

        Returns:
            Up to five documents with a positive score, best first. Sources
            fall back to the official FAFSA page when nothing matches.
        """
        documents = [doc for doc in self._documents if section is None or doc.section == section]
        terms = [term for term in query.lower().split() if len(term) >= MIN_TERM_LENGTH]

        scored = [(score_document(doc, terms), doc) for doc in documents]
        scored = [item for item in scored if item[0] > 0]
        scored.sort(key=lambda item: item[0], reverse=True)
        top = scored[:MAX_RESULTS]

        if not top:
            return SearchResult(documents=[], sources=[OFFICIAL_FAFSA_URL], relevance_score=0.0)

        sources = unique_sources([doc.source_url for _, doc in top]) or [OFFICIAL_FAFSA_URL]
        return SearchResult(
            documents=[doc for _, doc in top],
            sources=sources,
            relevance_score=sum(score for score, _ in top) / len(top),
        )
