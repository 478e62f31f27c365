"""Source attribution for assistant answers."""

OFFICIAL_FAFSA_URL = "https://studentaid.gov/apply-for-aid/fafsa"


def unique_sources(sources: list[str]) -> list[str]:
    """Deduplicate sources, keeping first-seen order."""
    return list(dict.fromkeys(source for source in sources if source))


def format_source_attribution(sources: list[str]) -> str:
    """Render the citation block appended to a generated answer.

    Args:
        sources: Source URLs, possibly with duplicates

    Returns:
        A markdown block starting with a blank line
    """
    sources = unique_sources(sources)
    if not sources:
        return f"\n\n**Source:** {OFFICIAL_FAFSA_URL}"

    if len(sources) == 1:
        return f"\n\n**Source:** {sources[0]}"

    lines = "\n".join(f"{index}. {source}" for index, source in enumerate(sources, start=1))
    return f"\n\n**Sources:**\n{lines}"
