from __future__ import annotations

from dataclasses import dataclass

from vector_store.models import SearchResult

DOCS_SEPARATOR = ";"
HISTORY_SEPARATOR = "\n"


@dataclass
class ChatContext:
    docs_text: str
    history_text: str
    sources: list[str]


def format_document(hit: SearchResult) -> str:
    return f"{hit.text} source: {hit.source}"


def format_message(hit: SearchResult) -> str:
    return f"{hit.source}: {hit.text}"


def build_context(docs: list[SearchResult], history: list[SearchResult]) -> ChatContext:
    """
    Render retrieved chunks and past turns for the system prompt.

    Both lists are kept in ranking order. Past turns are ordered by
    relevance to the current message, not by time.
    """
    sources: list[str] = []
    for hit in docs:
        if hit.source and hit.source not in sources:
            sources.append(hit.source)

    return ChatContext(
        docs_text=DOCS_SEPARATOR.join(format_document(hit) for hit in docs),
        history_text=HISTORY_SEPARATOR.join(format_message(hit) for hit in history),
        sources=sources,
    )
