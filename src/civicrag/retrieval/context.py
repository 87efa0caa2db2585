from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from civicrag.categories import UNKNOWN_CATEGORY_LABEL
from civicrag.followup import ConversationTurn, TurnType
from civicrag.retrieval.retriever import RetrievedChunk
from civicrag.storage.pages import PageRef
from civicrag.util.tokens import count_tokens

_logger = structlog.get_logger()

_SPEAKER_LABELS = {
    TurnType.QUESTION: "Användare",
    TurnType.ANSWER: "Assistent",
}


@dataclass(frozen=True)
class SourceRef:
    url: str
    title: str
    category: str


@dataclass(frozen=True)
class AssembledContext:
    context: str
    sources: list[SourceRef]
    transcript: str
    chunks_used: int


def build_context_blob(
    chunks: Sequence[RetrievedChunk],
    max_tokens: int | None = None,
) -> tuple[str, int]:
    """Join chunk contents with blank lines, in retrieval order.

    With a token budget, chunks after the one that exhausts it are skipped.
    The first chunk is always kept.
    """
    parts: list[str] = []
    used_tokens = 0
    for chunk in chunks:
        if max_tokens is not None and parts and used_tokens >= max_tokens:
            break
        parts.append(chunk.content)
        if max_tokens is not None:
            used_tokens += count_tokens(chunk.content)

    if len(parts) < len(chunks):
        _logger.debug("context_truncated", kept=len(parts), dropped=len(chunks) - len(parts))
    return "\n\n".join(parts), len(parts)


def build_sources(chunks: Sequence[RetrievedChunk], pages: Sequence[PageRef]) -> list[SourceRef]:
    """One source per distinct page URL, in the order the pages were returned."""
    category_by_page: dict[int, str] = {}
    for chunk in chunks:
        if chunk.category:
            category_by_page[chunk.page_id] = chunk.category

    sources: dict[str, SourceRef] = {}
    for page in pages:
        if not page.url or not page.title:
            continue
        sources[page.url] = SourceRef(
            url=page.url,
            title=page.title,
            category=category_by_page.get(page.id, UNKNOWN_CATEGORY_LABEL),
        )
    return list(sources.values())


def build_transcript(history: Sequence[ConversationTurn]) -> str:
    return "\n".join(f"{_SPEAKER_LABELS[turn.type]}: {turn.text}" for turn in history)


def assemble_context(
    chunks: Sequence[RetrievedChunk],
    pages: Sequence[PageRef],
    history: Sequence[ConversationTurn],
    max_tokens: int | None = None,
) -> AssembledContext:
    context, chunks_used = build_context_blob(chunks, max_tokens)
    return AssembledContext(
        context=context,
        sources=build_sources(chunks, pages),
        transcript=build_transcript(history),
        chunks_used=chunks_used,
    )
