import time
from dataclasses import dataclass, field
from typing import Any

import structlog

from civicrag.config import RetrievalConfig
from civicrag.embedding import AbstractEmbeddingProvider
from civicrag.errors import ValidationError
from civicrag.followup import parse_history, resolve_category
from civicrag.llm.generator import AnswerGenerator
from civicrag.querylog.logger import QueryLogger
from civicrag.querylog.record import QueryRecord
from civicrag.retrieval.context import SourceRef, assemble_context
from civicrag.retrieval.retriever import ChunkRetriever
from civicrag.storage.pages import PageRepository

_logger = structlog.get_logger()

PIPELINE_VERSION = "v2"


@dataclass(frozen=True)
class SearchRequest:
    query: str
    history: str | None = None
    session_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None


@dataclass
class SearchResult:
    answer: str
    sources: list[SourceRef]
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            "answer": self.answer,
            "sources": [
                {"url": s.url, "title": s.title, "category": s.category} for s in self.sources
            ],
            "metadata": self.metadata,
        }


class SearchPipeline:
    """Answers one visitor question from the tenant's indexed pages.

    The stages run strictly in order and any failure before the answer is
    generated aborts the request. Usage logging happens after the result is
    built and can never fail the request.
    """

    def __init__(
        self,
        tenant_id: str,
        embedder: AbstractEmbeddingProvider,
        retriever: ChunkRetriever,
        pages: PageRepository,
        generator: AnswerGenerator,
        query_logger: QueryLogger | None = None,
        retrieval: RetrievalConfig | None = None,
    ) -> None:
        self.tenant_id = tenant_id
        self.embedder = embedder
        self.retriever = retriever
        self.pages = pages
        self.generator = generator
        self.query_logger = query_logger
        self.retrieval = retrieval or RetrievalConfig()

    def search(self, request: SearchRequest) -> SearchResult:
        query = (request.query or "").strip()
        if not query:
            raise ValidationError("Missing q")

        started = time.perf_counter()
        history = parse_history(request.history, self.retrieval.max_history_turns)
        resolution = resolve_category(query, history)

        _logger.info(
            "search_query_received",
            query_preview=query[:80],
            category=resolution.category.value if resolution.category else None,
            is_follow_up=resolution.is_follow_up,
            history_turns=len(history),
        )

        embedded = self.embedder.embed_query(query)
        chunks = self.retriever.search(
            embedded.vector,
            self.tenant_id,
            category=resolution.category,
            threshold=self.retrieval.similarity_threshold,
            limit=self.retrieval.top_k,
        )
        pages = self.pages.get_pages(self.tenant_id, {chunk.page_id for chunk in chunks})
        assembled = assemble_context(
            chunks, pages, history, max_tokens=self.retrieval.max_context_tokens
        )
        answer = self.generator.generate(query, assembled.context, assembled.transcript)

        response_time_ms = int((time.perf_counter() - started) * 1000)
        category_label = resolution.category.value if resolution.category else None
        result = SearchResult(
            answer=answer.text,
            sources=assembled.sources,
            metadata={
                "version": PIPELINE_VERSION,
                "detected_category": category_label,
                "is_follow_up": resolution.is_follow_up,
                "chunks_found": len(chunks),
                "response_time_ms": response_time_ms,
                "session_id": request.session_id,
            },
        )

        _logger.info(
            "search_answered",
            chunks_found=len(chunks),
            sources=len(assembled.sources),
            response_time_ms=response_time_ms,
        )

        self._log_usage(
            QueryRecord(
                tenant_id=self.tenant_id,
                query=query,
                category=category_label,
                answer=answer.text,
                sources_count=len(assembled.sources),
                embedding_tokens=embedded.total_tokens,
                prompt_tokens=answer.usage.input_tokens,
                response_tokens=answer.usage.output_tokens,
                response_time_ms=response_time_ms,
                chunks_found=len(chunks),
                similarity_threshold=self.retrieval.similarity_threshold,
                session_id=request.session_id,
                user_agent=request.user_agent,
                ip_address=request.ip_address,
            )
        )
        return result

    def _log_usage(self, record: QueryRecord) -> None:
        if self.query_logger is None:
            return
        try:
            self.query_logger.log(record)
        except Exception:
            _logger.exception("query_log_enqueue_failed")
