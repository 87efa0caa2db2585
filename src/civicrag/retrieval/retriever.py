from dataclasses import dataclass

import structlog
from pgvector.sqlalchemy import Vector
from sqlalchemy import Float, Integer, String, bindparam, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from civicrag.categories import Category
from civicrag.errors import UpstreamServiceError
from civicrag.storage.models import EMBEDDING_DIMENSIONS

_logger = structlog.get_logger()

DEFAULT_SIMILARITY_THRESHOLD = 0.35
DEFAULT_LIMIT = 5

_SEARCH_SQL = text(
    """
    SELECT content, page_id, category,
           1 - (embedding <=> :query_embedding) AS similarity
    FROM document_chunks
    WHERE tenant_id = :tenant_id
      AND (CAST(:category AS TEXT) IS NULL OR category = :category)
      AND 1 - (embedding <=> :query_embedding) > :threshold
    ORDER BY embedding <=> :query_embedding
    LIMIT :top_k
    """
).bindparams(
    bindparam("query_embedding", type_=Vector(EMBEDDING_DIMENSIONS)),
    bindparam("tenant_id", type_=String()),
    bindparam("category", type_=String()),
    bindparam("threshold", type_=Float()),
    bindparam("top_k", type_=Integer()),
)


@dataclass(frozen=True)
class RetrievedChunk:
    content: str
    page_id: int
    category: str | None
    similarity: float


class ChunkRetriever:
    """Nearest-neighbour search over stored chunks, scoped to one tenant."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        timeout_seconds: float | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._timeout_seconds = timeout_seconds

    def search(
        self,
        query_embedding: list[float],
        tenant_id: str,
        category: Category | None = None,
        threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        limit: int = DEFAULT_LIMIT,
    ) -> list[RetrievedChunk]:
        """Return up to ``limit`` chunks with similarity above ``threshold``.

        ``category=None`` searches every category. Results are ordered by
        descending similarity; no match yields an empty list.
        """
        if not tenant_id:
            raise ValueError("tenant_id is required for chunk search")

        params = {
            "query_embedding": query_embedding,
            "tenant_id": tenant_id,
            "category": category.value if category is not None else None,
            "threshold": threshold,
            "top_k": limit,
        }

        try:
            with self._session_factory() as session:
                self._apply_timeout(session)
                rows = session.execute(_SEARCH_SQL, params).fetchall()
        except SQLAlchemyError as exc:
            _logger.error("vector_search_failed", error=str(exc))
            raise UpstreamServiceError("vector_search", f"Vector search failed: {exc}") from exc

        results = [
            RetrievedChunk(
                content=row.content,
                page_id=int(row.page_id),
                category=row.category,
                similarity=float(row.similarity),
            )
            for row in rows
            if float(row.similarity) > threshold
        ]
        results.sort(key=lambda r: r.similarity, reverse=True)
        results = results[:limit]

        _logger.debug(
            "chunks_retrieved",
            category=category.value if category else None,
            candidates=len(rows),
            matched=len(results),
        )
        return results

    def _apply_timeout(self, session: Session) -> None:
        if not self._timeout_seconds:
            return
        if session.get_bind().dialect.name != "postgresql":
            return
        timeout_ms = int(self._timeout_seconds * 1000)
        session.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))
