from dataclasses import dataclass

import structlog
from sqlalchemy import delete
from sqlalchemy.orm import Session, sessionmaker

from civicrag.categories import Category
from civicrag.storage.models import DocumentChunk

_logger = structlog.get_logger()

_INSERT_BATCH_SIZE = 200


@dataclass(frozen=True)
class NewChunk:
    chunk_index: int
    content: str
    embedding: list[float]
    category: Category


class ChunkStore:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def replace_page_chunks(self, tenant_id: str, page_id: int, chunks: list[NewChunk]) -> int:
        """Drop every stored chunk of a page and insert ``chunks`` in its place.

        Runs in one transaction, so a failed insert keeps the previous chunks.
        """
        with self._session_factory() as session:
            removed = session.execute(
                delete(DocumentChunk).where(
                    DocumentChunk.tenant_id == tenant_id,
                    DocumentChunk.page_id == page_id,
                )
            ).rowcount

            for i in range(0, len(chunks), _INSERT_BATCH_SIZE):
                batch = chunks[i : i + _INSERT_BATCH_SIZE]
                session.add_all(
                    DocumentChunk(
                        tenant_id=tenant_id,
                        page_id=page_id,
                        chunk_index=chunk.chunk_index,
                        content=chunk.content,
                        embedding=chunk.embedding,
                        category=chunk.category.value,
                    )
                    for chunk in batch
                )
                session.flush()

            session.commit()

        _logger.debug("page_chunks_replaced", page_id=page_id, removed=removed, inserted=len(chunks))
        return len(chunks)
