from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

import httpx
import structlog

from civicrag.categories import Category, classify_by_url
from civicrag.embedding.provider import AbstractEmbeddingProvider
from civicrag.ingestion.chunker import Chunker
from civicrag.ingestion.fetcher import PageFetcher
from civicrag.storage.chunks import ChunkStore, NewChunk
from civicrag.storage.pages import PageRepository, UpsertOutcome

_logger = structlog.get_logger()


@dataclass
class IngestStats:
    outcomes: Counter[str] = field(default_factory=Counter)
    failed: list[str] = field(default_factory=list)


@dataclass
class EmbedStats:
    pages: int = 0
    chunks: int = 0
    skipped: int = 0
    categories: Counter[str] = field(default_factory=Counter)


class PageIndexer:
    """Brings a tenant's pages and chunks up to date.

    ``ingest`` fetches pages into the ``pages`` table; ``embed_pages``
    re-chunks and re-embeds every stored page, replacing its chunks.
    """

    def __init__(
        self,
        tenant_id: str,
        pages: PageRepository,
        chunker: Chunker,
        chunk_store: ChunkStore | None = None,
        embedding_provider: AbstractEmbeddingProvider | None = None,
    ) -> None:
        self._tenant_id = tenant_id
        self._pages = pages
        self._chunker = chunker
        self._chunk_store = chunk_store
        self._embedding_provider = embedding_provider

    def ingest(self, urls: Iterable[str], fetcher: PageFetcher) -> IngestStats:
        stats = IngestStats()
        for url in urls:
            try:
                page = fetcher.fetch(url)
            except httpx.HTTPError as e:
                _logger.warning("page_fetch_failed", url=url, error=str(e))
                stats.failed.append(url)
                continue

            if not page.content:
                _logger.warning("page_without_text", url=url)
                stats.failed.append(url)
                continue

            outcome = self._pages.upsert_page(
                self._tenant_id, page.url, page.title, page.content, page.hash
            )
            stats.outcomes[outcome.value] += 1

        _logger.info(
            "ingest_complete",
            created=stats.outcomes[UpsertOutcome.CREATED.value],
            updated=stats.outcomes[UpsertOutcome.UPDATED.value],
            unchanged=stats.outcomes[UpsertOutcome.UNCHANGED.value],
            failed=len(stats.failed),
        )
        return stats

    def embed_pages(self, dry_run: bool = True) -> EmbedStats:
        """Chunk every page, tag it by URL section and (unless ``dry_run``) store it.

        A page whose embedding or write fails is logged and skipped; its
        previous chunks stay in place.
        """
        if not dry_run and (self._chunk_store is None or self._embedding_provider is None):
            raise ValueError("chunk_store and embedding_provider are required to write chunks")

        stats = EmbedStats()
        for page in self._pages.list_pages(self._tenant_id):
            texts = list(self._chunker.chunk(page.content))
            if not texts:
                continue

            category = classify_by_url(page.url)
            _logger.info("page_chunked", title=page.title, chunks=len(texts), category=category.value)

            if not dry_run:
                try:
                    self._store(page.id, texts, category)
                except Exception:
                    _logger.exception("page_embed_failed", url=page.url)
                    stats.skipped += 1
                    continue

            stats.pages += 1
            stats.chunks += len(texts)
            stats.categories[category.value] += 1

        _logger.info(
            "embed_complete",
            dry_run=dry_run,
            pages=stats.pages,
            chunks=stats.chunks,
            skipped=stats.skipped,
        )
        return stats

    def _store(self, page_id: int, texts: list[str], category: Category) -> None:
        if self._chunk_store is None or self._embedding_provider is None:
            raise RuntimeError("chunk_store and embedding_provider are required to write chunks")
        embeddings = self._embedding_provider.embed(texts)
        self._chunk_store.replace_page_chunks(
            self._tenant_id,
            page_id,
            [
                NewChunk(chunk_index=i, content=text, embedding=vector, category=category)
                for i, (text, vector) in enumerate(zip(texts, embeddings.vectors, strict=True))
            ],
        )
