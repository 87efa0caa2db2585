import hashlib
from pathlib import Path
from unittest.mock import MagicMock

import httpx
import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from civicrag.embedding.provider import Embeddings
from civicrag.ingestion import Chunker, PageFetcher, PageIndexer, html_to_text
from civicrag.ingestion.__main__ import read_url_file
from civicrag.ingestion.fetcher import extract_title
from civicrag.storage.chunks import ChunkStore
from civicrag.storage.models import DocumentChunk
from civicrag.storage.pages import PageRepository

_PAGE = """
<html>
<head><title>Vad kostar bygglov? - Sandvikens kommun</title><script>var x = 1;</script></head>
<body>
<nav>Meny</nav>
<main>
<h1>Vad kostar bygglov?</h1>
<p>Avgiften f&ouml;r bygglov &amp; anm&auml;lan beror p&aring; &auml;rendet.</p>
<p>En villa kostar cirka 5000&nbsp;kr.</p>
</main>
<footer>Kontakt</footer>
</body>
</html>
"""

_URL = "https://sandviken.se/byggaboochmiljo/vadkostarbygglov.24787.html"


def _fake_embedder() -> MagicMock:
    embedder = MagicMock()
    embedder.embed.side_effect = lambda texts: Embeddings(
        vectors=[[0.1] * 1536 for _ in texts], total_tokens=len(texts) * 10
    )
    return embedder


class TestHtmlToText:
    def test_keeps_main_content_only(self) -> None:
        text = html_to_text(_PAGE)

        assert "Avgiften för bygglov & anmälan beror på ärendet." in text
        assert "5000 kr" in text
        assert "Meny" not in text
        assert "Kontakt" not in text
        assert "var x" not in text

    def test_title_prefers_heading(self) -> None:
        assert extract_title(_PAGE) == "Vad kostar bygglov?"
        assert extract_title("<title>Start</title>") == "Start"
        assert extract_title("<p>ingen titel</p>") is None


class TestPageFetcher:
    def test_fetch_extracts_and_hashes(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text=_PAGE))

        page = PageFetcher(transport=transport).fetch(_URL)

        assert page.url == _URL
        assert page.title == "Vad kostar bygglov?"
        assert page.hash == hashlib.sha1(page.content.encode("utf-8")).hexdigest()

    def test_http_error_propagates(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(404))

        with pytest.raises(httpx.HTTPStatusError):
            PageFetcher(transport=transport).fetch(_URL)


class TestPageIndexer:
    def test_reingesting_unchanged_page_is_a_noop(self, session_factory: sessionmaker[Session]) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text=_PAGE))
        fetcher = PageFetcher(transport=transport)
        indexer = PageIndexer("sandviken", PageRepository(session_factory), Chunker())

        first = indexer.ingest([_URL], fetcher)
        second = indexer.ingest([_URL], fetcher)

        assert first.outcomes == {"created": 1}
        assert second.outcomes == {"unchanged": 1}

    def test_failed_fetch_is_reported(self, session_factory: sessionmaker[Session]) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(500))
        indexer = PageIndexer("sandviken", PageRepository(session_factory), Chunker())

        stats = indexer.ingest([_URL], PageFetcher(transport=transport))

        assert stats.failed == [_URL]
        assert not stats.outcomes

    def test_dry_run_counts_without_writing(self, session_factory: sessionmaker[Session]) -> None:
        pages = PageRepository(session_factory)
        pages.upsert_page("sandviken", _URL, "Avgifter", "x" * 2500, "h1")
        pages.upsert_page("sandviken", "https://sandviken.se/nyheter.1.html", "Nyheter", "kort", "h2")

        stats = PageIndexer("sandviken", pages, Chunker()).embed_pages(dry_run=True)

        assert stats.pages == 2
        assert stats.chunks == 4
        assert stats.categories == {"Bygga, bo och miljö": 1, "Övrigt": 1}
        with session_factory() as session:
            assert session.scalars(select(DocumentChunk)).all() == []

    def test_run_replaces_chunks_with_url_category(self, session_factory: sessionmaker[Session]) -> None:
        pages = PageRepository(session_factory)
        pages.upsert_page("sandviken", _URL, "Avgifter", "x" * 2500, "h1")
        embedder = _fake_embedder()
        indexer = PageIndexer(
            "sandviken", pages, Chunker(), ChunkStore(session_factory), embedder
        )

        indexer.embed_pages(dry_run=False)
        stats = indexer.embed_pages(dry_run=False)

        assert stats.chunks == 3
        with session_factory() as session:
            rows = session.scalars(select(DocumentChunk).order_by(DocumentChunk.chunk_index)).all()
            assert [r.chunk_index for r in rows] == [0, 1, 2]
            assert {r.category for r in rows} == {"Bygga, bo och miljö"}

    def test_embedding_failure_skips_page(self, session_factory: sessionmaker[Session]) -> None:
        pages = PageRepository(session_factory)
        pages.upsert_page("sandviken", _URL, "Avgifter", "text", "h1")
        embedder = MagicMock()
        embedder.embed.side_effect = RuntimeError("rate limited")
        indexer = PageIndexer(
            "sandviken", pages, Chunker(), ChunkStore(session_factory), embedder
        )

        stats = indexer.embed_pages(dry_run=False)

        assert stats.skipped == 1
        assert stats.pages == 0

    def test_run_requires_store_and_embedder(self, session_factory: sessionmaker[Session]) -> None:
        indexer = PageIndexer("sandviken", PageRepository(session_factory), Chunker())

        with pytest.raises(ValueError):
            indexer.embed_pages(dry_run=False)


class TestReadUrlFile:
    def test_skips_blank_lines_and_comments(self, tmp_path: Path) -> None:
        path = tmp_path / "urls.txt"
        path.write_text(f"# bygglov\n{_URL}\n\n  https://sandviken.se/a.html  \n", encoding="utf-8")

        assert read_url_file(path) == [_URL, "https://sandviken.se/a.html"]
