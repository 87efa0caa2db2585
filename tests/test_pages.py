from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from civicrag.categories import Category
from civicrag.storage.chunks import ChunkStore, NewChunk
from civicrag.storage.models import DocumentChunk, Page
from civicrag.storage.pages import PageRepository, UpsertOutcome

_URL = "https://sandviken.se/byggaboochmiljo/vadkostarbygglov.24787.html"


def _vector(value: float) -> list[float]:
    return [value] * 1536


class TestPageRepository:
    def test_upsert_creates_then_skips_unchanged(self, session_factory: sessionmaker[Session]) -> None:
        repo = PageRepository(session_factory)

        first = repo.upsert_page("sandviken", _URL, "Avgifter", "Bygglov kostar 5000 kr", "h1")
        second = repo.upsert_page("sandviken", _URL, "Avgifter", "Bygglov kostar 5000 kr", "h1")

        assert first == UpsertOutcome.CREATED
        assert second == UpsertOutcome.UNCHANGED
        with session_factory() as session:
            assert session.scalar(select(func.count()).select_from(Page)) == 1

    def test_unchanged_hash_leaves_row_untouched(self, session_factory: sessionmaker[Session]) -> None:
        repo = PageRepository(session_factory)
        repo.upsert_page("sandviken", _URL, "Avgifter", "original", "h1")

        repo.upsert_page("sandviken", _URL, "Ny titel", "annan text", "h1")

        with session_factory() as session:
            page = session.execute(select(Page)).scalar_one()
            assert page.title == "Avgifter"
            assert page.content == "original"

    def test_changed_hash_updates_row(self, session_factory: sessionmaker[Session]) -> None:
        repo = PageRepository(session_factory)
        repo.upsert_page("sandviken", _URL, "Avgifter", "gammal", "h1")

        outcome = repo.upsert_page("sandviken", _URL, "Avgifter 2025", "ny", "h2")

        assert outcome == UpsertOutcome.UPDATED
        with session_factory() as session:
            page = session.execute(select(Page)).scalar_one()
            assert (page.title, page.content, page.hash) == ("Avgifter 2025", "ny", "h2")

    def test_same_url_is_separate_per_tenant(self, session_factory: sessionmaker[Session]) -> None:
        repo = PageRepository(session_factory)

        repo.upsert_page("sandviken", _URL, "A", "text", "h1")
        outcome = repo.upsert_page("gavle", _URL, "A", "text", "h1")

        assert outcome == UpsertOutcome.CREATED

    def test_get_pages_filters_by_tenant_and_id(self, session_factory: sessionmaker[Session]) -> None:
        repo = PageRepository(session_factory)
        repo.upsert_page("sandviken", "https://sandviken.se/a.html", "A", "a", "ha")
        repo.upsert_page("sandviken", "https://sandviken.se/b.html", "B", "b", "hb")
        repo.upsert_page("gavle", "https://gavle.se/c.html", "C", "c", "hc")
        pages = {p.url: p for p in repo.list_pages("sandviken")}

        found = repo.get_pages("sandviken", [pages["https://sandviken.se/a.html"].id, 3, 999])

        assert [p.title for p in found] == ["A"]

    def test_get_pages_with_no_ids(self, session_factory: sessionmaker[Session]) -> None:
        assert PageRepository(session_factory).get_pages("sandviken", []) == []


class TestChunkStore:
    def test_replace_deletes_previous_chunks(self, session_factory: sessionmaker[Session]) -> None:
        store = ChunkStore(session_factory)
        store.replace_page_chunks(
            "sandviken",
            1,
            [NewChunk(i, f"gammal {i}", _vector(0.1), Category.BUILDING) for i in range(3)],
        )

        inserted = store.replace_page_chunks(
            "sandviken", 1, [NewChunk(0, "ny", _vector(0.2), Category.BUILDING)]
        )

        assert inserted == 1
        with session_factory() as session:
            contents = session.scalars(select(DocumentChunk.content)).all()
            assert contents == ["ny"]

    def test_replace_leaves_other_pages_alone(self, session_factory: sessionmaker[Session]) -> None:
        store = ChunkStore(session_factory)
        store.replace_page_chunks("sandviken", 1, [NewChunk(0, "sida 1", _vector(0.1), Category.CARE)])
        store.replace_page_chunks("sandviken", 2, [NewChunk(0, "sida 2", _vector(0.1), Category.CARE)])

        store.replace_page_chunks("sandviken", 1, [])

        with session_factory() as session:
            rows = session.execute(select(DocumentChunk.page_id, DocumentChunk.category)).all()
            assert [(r.page_id, r.category) for r in rows] == [(2, "Omsorg och stöd")]

    def test_large_pages_are_written_in_batches(self, session_factory: sessionmaker[Session]) -> None:
        chunks = [NewChunk(i, f"del {i}", _vector(0.3), Category.OTHER) for i in range(450)]

        ChunkStore(session_factory).replace_page_chunks("sandviken", 5, chunks)

        with session_factory() as session:
            assert session.scalar(select(func.count()).select_from(DocumentChunk)) == 450
