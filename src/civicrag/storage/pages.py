from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from civicrag.errors import UpstreamServiceError
from civicrag.storage.models import Page

_logger = structlog.get_logger()


class UpsertOutcome(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class PageRef:
    id: int
    url: str
    title: str


@dataclass(frozen=True)
class PageContent:
    id: int
    url: str
    title: str
    content: str


class PageRepository:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def get_pages(self, tenant_id: str, page_ids: Iterable[int]) -> list[PageRef]:
        """Fetch url/title for the given pages. Unknown ids are skipped."""
        ids = sorted(set(page_ids))
        if not ids:
            return []

        stmt = select(Page.id, Page.url, Page.title).where(
            Page.tenant_id == tenant_id,
            Page.id.in_(ids),
        )
        try:
            with self._session_factory() as session:
                rows = session.execute(stmt).all()
        except SQLAlchemyError as exc:
            _logger.error("page_lookup_failed", error=str(exc))
            raise UpstreamServiceError("page_lookup", f"Page lookup failed: {exc}") from exc

        return [PageRef(id=row.id, url=row.url, title=row.title) for row in rows]

    def list_pages(self, tenant_id: str) -> list[PageContent]:
        stmt = (
            select(Page.id, Page.url, Page.title, Page.content)
            .where(Page.tenant_id == tenant_id)
            .order_by(Page.id)
        )
        with self._session_factory() as session:
            rows = session.execute(stmt).all()
        return [
            PageContent(id=row.id, url=row.url, title=row.title, content=row.content)
            for row in rows
        ]

    def upsert_page(
        self,
        tenant_id: str,
        url: str,
        title: str,
        content: str,
        content_hash: str,
    ) -> UpsertOutcome:
        """Insert or update a page keyed by (tenant_id, url).

        A page whose stored hash equals ``content_hash`` is left untouched.
        """
        with self._session_factory() as session:
            existing = session.execute(
                select(Page).where(Page.tenant_id == tenant_id, Page.url == url)
            ).scalar_one_or_none()

            if existing is not None and existing.hash == content_hash:
                _logger.info("page_unchanged", url=url)
                return UpsertOutcome.UNCHANGED

            if existing is None:
                session.add(
                    Page(
                        tenant_id=tenant_id,
                        url=url,
                        title=title,
                        content=content,
                        hash=content_hash,
                    )
                )
                outcome = UpsertOutcome.CREATED
            else:
                existing.title = title
                existing.content = content
                existing.hash = content_hash
                outcome = UpsertOutcome.UPDATED

            session.commit()

        _logger.info("page_saved", url=url, title=title, outcome=outcome.value)
        return outcome
