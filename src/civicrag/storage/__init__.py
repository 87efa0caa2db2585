from civicrag.storage.chunks import ChunkStore, NewChunk
from civicrag.storage.models import Base, DocumentChunk, Page, QueryLog
from civicrag.storage.pages import PageContent, PageRef, PageRepository, UpsertOutcome

__all__ = [
    "Base",
    "ChunkStore",
    "DocumentChunk",
    "NewChunk",
    "Page",
    "PageContent",
    "PageRef",
    "PageRepository",
    "QueryLog",
    "UpsertOutcome",
]
