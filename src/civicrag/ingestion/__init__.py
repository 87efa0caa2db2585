from civicrag.ingestion.chunker import Chunker, TextWindows
from civicrag.ingestion.fetcher import FetchedPage, PageFetcher, content_hash, html_to_text
from civicrag.ingestion.indexer import EmbedStats, IngestStats, PageIndexer

__all__ = [
    "Chunker",
    "EmbedStats",
    "FetchedPage",
    "IngestStats",
    "PageFetcher",
    "PageIndexer",
    "TextWindows",
    "content_hash",
    "html_to_text",
]
