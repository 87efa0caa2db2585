import sys
from pathlib import Path

import structlog

from civicrag.config import AppConfig, load_config
from civicrag.embedding import create_embedding_provider
from civicrag.ingestion.chunker import Chunker
from civicrag.ingestion.fetcher import PageFetcher
from civicrag.ingestion.indexer import PageIndexer
from civicrag.storage.chunks import ChunkStore
from civicrag.storage.pages import PageRepository
from civicrag.util.db import configure_engine, get_session_factory, init_db
from civicrag.util.logging import configure_logging

_logger = structlog.get_logger()

_USAGE = (
    "Usage:\n"
    "  python -m civicrag.ingestion ingest URL [URL ...]\n"
    "  python -m civicrag.ingestion ingest --file urls.txt\n"
    "  python -m civicrag.ingestion embed [--run]\n"
    "  python -m civicrag.ingestion init-db"
)


def read_url_file(path: Path) -> list[str]:
    """One URL per line; blank lines and ``#`` comments are ignored."""
    urls = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            urls.append(line)
    return urls


def _build_indexer(config: AppConfig, write: bool) -> PageIndexer:
    session_factory = get_session_factory()
    return PageIndexer(
        tenant_id=config.tenant_id,
        pages=PageRepository(session_factory),
        chunker=Chunker(config.chunking.size, config.chunking.overlap),
        chunk_store=ChunkStore(session_factory) if write else None,
        embedding_provider=create_embedding_provider(config.embedding) if write else None,
    )


def _ingest(config: AppConfig, args: list[str]) -> None:
    if args and args[0] == "--file":
        if len(args) < 2:
            print("--file requires a value")
            sys.exit(1)
        urls = read_url_file(Path(args[1]))
    else:
        urls = args

    if not urls:
        print(_USAGE)
        sys.exit(1)

    fetcher = PageFetcher()
    try:
        stats = _build_indexer(config, write=False).ingest(urls, fetcher)
    finally:
        fetcher.close()

    for outcome, count in sorted(stats.outcomes.items()):
        print(f"{outcome}: {count}")
    for url in stats.failed:
        print(f"failed: {url}")


def _embed(config: AppConfig, args: list[str]) -> None:
    write = "--run" in args
    stats = _build_indexer(config, write=write).embed_pages(dry_run=not write)

    print(f"pages: {stats.pages}")
    print(f"chunks: {stats.chunks}")
    if stats.skipped:
        print(f"skipped: {stats.skipped}")
    for category, count in stats.categories.most_common():
        print(f"  {category}: {count} pages")
    if not write:
        print("Dry run, nothing written. Re-run with --run to store chunks.")


def main() -> None:
    args = sys.argv[1:]
    if not args or args[0] not in ("ingest", "embed", "init-db"):
        print(_USAGE)
        sys.exit(1)

    config = load_config()
    configure_logging(json_output=config.logging.json_output, log_level=config.logging.log_level)
    configure_engine(config.database_url)

    command, rest = args[0], args[1:]
    match command:
        case "init-db":
            init_db()
        case "ingest":
            _ingest(config, rest)
        case "embed":
            _embed(config, rest)

    _logger.info("ingestion_command_complete", command=command)


if __name__ == "__main__":
    main()
