import hashlib
import html
import re
from dataclasses import dataclass

import httpx
import structlog

_logger = structlog.get_logger()

_FETCH_TIMEOUT_SECONDS = 20.0

_DROP_BLOCKS = re.compile(
    r"<(script|style|noscript|nav|header|footer|aside|form)\b[^>]*>.*?</\1\s*>",
    re.IGNORECASE | re.DOTALL,
)
_MAIN_BLOCK = re.compile(r"<(main|article)\b[^>]*>(.*)</\1\s*>", re.IGNORECASE | re.DOTALL)
_TITLE = re.compile(r"<title\b[^>]*>(.*?)</title\s*>", re.IGNORECASE | re.DOTALL)
_H1 = re.compile(r"<h1\b[^>]*>(.*?)</h1\s*>", re.IGNORECASE | re.DOTALL)


@dataclass(frozen=True)
class FetchedPage:
    url: str
    title: str
    content: str
    hash: str


def content_hash(content: str) -> str:
    return hashlib.sha1(content.encode("utf-8")).hexdigest()


def html_to_text(markup: str) -> str:
    """Reduce a page to its readable text.

    Scripts, styles and site chrome are dropped; when the page has a
    ``<main>`` or ``<article>`` element only that part is kept.
    """
    text = _DROP_BLOCKS.sub("", markup)
    main = _MAIN_BLOCK.search(text)
    if main:
        text = main.group(2)
    text = re.sub(r"<br\s*/?>", "\n", text, flags=re.IGNORECASE)
    text = re.sub(r"</(p|div|h[1-6]|li|tr|section)>", "\n", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", "", text)
    text = html.unescape(text).replace("\xa0", " ")
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def extract_title(markup: str) -> str | None:
    for pattern in (_H1, _TITLE):
        match = pattern.search(markup)
        if match:
            title = html.unescape(re.sub(r"<[^>]+>", "", match.group(1)))
            title = re.sub(r"\s+", " ", title).strip()
            if title:
                return title
    return None


class PageFetcher:
    def __init__(
        self,
        timeout_seconds: float = _FETCH_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            timeout=timeout_seconds,
            transport=transport,
            follow_redirects=True,
            headers={"User-Agent": "civicrag-ingest"},
        )

    def fetch(self, url: str) -> FetchedPage:
        """Download ``url`` and extract its title and readable text.

        The title falls back to the URL. HTTP failures propagate as
        :class:`httpx.HTTPError`.
        """
        response = self._client.get(url)
        response.raise_for_status()
        markup = response.text

        content = html_to_text(markup)
        title = extract_title(markup) or url
        _logger.debug("page_fetched", url=url, title=title, length=len(content))
        return FetchedPage(url=url, title=title, content=content, hash=content_hash(content))

    def close(self) -> None:
        self._client.close()
