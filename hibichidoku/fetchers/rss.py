from __future__ import annotations

from typing import Any, List, Optional

import feedparser
import requests

from ..models import Article, FetcherResult
from ..processors.normalize import clean_html_to_text, struct_time_to_iso, utc_now_iso
from ..utils.logging import get_logger

logger = get_logger("hibi.fetchers.rss")

MAX_ENTRIES = 5

_DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/127.0.0.0 Safari/537.36"
    )
}


def _entry_content(entry: Any) -> Optional[str]:
    contents = entry.get("content")
    if contents and isinstance(contents, list):
        return contents[0].get("value")
    return None


def _published(entry: Any) -> str:
    # feedparser may provide 'published_parsed' or 'updated_parsed'
    for key in ("published_parsed", "updated_parsed"):
        iso = struct_time_to_iso(entry.get(key))
        if iso:
            return iso
    return entry.get("published") or entry.get("updated") or utc_now_iso()


def entry_to_article(entry: Any, *, category: str) -> Optional[Article]:
    identifier = entry.get("id") or entry.get("guid") or entry.get("link") or ""
    if not identifier:
        return None

    content = _entry_content(entry)
    description = entry.get("summary")
    snippet = clean_html_to_text(description or content)
    return Article(
        id=identifier,
        title=entry.get("title") or "No Title",
        source="rss",
        url=entry.get("link") or "",
        summary=snippet,
        published_at=_published(entry),
        author=entry.get("author") or "",
        category=category,  # type: ignore[arg-type]
        original_content=content or description or snippet,
    )


def parse_feed(payload: bytes | str, *, category: str, limit: int = MAX_ENTRIES) -> List[Article]:
    parsed = feedparser.parse(payload)
    if getattr(parsed, "bozo", False):
        # feedparser sets bozo on feed errors but may still parse entries
        logger.debug("Feed 'bozo' flagged: %s", getattr(parsed, "bozo_exception", None))

    articles: List[Article] = []
    for entry in (getattr(parsed, "entries", []) or [])[:limit]:
        art = entry_to_article(entry, category=category)
        if art is None:
            logger.debug("Skipping feed entry without guid or link: %s", entry.get("title"))
            continue
        articles.append(art)
    return articles


def fetch_rss(url: str, category: str, *, limit: int = MAX_ENTRIES, timeout: int = 30) -> FetcherResult:
    """Fetch a syndication feed and map its first entries to articles.

    The request goes through ``requests`` for consistent timeouts and headers;
    ``feedparser`` handles RSS/Atom variants. Never raises.
    """
    limit = min(limit, MAX_ENTRIES)
    logger.debug("Fetching RSS from %s", url)
    try:
        resp = requests.get(url, headers=_DEFAULT_HEADERS, timeout=timeout)
        if resp.status_code >= 400:
            logger.warning("RSS fetch failed (%s): %s", resp.status_code, url)
            resp.raise_for_status()
        articles = parse_feed(resp.content, category=category, limit=limit)
    except Exception as exc:  # noqa: BLE001 - fetchers report errors in the result
        logger.error("Error fetching RSS from %s: %s", url, exc)
        return FetcherResult(success=False, articles=[], error=str(exc))

    logger.info("Fetched %d RSS entries from %s", len(articles), url)
    return FetcherResult(success=True, articles=articles)
