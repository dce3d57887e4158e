from __future__ import annotations

import html
import re
from typing import List, Optional

import requests

from ..models import Article, FetcherResult
from ..processors.normalize import collapse_whitespace, utc_now_iso
from ..utils.logging import get_logger

logger = get_logger("hibi.fetchers.arxiv")

ARXIV_API_URL = "http://export.arxiv.org/api/query"

_TAG_PATTERNS = {
    "title": re.compile(r"<title>([\s\S]*?)</title>"),
    "summary": re.compile(r"<summary>([\s\S]*?)</summary>"),
    "id": re.compile(r"<id>([\s\S]*?)</id>"),
    "published": re.compile(r"<published>([\s\S]*?)</published>"),
    "author": re.compile(r"<author>\s*<name>([\s\S]*?)</name>"),
}

# (arXiv category prefixes, site category)
_CATEGORY_PREFIXES = (
    (("cs.AI", "cs.LG", "cs.CL", "stat.ML"), "AI"),
    (("q-bio.NC", "cs.HC", "q-bio.QM"), "認知科学"),
    (("physics.hist-ph",), "哲学"),
    (("econ",), "経済学"),
    (("cs.CY",), "社会"),
)


def category_for(arxiv_category: str) -> str:
    """Map an arXiv category to the site's closed category set."""
    for prefixes, name in _CATEGORY_PREFIXES:
        if arxiv_category.startswith(prefixes):
            return name
    return "Science"


def canonical_abs_url(raw_id: str) -> str:
    """Normalize an arXiv identifier URL to its ``/abs/`` detail-page form."""
    url = raw_id.strip()
    if "/pdf/" in url:
        url = url.replace("/pdf/", "/abs/", 1)
        if url.endswith(".pdf"):
            url = url[: -len(".pdf")]
    return url


def pdf_url(abs_url: str) -> str:
    return abs_url.replace("/abs/", "/pdf/", 1)


def _match(field: str, entry: str) -> Optional[str]:
    m = _TAG_PATTERNS[field].search(entry)
    return html.unescape(m.group(1).strip()) if m else None


def parse_arxiv_feed(text: str, *, category: str) -> List[Article]:
    """Extract articles from the arXiv Atom payload by splitting on ``<entry>``.

    Entries lacking a title or id are skipped.
    """
    site_category = category_for(category)
    articles: List[Article] = []
    # The first chunk is the feed header
    for entry in text.split("<entry>")[1:]:
        title = _match("title", entry)
        raw_id = _match("id", entry)
        if not title or not raw_id:
            continue

        abs_url = canonical_abs_url(raw_id)
        summary = _match("summary", entry) or ""
        articles.append(
            Article(
                id=abs_url,
                title=collapse_whitespace(title),
                source="arxiv",
                url=pdf_url(abs_url),
                summary=summary,
                published_at=_match("published", entry) or utc_now_iso(),
                author=_match("author", entry),
                category=site_category,  # type: ignore[arg-type]
                original_content=summary,
            )
        )
    return articles


def fetch_arxiv_papers(category: str, max_results: int = 5, *, timeout: int = 30) -> FetcherResult:
    """Fetch the newest submissions in an arXiv category.

    Never raises: failures come back as ``success=False`` with the error text.
    """
    params = {
        "search_query": f"cat:{category}",
        "start": 0,
        "max_results": max_results,
        "sortBy": "submittedDate",
        "sortOrder": "descending",
    }
    logger.debug("Fetching arXiv category %s (max=%d)", category, max_results)
    try:
        resp = requests.get(ARXIV_API_URL, params=params, timeout=timeout)
        if resp.status_code >= 400:
            logger.warning("arXiv fetch failed (%s) for %s", resp.status_code, category)
            resp.raise_for_status()
        articles = parse_arxiv_feed(resp.text, category=category)
    except Exception as exc:  # noqa: BLE001 - fetchers report errors in the result
        logger.error("Error fetching arXiv %s: %s", category, exc)
        return FetcherResult(success=False, articles=[], error=str(exc))

    logger.info("Fetched %d arXiv papers for %s", len(articles), category)
    return FetcherResult(success=True, articles=articles)
