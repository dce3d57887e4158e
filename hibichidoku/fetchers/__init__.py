"""Content fetching layer for arXiv and RSS sources."""

from ..models import FetcherResult, Source
from .arxiv import fetch_arxiv_papers
from .rss import fetch_rss


def fetch_source(source: Source) -> FetcherResult:
    """Dispatch a configured source to its fetcher."""
    if source.type == "arxiv":
        return fetch_arxiv_papers(source.query or "", source.max_results)
    if source.type == "rss":
        return fetch_rss(source.url or "", source.category or "Science", limit=source.max_results)
    return FetcherResult(success=False, articles=[], error=f"Unknown source type: {source.type}")


__all__ = ["fetch_arxiv_papers", "fetch_rss", "fetch_source"]
