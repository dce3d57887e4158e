from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ..models import Article
from ..processors.normalize import published_sort_key

MAX_PER_PAGE = 100


@dataclass(slots=True)
class Page:
    items: List[Article] = field(default_factory=list)
    page: int = 1
    per_page: int = 20
    total: int = 0

    @property
    def pages(self) -> int:
        return max(1, math.ceil(self.total / self.per_page)) if self.per_page else 1


def _haystack(article: Article) -> str:
    parts = [
        article.title,
        article.title_ja or "",
        article.summary,
        article.summary_ja or "",
        article.category or "",
        " ".join(article.tags or []),
    ]
    return "\n".join(parts).casefold()


def search_articles(articles: Iterable[Article], query: Optional[str] = None) -> List[Article]:
    """Case-insensitive substring match, newest first. An empty query matches all."""
    needle = (query or "").strip().casefold()
    hits = [a for a in articles if not needle or needle in _haystack(a)]
    hits.sort(key=lambda a: published_sort_key(a.published_at), reverse=True)
    return hits


def paginate(articles: List[Article], *, page: int = 1, per_page: int = 20) -> Page:
    if page < 1:
        raise ValueError("page must be >= 1")
    if not 1 <= per_page <= MAX_PER_PAGE:
        raise ValueError(f"per_page must be between 1 and {MAX_PER_PAGE}")
    start = (page - 1) * per_page
    return Page(items=articles[start:start + per_page], page=page, per_page=per_page, total=len(articles))
