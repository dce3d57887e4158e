from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ..models import Article
from ..processors.normalize import parse_timestamp, published_sort_key
from ..utils.logging import get_logger
from ..utils.rate_limit import RateLimiter
from .post_formatter import format_post
from .store import ArticleStore
from .twitter_client import TwitterClient

logger = get_logger("hibi.output.publisher")

DEFAULT_CAP = 50


@dataclass(slots=True)
class PublishResult:
    stored: int = 0
    added: int = 0
    evicted: int = 0
    posted: int = 0
    post_failures: int = 0
    post_ids: List[str] = field(default_factory=list)


def merge_articles(existing: Iterable[Article], new: Iterable[Article], *, cap: int = DEFAULT_CAP) -> List[Article]:
    """Union by id, newest ``publishedAt`` first, truncated to ``cap``.

    New articles win over stored ones with the same id. The sort is stable and
    records with unparsable timestamps go last.
    """
    merged: List[Article] = []
    seen = set()
    for article in list(new) + list(existing):
        if article.id in seen:
            continue
        seen.add(article.id)
        merged.append(article)

    for article in merged:
        if parse_timestamp(article.published_at) is None:
            logger.debug("Unparsable publishedAt for %s: %r", article.id, article.published_at)
    merged.sort(key=lambda a: published_sort_key(a.published_at), reverse=True)
    return merged[:cap]


class Publisher:
    """Persists new articles, then announces them best-effort."""

    def __init__(
        self,
        store: ArticleStore,
        *,
        cap: int = DEFAULT_CAP,
        social: Optional[TwitterClient] = None,
        site_url: str = "http://localhost:8000",
        limiter: Optional[RateLimiter] = None,
    ) -> None:
        if cap <= 0:
            raise ValueError("Retention cap must be positive")
        self.store = store
        self.cap = cap
        self.social = social
        self.site_url = site_url
        self.limiter = limiter or RateLimiter(1.0, name="social")

    def persist(self, new_articles: List[Article]) -> List[Article]:
        return self.store.update(lambda current: merge_articles(current, new_articles, cap=self.cap))

    def announce(self, articles: List[Article], result: PublishResult) -> None:
        if self.social is None:
            logger.info("No social client configured; skipping announcements")
            return
        for article in self.limiter.throttle(articles):
            try:
                post_id = self.social.post(format_post(article, site_url=self.site_url))
            except Exception as exc:  # noqa: BLE001 - announcements never undo persistence
                result.post_failures += 1
                logger.error("Failed to announce %s: %s", article.id, exc)
                continue
            result.posted += 1
            if post_id:
                result.post_ids.append(post_id)

    def publish(self, new_articles: List[Article]) -> PublishResult:
        result = PublishResult()
        if not new_articles:
            logger.info("No new articles to publish")
            return result

        before = {a.id for a in self.store.load().articles}
        stored = self.persist(new_articles)
        stored_ids = {a.id for a in stored}
        result.stored = len(stored)
        result.added = len(stored_ids - before)
        result.evicted = len(before - stored_ids)
        logger.info(
            "Stored %d articles (%d added, %d evicted, cap %d)",
            result.stored,
            result.added,
            result.evicted,
            self.cap,
        )

        # only announce what survived truncation
        survivors = [a for a in new_articles if a.id in stored_ids]
        self.announce(survivors, result)
        return result
