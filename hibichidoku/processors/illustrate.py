from __future__ import annotations

from dataclasses import replace
from typing import List, Optional

from ..models import Article
from ..utils.logging import get_logger
from ..utils.rate_limit import RateLimiter
from .images import PexelsClient

logger = get_logger("hibi.processors.illustrate")

PLACEHOLDER_URL = "https://picsum.photos/seed/hibichidoku-{seed}/800/450"
PLACEHOLDER_RANGE = 1000

DEFAULT_DIAGRAM_QUERY = "abstract concept"

# Japanese figure vocabulary -> English search terms; first hit wins
_DIAGRAM_KEYWORDS = (
    ("地図", "map"),
    ("グラフ", "graph chart"),
    ("フローチャート", "flowchart"),
    ("図", "diagram"),
    ("構造", "structure"),
    ("ネットワーク", "network"),
    ("AI", "artificial intelligence"),
    ("機械学習", "machine learning"),
    ("脳", "brain neuroscience"),
    ("データ", "data analytics"),
    ("分析", "analysis"),
    ("比較", "comparison"),
    ("進化", "evolution"),
    ("変化", "change transformation"),
    ("モデル", "model"),
    ("プロセス", "process"),
    ("哲学", "philosophy thinking"),
    ("経済", "economy business"),
    ("社会", "society people"),
    ("環境", "environment nature"),
    ("技術", "technology"),
)


def image_query(article: Article) -> str:
    terms = (article.tags or [])[:2] or [article.category or "technology"]
    return " ".join(terms)


def fallback_image_url(article_id: str) -> str:
    """Deterministic placeholder image for an article id."""
    seed = sum(ord(ch) for ch in article_id) % PLACEHOLDER_RANGE
    return PLACEHOLDER_URL.format(seed=seed)


def diagram_query(suggestion: str) -> str:
    for japanese, english in _DIAGRAM_KEYWORDS:
        if japanese in suggestion:
            return english
    return DEFAULT_DIAGRAM_QUERY


class Illustrator:
    def __init__(self, client: Optional[PexelsClient], *, limiter: Optional[RateLimiter] = None) -> None:
        self.client = client
        self.limiter = limiter or RateLimiter(0.5, name="pexels")

    def _first_photo(self, query: str, size: str) -> str:
        if self.client is None:
            return ""
        try:
            photos = self.client.search(query, per_page=1, orientation="landscape")
        except Exception as exc:  # noqa: BLE001 - image search is best-effort
            logger.warning("Image search failed for '%s': %s", query, exc)
            return ""
        return photos[0].url(size) if photos else ""

    def fetch_cover_image(self, article: Article) -> str:
        """Return a cover photo URL, or "" when none could be found."""
        return self._first_photo(image_query(article), "medium")

    def fetch_diagram_images(self, suggestions: List[str]) -> List[str]:
        """One image per suggestion, positionally aligned; "" marks a miss."""
        if self.client is None:
            return ["" for _ in suggestions]
        return [self._first_photo(diagram_query(s), "large") for s in self.limiter.throttle(suggestions)]

    def illustrate(self, article: Article) -> Article:
        image_url = article.image_url
        if not image_url:
            image_url = self.fetch_cover_image(article)
            if not image_url:
                image_url = fallback_image_url(article.id)
                logger.debug("Using placeholder image for %s", article.id)

        visual_images = article.visual_images
        if article.visual_suggestions and (
            visual_images is None or len(visual_images) != len(article.visual_suggestions)
        ):
            visual_images = self.fetch_diagram_images(article.visual_suggestions)

        return replace(article, image_url=image_url, visual_images=visual_images)
