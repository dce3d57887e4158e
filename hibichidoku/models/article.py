from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from ..utils.logging import get_logger

logger = get_logger("hibi.models.article")

ArticleSource = Literal["arxiv", "rss", "x", "other"]
Category = Literal["AI", "Science", "Philosophy", "認知科学", "哲学", "経済学", "社会"]

CATEGORIES = ("AI", "Science", "Philosophy", "認知科学", "哲学", "経済学", "社会")
_SOURCES = ("arxiv", "rss", "x", "other")

# attribute name -> key in the persisted JSON document
_JSON_KEYS: Dict[str, str] = {
    "id": "id",
    "title": "title",
    "source": "source",
    "url": "url",
    "summary": "summary",
    "published_at": "publishedAt",
    "author": "author",
    "original_content": "originalContent",
    "title_ja": "titleJa",
    "summary_ja": "summaryJa",
    "explanation_ja": "explanationJa",
    "translation_ja": "translationJa",
    "insight_ja": "insightJa",
    "recommended_books": "recommendedBooks",
    "image_url": "imageUrl",
    "category": "category",
    "tags": "tags",
    "visual_suggestions": "visualSuggestions",
    "visual_images": "visualImages",
    "audio_url": "audioUrl",
}

_LIST_FIELDS = {"recommended_books", "tags", "visual_suggestions", "visual_images"}
_REQUIRED_FIELDS = ("id", "title", "url", "summary", "published_at")


@dataclass(slots=True)
class Article:
    id: str
    title: str
    source: ArticleSource
    url: str
    summary: str
    published_at: str
    author: Optional[str] = None
    original_content: Optional[str] = None

    # LLM-derived fields
    title_ja: Optional[str] = None
    summary_ja: Optional[str] = None
    explanation_ja: Optional[str] = None
    translation_ja: Optional[str] = None
    insight_ja: Optional[str] = None
    recommended_books: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    category: Optional[Category] = None

    # Illustration and narration
    image_url: Optional[str] = None
    visual_suggestions: Optional[List[str]] = None
    visual_images: Optional[List[str]] = None
    audio_url: Optional[str] = None

    @property
    def display_title(self) -> str:
        return self.title_ja or self.title

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase document shape, omitting unset fields."""
        out: Dict[str, Any] = {}
        for attr, key in _JSON_KEYS.items():
            value = getattr(self, attr)
            if value is None:
                continue
            out[key] = list(value) if attr in _LIST_FIELDS else value
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Article":
        """Build an Article from a persisted document.

        Unknown keys are ignored. A category outside the closed set is dropped,
        and ``visualImages`` is padded or truncated to line up with
        ``visualSuggestions``. Scalar values in text fields are stringified;
        list fields holding anything but a list are dropped.
        """
        kwargs: Dict[str, Any] = {}
        for attr, key in _JSON_KEYS.items():
            if key in data and data[key] is not None:
                kwargs[attr] = data[key]

        for required in _REQUIRED_FIELDS:
            kwargs.setdefault(required, "")

        for attr, value in list(kwargs.items()):
            if attr in _LIST_FIELDS:
                if isinstance(value, list):
                    kwargs[attr] = [str(v) for v in value]
                else:
                    logger.debug("Dropping non-list %s=%r for %s", attr, value, data.get("id"))
                    del kwargs[attr]
            elif isinstance(value, (str, int, float)) and not isinstance(value, bool):
                kwargs[attr] = str(value)
            else:
                logger.debug("Dropping non-text %s=%r for %s", attr, value, data.get("id"))
                kwargs[attr] = "" if attr in _REQUIRED_FIELDS else None

        if kwargs.get("source") not in _SOURCES:
            kwargs["source"] = "other"

        category = kwargs.get("category")
        if category is not None and category not in CATEGORIES:
            logger.debug("Dropping unknown category '%s' for %s", category, kwargs["id"])
            kwargs["category"] = None

        suggestions = kwargs.get("visual_suggestions")
        images = kwargs.get("visual_images")
        if suggestions is not None and images is not None and len(images) != len(suggestions):
            kwargs["visual_images"] = (images + [""] * len(suggestions))[: len(suggestions)]

        return cls(**kwargs)


@dataclass(slots=True)
class FetcherResult:
    success: bool
    articles: List[Article] = field(default_factory=list)
    error: Optional[str] = None
