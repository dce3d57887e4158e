from __future__ import annotations

import re
from typing import Optional

from ..models import Article
from ..utils.ids import encode_id
from ..utils.logging import get_logger

logger = get_logger("hibi.output.post_formatter")

MAX_POST_LENGTH = 280
MAX_TITLE_LENGTH = 200
URL_WEIGHT = 23

# code points X counts once; everything else counts twice
_LIGHT_RANGES = ((0x0000, 0x10FF), (0x2000, 0x200D), (0x2010, 0x201F), (0x2032, 0x2037))
_URL_RE = re.compile(r"https?://\S+")

_LAYOUTS = (
    "{emoji} {title}\n\n{hashtags}\n{url}",
    "{emoji} {title}\n\n{url}",
)


class PostTooLongError(ValueError):
    """The announcement cannot fit the platform limit."""


_CATEGORY_EMOJI = {
    "AI": "🤖",
    "認知科学": "🧠",
    "哲学": "💭",
    "経済学": "📈",
    "社会": "🌏",
}

_CATEGORY_HASHTAGS = {
    "AI": "#AI #機械学習 #日々知読",
    "認知科学": "#認知科学 #脳科学 #日々知読",
    "哲学": "#哲学 #思想 #日々知読",
    "経済学": "#経済学 #行動経済学 #日々知読",
    "社会": "#社会 #テクノロジー #日々知読",
}


def category_emoji(category: str | None) -> str:
    return _CATEGORY_EMOJI.get(category or "", "📚")


def category_hashtags(category: str | None) -> str:
    return _CATEGORY_HASHTAGS.get(category or "", "#日々知読")


def article_page_url(article: Article, site_url: str) -> str:
    return f"{site_url.rstrip('/')}/articles/{encode_id(article.id)}"


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def _char_weight(char: str) -> int:
    code = ord(char)
    return 1 if any(lo <= code <= hi for lo, hi in _LIGHT_RANGES) else 2


def weighted_length(text: str) -> int:
    """Length as X counts it: every URL is 23, CJK and emoji count double."""
    total = 0
    pos = 0
    for match in _URL_RE.finditer(text):
        total += sum(_char_weight(c) for c in text[pos : match.start()]) + URL_WEIGHT
        pos = match.end()
    return total + sum(_char_weight(c) for c in text[pos:])


def _fit_title(template: str, title: str, max_length: int, **parts: str) -> Optional[str]:
    text = template.format(title=title, **parts)
    if weighted_length(text) <= max_length:
        return text
    for cut in range(len(title) - 1, -1, -1):
        text = template.format(title=title[:cut] + "...", **parts)
        if weighted_length(text) <= max_length:
            return text
    return None


def format_post(article: Article, *, site_url: str, max_length: int = MAX_POST_LENGTH) -> str:
    """Announcement text: emoji, title, hashtags and the reader URL.

    The title is shortened until the weighted length fits ``max_length``. When
    not even a bare ellipsis fits, the hashtags go; if that is still too long,
    PostTooLongError is raised.
    """
    parts = {
        "emoji": category_emoji(article.category),
        "hashtags": category_hashtags(article.category),
        "url": article_page_url(article, site_url),
    }
    title = _truncate(article.display_title, MAX_TITLE_LENGTH)
    for template in _LAYOUTS:
        text = _fit_title(template, title, max_length, **parts)
        if text is not None:
            if template is not _LAYOUTS[0]:
                logger.info("Dropped hashtags to fit the post for %s", article.id)
            return text
    raise PostTooLongError(f"Post for {article.id} cannot fit in {max_length} weighted characters")
