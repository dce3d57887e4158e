"""Podcast RSS 2.0 feed (with the iTunes namespace) built from the store."""

from __future__ import annotations

from email.utils import format_datetime
from pathlib import Path
from typing import Iterable, List, Optional
from xml.sax import saxutils

from ..models import Article
from ..processors.normalize import parse_timestamp, published_sort_key
from ..utils.config_loader import PodcastChannel
from ..utils.ids import encode_id
from ..utils.logging import get_logger

logger = get_logger("hibi.output.feed")

DEFAULT_ENCLOSURE_LENGTH = 10_000_000
FEED_CACHE_CONTROL = "public, max-age=3600"

_MIME_TYPES = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".m4a": "audio/mp4",
}

_ATTR_ENTITIES = {'"': "&quot;"}


def _esc(value: str) -> str:
    return saxutils.escape(value or "")


def _attr(value: str) -> str:
    return saxutils.escape(value or "", _ATTR_ENTITIES)


def _absolute(base_url: str, path: str) -> str:
    if path.startswith(("http://", "https://")):
        return path
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def enclosure_length(audio_url: str, audio_root: Optional[Path]) -> int:
    """Size in bytes of the stored episode file, or the fallback when unknown."""
    if audio_root is None:
        return DEFAULT_ENCLOSURE_LENGTH
    path = audio_root / Path(audio_url).name
    try:
        return path.stat().st_size
    except OSError:
        logger.debug("Audio file %s not found; using default enclosure length", path)
        return DEFAULT_ENCLOSURE_LENGTH


def episodes(articles: Iterable[Article]) -> List[Article]:
    """Articles with audio, newest first."""
    narrated = [a for a in articles if a.audio_url]
    narrated.sort(key=lambda a: published_sort_key(a.published_at), reverse=True)
    return narrated


def _pub_date(published_at: str) -> str:
    parsed = parse_timestamp(published_at)
    return format_datetime(parsed) if parsed else ""


def build_podcast_feed(
    articles: Iterable[Article],
    channel: PodcastChannel,
    *,
    base_url: str,
    audio_root: Optional[Path] = None,
) -> str:
    items = episodes(articles)
    explicit = "true" if channel.explicit else "false"
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<rss version="2.0" xmlns:itunes="http://www.itunes.com/dtds/podcast-1.0.dtd">',
        "<channel>",
        f"<title>{_esc(channel.title)}</title>",
        f"<link>{_esc(base_url)}</link>",
        f"<language>{_esc(channel.language)}</language>",
        f"<description>{_esc(channel.description)}</description>",
        f"<itunes:author>{_esc(channel.author)}</itunes:author>",
        f"<itunes:summary>{_esc(channel.description)}</itunes:summary>",
        "<itunes:owner>",
        f"<itunes:name>{_esc(channel.author)}</itunes:name>",
        f"<itunes:email>{_esc(channel.email)}</itunes:email>",
        "</itunes:owner>",
        f'<itunes:image href="{_attr(_absolute(base_url, channel.image))}"/>',
    ]
    if channel.subcategory:
        lines.extend([
            f'<itunes:category text="{_attr(channel.category)}">',
            f'<itunes:category text="{_attr(channel.subcategory)}"/>',
            "</itunes:category>",
        ])
    else:
        lines.append(f'<itunes:category text="{_attr(channel.category)}"/>')
    lines.extend([
        "<itunes:type>episodic</itunes:type>",
        f"<itunes:explicit>{explicit}</itunes:explicit>",
    ])

    total = len(items)
    for index, article in enumerate(items):
        audio_url = article.audio_url or ""
        suffix = Path(audio_url).suffix.lower()
        mime = _MIME_TYPES.get(suffix, "audio/mpeg")
        page = _absolute(base_url, f"/articles/{encode_id(article.id)}")
        lines.extend([
            "<item>",
            f"<title>{_esc(article.display_title)}</title>",
            f"<description>{_esc(article.summary_ja or article.summary)}</description>",
            f"<link>{_esc(page)}</link>",
            (
                f'<enclosure url="{_attr(_absolute(base_url, audio_url))}" '
                f'length="{enclosure_length(audio_url, audio_root)}" type="{mime}"/>'
            ),
            f"<pubDate>{_pub_date(article.published_at)}</pubDate>",
            f'<guid isPermaLink="false">{encode_id(article.id)}</guid>',
            f"<itunes:episode>{total - index}</itunes:episode>",
            f"<itunes:explicit>{explicit}</itunes:explicit>",
            "</item>",
        ])

    lines.extend(["</channel>", "</rss>"])
    logger.info("Built podcast feed with %d episodes", total)
    return "\n".join(lines)


def write_podcast_feed(path: Path, xml: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(xml, encoding="utf-8")
    logger.info("Wrote podcast feed to %s", path)
    return path
