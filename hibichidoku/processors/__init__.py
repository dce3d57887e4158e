"""Processing stages: normalization, deduplication, enrichment, illustration."""

from .normalize import clean_html_to_text, parse_timestamp, published_sort_key, utc_now_iso
from .dedup import DedupStats, select_new_articles, select_new_articles_with_stats
from .enrich import Enricher
from .illustrate import Illustrator, fallback_image_url

__all__ = [
    "clean_html_to_text",
    "parse_timestamp",
    "published_sort_key",
    "utc_now_iso",
    "DedupStats",
    "select_new_articles",
    "select_new_articles_with_stats",
    "Enricher",
    "Illustrator",
    "fallback_image_url",
]
