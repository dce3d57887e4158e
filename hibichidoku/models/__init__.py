"""Typed models used across the application."""

from .source import Source, SourceType
from .article import (
    Article,
    ArticleSource,
    Category,
    CATEGORIES,
    FetcherResult,
)

__all__ = [
    "Source",
    "SourceType",
    "Article",
    "ArticleSource",
    "Category",
    "CATEGORIES",
    "FetcherResult",
]
