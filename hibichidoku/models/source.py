from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

SourceType = Literal["arxiv", "rss"]


@dataclass(slots=True)
class Source:
    """Configuration for a content source (arXiv category or RSS feed)."""

    name: str
    type: SourceType
    query: Optional[str] = None
    url: Optional[str] = None
    category: Optional[str] = None
    max_results: int = 5
