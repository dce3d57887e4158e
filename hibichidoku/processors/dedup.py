from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Set, Tuple

from ..models import Article
from ..utils.logging import get_logger

logger = get_logger("hibi.processors.dedup")


@dataclass(slots=True)
class DedupStats:
    total: int
    kept: int
    duplicates: int


def select_new_articles_with_stats(
    fetched: Iterable[Article],
    existing: Iterable[Article],
) -> Tuple[List[Article], DedupStats]:
    """Keep fetched articles whose ``id`` is not already persisted.

    Matching is exact on ``id``; near-duplicate titles are not detected. A
    repeated id within ``fetched`` keeps only its first occurrence.
    """
    seen: Set[str] = {a.id for a in existing}
    fresh: List[Article] = []
    total = 0
    for art in fetched:
        total += 1
        if art.id in seen:
            logger.debug("Skipping known article: %s", art.id)
            continue
        seen.add(art.id)
        fresh.append(art)
    stats = DedupStats(total=total, kept=len(fresh), duplicates=total - len(fresh))
    return fresh, stats


def select_new_articles(fetched: Iterable[Article], existing: Iterable[Article]) -> List[Article]:
    fresh, _ = select_new_articles_with_stats(fetched, existing)
    return fresh
