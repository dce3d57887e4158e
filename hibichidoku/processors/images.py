from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Literal, Optional

import requests

from ..utils.logging import get_logger

logger = get_logger("hibi.processors.images")

PEXELS_SEARCH_URL = "https://api.pexels.com/v1/search"

Orientation = Literal["landscape", "portrait", "square"]


@dataclass(slots=True)
class Photo:
    """One search hit; ``src`` maps size names (small, medium, large...) to URLs."""

    src: Dict[str, str]

    def url(self, size: str = "medium") -> str:
        return self.src.get(size) or self.src.get("original") or ""


class PexelsClient:
    """Minimal Pexels photo-search client."""

    def __init__(self, *, api_key: str, timeout: int = 30) -> None:
        if not api_key:
            raise ValueError("api_key is required for the Pexels client")
        self.api_key = api_key
        self.timeout = timeout

    def search(
        self,
        query: str,
        *,
        per_page: int = 1,
        orientation: Orientation = "landscape",
    ) -> List[Photo]:
        """Return photos for ``query``; raises ``requests.HTTPError`` on non-2xx."""
        resp = requests.get(
            PEXELS_SEARCH_URL,
            params={"query": query, "per_page": per_page, "orientation": orientation},
            headers={"Authorization": self.api_key},
            timeout=self.timeout,
        )
        if resp.status_code >= 400:
            logger.warning("Pexels API error (%s) for query '%s'", resp.status_code, query)
            resp.raise_for_status()
        data = resp.json()
        return [Photo(src=dict(p.get("src") or {})) for p in data.get("photos") or []]


def create_image_client(api_key: Optional[str]) -> Optional[PexelsClient]:
    if not api_key:
        logger.warning("PEXELS_API_KEY not set; cover images will use the placeholder service")
        return None
    return PexelsClient(api_key=api_key)
