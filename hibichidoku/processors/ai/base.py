from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class LLMClient(ABC):
    """Abstract text-generation client.

    One instance is built per pipeline run and handed to every stage that
    needs it; the model identifier is chosen per call so callers can walk a
    candidate list.
    """

    @abstractmethod
    def generate(
        self,
        prompt: str,
        *,
        model: str,
        response_mime_type: Optional[str] = None,
    ) -> str:
        """Return the raw text produced by ``model`` for ``prompt``."""
