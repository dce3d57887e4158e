from __future__ import annotations

from typing import Optional

from ...utils.logging import get_logger
from .base import LLMClient

logger = get_logger("hibi.ai.factory")


def create_llm_client(api_key: Optional[str]) -> Optional[LLMClient]:
    """Create the Gemini client, or None when no API key is configured.

    A missing key disables the LLM stages for the run instead of failing it.
    """
    if not api_key:
        logger.warning("GEMINI_API_KEY not set; LLM stages will be skipped")
        return None

    from .gemini import GeminiClient  # lazy import

    return GeminiClient(api_key=api_key)
