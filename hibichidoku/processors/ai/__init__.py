"""LLM client interface, the Gemini backend and response parsing."""

from .base import LLMClient
from .factory import create_llm_client
from .parsing import LLMOutputError, NoJsonFoundError, SchemaMismatchError

__all__ = [
    "LLMClient",
    "create_llm_client",
    "LLMOutputError",
    "NoJsonFoundError",
    "SchemaMismatchError",
]
