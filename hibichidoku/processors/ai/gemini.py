from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from .base import LLMClient

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"


class GeminiAPIError(RuntimeError):
    """Raised when a Gemini response carries no usable candidate."""


def model_url(model: str, api_key: str) -> str:
    name = model if model.startswith("models/") else f"models/{model}"
    return f"{GEMINI_API_BASE}/{name}:generateContent?key={api_key}"


def first_candidate_parts(data: Dict[str, Any]) -> list:
    candidates = data.get("candidates") or []
    if not candidates:
        feedback = data.get("promptFeedback") or {}
        raise GeminiAPIError(f"No candidates in Gemini response (feedback={feedback})")
    return candidates[0].get("content", {}).get("parts") or []


class GeminiClient(LLMClient):
    """HTTP client for Gemini via the Google AI Studio API."""

    def __init__(self, *, api_key: str, timeout: int = 120, temperature: float = 0.7) -> None:
        if not api_key:
            raise ValueError("api_key is required for the Gemini client")
        self.api_key = api_key
        self.timeout = timeout
        self.temperature = temperature

    def generate(
        self,
        prompt: str,
        *,
        model: str,
        response_mime_type: Optional[str] = None,
    ) -> str:
        generation_config: Dict[str, Any] = {"temperature": self.temperature}
        if response_mime_type:
            generation_config["responseMimeType"] = response_mime_type
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }
        resp = requests.post(model_url(model, self.api_key), json=payload, timeout=self.timeout)
        resp.raise_for_status()
        parts = first_candidate_parts(resp.json())
        return "".join(p.get("text", "") for p in parts).strip()
