"""Shared pytest fixtures: sample articles and in-memory provider fakes."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from hibichidoku.models import Article
from hibichidoku.narration.tts import SpeechSynthesizer, SynthesizedAudio
from hibichidoku.processors.ai import LLMClient
from hibichidoku.processors.images import Photo
from hibichidoku.utils.pipeline_config import PipelineConfig


ENRICHMENT_JSON = json.dumps(
    {
        "titleJa": "日本語タイトル",
        "summaryJa": "日本語の要約",
        "explanationJa": "やさしい解説",
        "translationJa": "詳細な解説",
        "insightJa": "考察",
        "recommendedBooks": ["機械学習 入門"],
        "tags": ["AI", "言語モデル"],
        "visualSuggestions": ["ニューラルネットワークの構造図"],
    },
    ensure_ascii=False,
)

DIALOGUE_JSON = json.dumps(
    [
        {"speaker": "ホスト", "text": "みなさん、こんにちは！ひびちどくラジオへようこそ！"},
        {"speaker": "ゲスト", "text": "今日は面白い論文を紹介します。"},
    ],
    ensure_ascii=False,
)


def make_article(article_id: str = "http://arxiv.org/abs/2401.00001", **overrides) -> Article:
    fields = dict(
        id=article_id,
        title="A Study of Things",
        source="arxiv",
        url=article_id.replace("/abs/", "/pdf/"),
        summary="We study things.",
        published_at="2024-01-01T00:00:00.000Z",
        category="AI",
    )
    fields.update(overrides)
    return Article(**fields)


class FakeLLM(LLMClient):
    """Returns canned responses per model; raises for models mapped to an exception."""

    def __init__(self, responses: Optional[Dict[str, object]] = None, default: object = ENRICHMENT_JSON) -> None:
        self.responses = responses or {}
        self.default = default
        self.calls: List[tuple] = []

    def generate(self, prompt: str, *, model: str, response_mime_type: Optional[str] = None) -> str:
        self.calls.append((model, response_mime_type))
        value = self.responses.get(model, self.default)
        if response_mime_type == "application/json" and model not in self.responses:
            value = DIALOGUE_JSON
        if isinstance(value, BaseException):
            raise value
        return str(value)


class FakeImageClient:
    def __init__(self, photos: Optional[List[Photo]] = None, error: Optional[Exception] = None) -> None:
        self.photos = photos if photos is not None else [Photo(src={"medium": "https://img/m.jpg", "large": "https://img/l.jpg"})]
        self.error = error
        self.queries: List[str] = []

    def search(self, query: str, *, per_page: int = 1, orientation: str = "landscape") -> List[Photo]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return list(self.photos)


class FakeSynthesizer(SpeechSynthesizer):
    def __init__(self, audio: Optional[SynthesizedAudio] = None) -> None:
        self.audio = audio if audio is not None else SynthesizedAudio(data=b"ID3fake-mp3", mime_type="audio/mpeg")
        self.calls = 0

    def synthesize(self, turns):
        self.calls += 1
        return self.audio


class FakeSocial:
    def __init__(self, fail_ids: Optional[set] = None) -> None:
        self.posts: List[str] = []
        self.fail_ids = fail_ids or set()

    def post(self, text: str) -> Optional[str]:
        if any(marker in text for marker in self.fail_ids):
            raise RuntimeError("boom")
        self.posts.append(text)
        return str(len(self.posts))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep real credentials from leaking into tests."""
    for name in (
        "GEMINI_API_KEY",
        "PEXELS_API_KEY",
        "GOOGLE_CLOUD_TTS_API_KEY",
        "TWITTER_BEARER_TOKEN",
        "TTS_MODE",
        "ENABLE_NARRATION",
        "ENABLE_SOCIAL_POSTS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def store_path(tmp_path) -> Path:
    return tmp_path / "data" / "posts.json"


@pytest.fixture
def pipeline_config(tmp_path, store_path) -> PipelineConfig:
    """Config with every delay at zero and all paths under tmp_path."""
    return PipelineConfig(
        store_path=store_path,
        audio_dir=tmp_path / "audio",
        bgm_path=tmp_path / "missing-bgm.mp3",
        site_url="https://hibi.example",
        enable_narration=False,
        enrich_delay=0.0,
        image_delay=0.0,
        tts_turn_delay=0.0,
        narration_delay=0.0,
        post_delay=0.0,
    )
