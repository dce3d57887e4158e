"""Tests for configuration loading: sources.yaml, podcast.yaml and env settings."""

from pathlib import Path

import pytest

from hibichidoku.utils.config_loader import ConfigError, load_podcast_config, load_sources_config
from hibichidoku.utils.pipeline_config import DEFAULT_CANDIDATE_MODELS, PipelineConfig

REPO_ROOT = Path(__file__).resolve().parents[1]


def _write(tmp_path, text: str) -> Path:
    path = tmp_path / "conf.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestSourcesConfig:

    def test_repository_config_is_valid(self):
        sources = load_sources_config(REPO_ROOT / "config" / "sources.yaml")
        assert {s.type for s in sources} == {"arxiv", "rss"}
        assert sources[0].query == "cs.AI"
        assert sources[0].max_results == 3

    def test_defaults(self, tmp_path):
        path = _write(tmp_path, "sources:\n  - name: a\n    type: arxiv\n    query: cs.CL\n")
        (source,) = load_sources_config(path)
        assert source.max_results == 5
        assert source.url is None

    @pytest.mark.parametrize(
        "body",
        [
            "sources:\n  - type: arxiv\n    query: cs.AI\n",
            "sources:\n  - name: a\n    type: http\n",
            "sources:\n  - name: a\n    type: arxiv\n",
            "sources:\n  - name: a\n    type: rss\n    url: ftp://x/feed\n    category: AI\n",
            "sources:\n  - name: a\n    type: rss\n    url: https://x/feed\n    category: Cooking\n",
            "sources:\n  - name: a\n    type: arxiv\n    query: cs.AI\n    max_results: 0\n",
            "sources: not-a-list\n",
        ],
    )
    def test_invalid(self, tmp_path, body):
        with pytest.raises(ConfigError):
            load_sources_config(_write(tmp_path, body))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_sources_config(tmp_path / "nope.yaml")


class TestPodcastConfig:

    def test_repository_config(self):
        channel = load_podcast_config(REPO_ROOT / "config" / "podcast.yaml")
        assert channel.title == "ひびちどく"
        assert channel.language == "ja"
        assert channel.explicit is False

    def test_missing_required(self, tmp_path):
        with pytest.raises(ConfigError):
            load_podcast_config(_write(tmp_path, "podcast:\n  title: x\n"))


class TestPipelineConfig:

    def test_defaults(self):
        config = PipelineConfig.from_env()
        assert config.retention_cap == 50
        assert config.candidate_models == DEFAULT_CANDIDATE_MODELS
        assert config.tts_mode == "multi"
        assert config.audio_speed == 1.25
        assert config.enable_social_posts is False

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("RETENTION_CAP", "10")
        monkeypatch.setenv("GEMINI_CANDIDATE_MODELS", "a, b")
        monkeypatch.setenv("ENABLE_NARRATION", "false")
        monkeypatch.setenv("TTS_MODE", "per_turn")
        monkeypatch.setenv("SITE_URL", "https://hibi.example/")
        config = PipelineConfig.from_env()
        assert config.retention_cap == 10
        assert config.candidate_models == ["a", "b"]
        assert config.enable_narration is False
        assert config.tts_mode == "per_turn"
        assert config.site_url == "https://hibi.example"

    def test_bad_tts_mode(self, monkeypatch):
        monkeypatch.setenv("TTS_MODE", "stereo")
        with pytest.raises(ValueError):
            PipelineConfig.from_env()
