from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Literal, Optional

TTSMode = Literal["multi", "per_turn"]

DEFAULT_CANDIDATE_MODELS = [
    "gemini-2.0-flash",
    "gemini-flash-latest",
    "gemini-pro-latest",
    "gemini-2.0-flash-lite",
]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_csv(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [v.strip() for v in raw.split(",") if v.strip()]


@dataclass(slots=True)
class PipelineConfig:
    """Runtime settings for one pipeline invocation.

    Build with :meth:`from_env` so values loaded from ``.env`` after import
    are picked up.
    """

    store_path: Path = Path("data/posts.json")
    retention_cap: int = 50
    audio_dir: Path = Path("public/audio")
    audio_url_prefix: str = "/audio"
    site_url: str = "http://localhost:8000"

    gemini_api_key: Optional[str] = None
    candidate_models: List[str] = field(default_factory=lambda: list(DEFAULT_CANDIDATE_MODELS))
    script_model: str = "gemini-2.0-flash"
    tts_model: str = "gemini-2.5-flash-preview-tts"
    cloud_tts_api_key: Optional[str] = None
    pexels_api_key: Optional[str] = None
    twitter_bearer_token: Optional[str] = None

    enable_narration: bool = True
    enable_social_posts: bool = False
    tts_mode: TTSMode = "multi"
    audio_speed: float = 1.25
    audio_volume: float = 1.2
    bgm_path: Path = Path("public/audio/bgm.mp3")
    bgm_volume: float = 0.08

    enrich_delay: float = 1.0
    image_delay: float = 0.5
    tts_turn_delay: float = 0.15
    narration_delay: float = 3.0
    post_delay: float = 1.0

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        mode = os.getenv("TTS_MODE", "multi").strip().lower()
        if mode not in ("multi", "per_turn"):
            raise ValueError(f"Unsupported TTS_MODE '{mode}'. Use 'multi' or 'per_turn'.")
        return cls(
            store_path=Path(os.getenv("STORE_PATH", "data/posts.json")),
            retention_cap=int(os.getenv("RETENTION_CAP", "50")),
            audio_dir=Path(os.getenv("AUDIO_DIR", "public/audio")),
            audio_url_prefix=os.getenv("AUDIO_URL_PREFIX", "/audio").rstrip("/"),
            site_url=os.getenv("SITE_URL", "http://localhost:8000").rstrip("/"),
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            candidate_models=_env_csv("GEMINI_CANDIDATE_MODELS", DEFAULT_CANDIDATE_MODELS),
            script_model=os.getenv("SCRIPT_MODEL", "gemini-2.0-flash"),
            tts_model=os.getenv("TTS_MODEL", "gemini-2.5-flash-preview-tts"),
            cloud_tts_api_key=os.getenv("GOOGLE_CLOUD_TTS_API_KEY") or None,
            pexels_api_key=os.getenv("PEXELS_API_KEY") or None,
            twitter_bearer_token=os.getenv("TWITTER_BEARER_TOKEN") or None,
            enable_narration=_env_bool("ENABLE_NARRATION", True),
            enable_social_posts=_env_bool("ENABLE_SOCIAL_POSTS", False),
            tts_mode=mode,  # type: ignore[arg-type]
            audio_speed=float(os.getenv("AUDIO_SPEED", "1.25")),
            audio_volume=float(os.getenv("AUDIO_VOLUME", "1.2")),
            bgm_path=Path(os.getenv("BGM_PATH", "public/audio/bgm.mp3")),
            bgm_volume=float(os.getenv("BGM_VOLUME", "0.08")),
            enrich_delay=float(os.getenv("ENRICH_DELAY_SECONDS", "1.0")),
            image_delay=float(os.getenv("IMAGE_DELAY_SECONDS", "0.5")),
            tts_turn_delay=float(os.getenv("TTS_TURN_DELAY_SECONDS", "0.15")),
            narration_delay=float(os.getenv("NARRATION_DELAY_SECONDS", "3.0")),
            post_delay=float(os.getenv("POST_DELAY_SECONDS", "1.0")),
        )
