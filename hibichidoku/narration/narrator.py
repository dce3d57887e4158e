from __future__ import annotations

import time
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Optional

from ..models import Article
from ..utils.ids import encode_id
from ..utils.logging import get_logger
from .audio import mix_background, post_process, write_pcm_as_wav
from .script import ScriptWriter
from .tts import SpeechSynthesizer, SynthesizedAudio

logger = get_logger("hibi.narration.narrator")


@dataclass(slots=True)
class NarrationSettings:
    audio_dir: Path = Path("public/audio")
    url_prefix: str = "/audio"
    speed: float = 1.25
    volume: float = 1.2
    post_process: bool = True
    bgm_path: Optional[Path] = Path("public/audio/bgm.mp3")
    bgm_volume: float = 0.08


def audio_basename(article_id: str, timestamp_ms: int) -> str:
    """Filename stem: reversible id encoding plus a cache-busting timestamp."""
    return f"podcast_{encode_id(article_id)}_{timestamp_ms}"


class Narrator:
    """Script → speech → post-process → persist → mix, for one article.

    Stages run once each; a failure before persistence aborts the episode,
    failures after it degrade to the unprocessed or unmixed file.
    """

    def __init__(
        self,
        script_writer: ScriptWriter,
        synthesizer: SpeechSynthesizer,
        *,
        settings: Optional[NarrationSettings] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.script_writer = script_writer
        self.synthesizer = synthesizer
        self.settings = settings or NarrationSettings()
        self._clock = clock

    def _persist(self, article: Article, audio: SynthesizedAudio) -> Path:
        audio_dir = self.settings.audio_dir
        audio_dir.mkdir(parents=True, exist_ok=True)
        stem = audio_basename(article.id, int(self._clock() * 1000))
        path = audio_dir / f"{stem}{audio.extension}"
        if audio.is_raw_pcm:
            write_pcm_as_wav(audio.data, path, sample_rate=audio.sample_rate)
        else:
            path.write_bytes(audio.data)
        logger.info("Saved raw audio: %s (%.2f MB)", path.name, path.stat().st_size / 1024 / 1024)
        return path

    def _post_process(self, raw_path: Path) -> Path:
        final_path = raw_path.with_suffix(".mp3")
        processed = raw_path.with_name(f"{raw_path.stem}_processed.mp3")
        try:
            post_process(raw_path, processed, speed=self.settings.speed, volume=self.settings.volume)
        except Exception as exc:  # noqa: BLE001 - keep the unprocessed audio
            logger.error("Post-processing failed for %s: %s; keeping unprocessed audio", raw_path.name, exc)
            processed.unlink(missing_ok=True)
            return raw_path
        raw_path.unlink(missing_ok=True)
        processed.replace(final_path)
        return final_path

    def _mix(self, path: Path) -> None:
        bgm = self.settings.bgm_path
        if bgm is None:
            return
        try:
            mix_background(path, bgm, volume=self.settings.bgm_volume)
        except Exception as exc:  # noqa: BLE001 - keep the unmixed audio
            logger.error("BGM mixing failed for %s: %s; keeping unmixed audio", path.name, exc)

    def generate_podcast_audio(self, article: Article) -> Optional[str]:
        """Produce an episode and return its public path, or None when aborted."""
        logger.info("Generating podcast for: %s", article.display_title)

        turns = self.script_writer.generate_script(article)
        if not turns:
            logger.warning("Empty conversation script for %s; skipping narration", article.id)
            return None

        audio = self.synthesizer.synthesize(turns)
        if audio is None or not audio.data:
            logger.error("Failed to generate audio for %s", article.id)
            return None

        path = self._persist(article, audio)
        if self.settings.post_process:
            path = self._post_process(path)
        self._mix(path)

        public = f"{self.settings.url_prefix.rstrip('/')}/{path.name}"
        logger.info("Podcast saved: %s", public)
        return public

    def narrate(self, article: Article) -> Article:
        """Return a copy with ``audio_url`` set; already narrated articles pass through."""
        if article.audio_url:
            logger.debug("Article %s already has audio; not re-narrating", article.id)
            return article
        audio_url = self.generate_podcast_audio(article)
        if not audio_url:
            return article
        return replace(article, audio_url=audio_url)
