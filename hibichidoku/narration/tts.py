from __future__ import annotations

import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

import requests

from ..processors.ai.gemini import first_candidate_parts, model_url
from ..processors.ai.parsing import DialogueTurn
from ..utils.logging import get_logger
from ..utils.rate_limit import RateLimiter

logger = get_logger("hibi.narration.tts")

HOST = "ホスト"
GUEST = "ゲスト"

CLOUD_TTS_URL = "https://texttospeech.googleapis.com/v1/text:synthesize"


@dataclass(slots=True)
class VoiceProfile:
    name: str
    language_code: str = "ja-JP"
    ssml_gender: str = "NEUTRAL"
    speaking_rate: float = 1.0
    pitch: float = 0.0


# Prebuilt Gemini voices for the multi-speaker call
GEMINI_VOICES: Dict[str, str] = {HOST: "Aoede", GUEST: "Charon"}

# Cloud TTS voices for per-turn synthesis
CLOUD_VOICES: Dict[str, VoiceProfile] = {
    HOST: VoiceProfile("ja-JP-Neural2-B", ssml_gender="FEMALE", speaking_rate=1.05, pitch=1.0),
    GUEST: VoiceProfile("ja-JP-Neural2-C", ssml_gender="MALE", speaking_rate=0.95, pitch=-1.0),
}


@dataclass(slots=True)
class SynthesizedAudio:
    data: bytes
    mime_type: str

    @property
    def is_raw_pcm(self) -> bool:
        return self.mime_type.lower().startswith("audio/l16") or "codec=pcm" in self.mime_type.lower()

    @property
    def sample_rate(self) -> int:
        for part in self.mime_type.split(";"):
            key, _, value = part.strip().partition("=")
            if key == "rate" and value.isdigit():
                return int(value)
        return 24000

    @property
    def extension(self) -> str:
        if self.is_raw_pcm or "wav" in self.mime_type.lower():
            return ".wav"
        return ".mp3"


def format_dialogue(turns: Sequence[DialogueTurn]) -> str:
    return "\n\n".join(f"{t.speaker}: {t.text}" for t in turns)


class GeminiTTSClient:
    """Gemini speech generation with a multi-speaker voice configuration."""

    def __init__(self, *, api_key: str, model: str = "gemini-2.5-flash-preview-tts", timeout: int = 600) -> None:
        if not api_key:
            raise ValueError("api_key is required for Gemini TTS")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def synthesize_dialogue(self, text: str, voices: Mapping[str, str]) -> SynthesizedAudio:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": text}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "languageCode": "ja-JP",
                    "multiSpeakerVoiceConfig": {
                        "speakerVoiceConfigs": [
                            {
                                "speaker": speaker,
                                "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": voice}},
                            }
                            for speaker, voice in voices.items()
                        ]
                    },
                },
            },
        }
        resp = requests.post(model_url(self.model, self.api_key), json=payload, timeout=self.timeout)
        if resp.status_code >= 400:
            logger.error("Gemini TTS API error (%s): %s", resp.status_code, resp.text[:500])
            resp.raise_for_status()
        for part in first_candidate_parts(resp.json()):
            inline = part.get("inlineData") or {}
            if inline.get("data"):
                return SynthesizedAudio(
                    data=base64.b64decode(inline["data"]),
                    mime_type=inline.get("mimeType") or "audio/L16;codec=pcm;rate=24000",
                )
        raise ValueError("Gemini TTS response carried no inline audio")


class CloudTTSClient:
    """Google Cloud Text-to-Speech, one request per utterance (MP3 out)."""

    def __init__(self, *, api_key: str, timeout: int = 60) -> None:
        if not api_key:
            raise ValueError("api_key is required for Cloud TTS")
        self.api_key = api_key
        self.timeout = timeout

    def synthesize(self, text: str, voice: VoiceProfile) -> bytes:
        payload = {
            "input": {"text": text},
            "voice": {
                "languageCode": voice.language_code,
                "name": voice.name,
                "ssmlGender": voice.ssml_gender,
            },
            "audioConfig": {
                "audioEncoding": "MP3",
                "speakingRate": voice.speaking_rate,
                "pitch": voice.pitch,
            },
        }
        resp = requests.post(CLOUD_TTS_URL, params={"key": self.api_key}, json=payload, timeout=self.timeout)
        resp.raise_for_status()
        content = resp.json().get("audioContent")
        if not content:
            raise ValueError("No audio content received")
        return base64.b64decode(content)


class SpeechSynthesizer(ABC):
    """Turns a dialogue script into one audio payload, or None on failure."""

    @abstractmethod
    def synthesize(self, turns: Sequence[DialogueTurn]) -> Optional[SynthesizedAudio]:
        ...


class MultiSpeakerSynthesizer(SpeechSynthesizer):
    def __init__(self, client: GeminiTTSClient, *, voices: Optional[Mapping[str, str]] = None) -> None:
        self.client = client
        self.voices = dict(voices or GEMINI_VOICES)

    def synthesize(self, turns: Sequence[DialogueTurn]) -> Optional[SynthesizedAudio]:
        try:
            audio = self.client.synthesize_dialogue(format_dialogue(turns), self.voices)
        except Exception as exc:  # noqa: BLE001 - provider failure aborts this episode only
            logger.error("Multi-speaker synthesis failed: %s", exc)
            return None
        logger.info("Generated audio: %.2f MB", len(audio.data) / 1024 / 1024)
        return audio


class PerTurnSynthesizer(SpeechSynthesizer):
    """Synthesizes each turn separately and concatenates the MP3 streams.

    A failed turn is left out of the episode rather than aborting it.
    """

    def __init__(
        self,
        client: CloudTTSClient,
        *,
        voices: Optional[Mapping[str, VoiceProfile]] = None,
        limiter: Optional[RateLimiter] = None,
    ) -> None:
        self.client = client
        self.voices = dict(voices or CLOUD_VOICES)
        self.limiter = limiter or RateLimiter(0.15, name="cloud-tts")

    def synthesize(self, turns: Sequence[DialogueTurn]) -> Optional[SynthesizedAudio]:
        chunks: List[bytes] = []
        default_voice = next(iter(self.voices.values()))
        for idx, turn in enumerate(self.limiter.throttle(turns)):
            voice = self.voices.get(turn.speaker, default_voice)
            try:
                chunks.append(self.client.synthesize(turn.text, voice))
            except Exception as exc:  # noqa: BLE001 - skip the turn, keep the episode
                logger.warning("TTS failed for turn %d (%s): %s", idx + 1, turn.speaker, exc)
        if not chunks:
            logger.error("No turn produced audio")
            return None
        logger.info("Synthesized %d/%d turns", len(chunks), len(turns))
        return SynthesizedAudio(data=b"".join(chunks), mime_type="audio/mpeg")
