"""Podcast narration: dialogue script, speech synthesis and audio finishing."""

from .narrator import NarrationSettings, Narrator
from .script import ScriptWriter
from .tts import (
    CloudTTSClient,
    GeminiTTSClient,
    MultiSpeakerSynthesizer,
    PerTurnSynthesizer,
    SpeechSynthesizer,
    SynthesizedAudio,
)

__all__ = [
    "NarrationSettings",
    "Narrator",
    "ScriptWriter",
    "CloudTTSClient",
    "GeminiTTSClient",
    "MultiSpeakerSynthesizer",
    "PerTurnSynthesizer",
    "SpeechSynthesizer",
    "SynthesizedAudio",
]
