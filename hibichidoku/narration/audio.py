"""Audio file handling on top of pydub/ffmpeg.

ffmpeg's ``atempo`` filter accepts a bounded ratio per application, so larger
(or smaller) speed changes are expressed as a chain of passes whose product is
the requested multiplier.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import List

from pydub import AudioSegment

from ..utils.logging import get_logger

logger = get_logger("hibi.narration.audio")

ATEMPO_MIN = 0.5
ATEMPO_MAX = 2.0
MP3_BITRATE = "192k"


def tempo_chain(multiplier: float, *, lower: float = ATEMPO_MIN, upper: float = ATEMPO_MAX) -> List[float]:
    """Split ``multiplier`` into per-pass ratios inside [lower, upper].

    >>> tempo_chain(2.7)
    [2.0, 1.35]
    """
    if multiplier <= 0:
        raise ValueError(f"Speed multiplier must be positive, got {multiplier}")
    if not (0 < lower <= 1 <= upper):
        raise ValueError("Filter bounds must satisfy 0 < lower <= 1 <= upper")

    passes: List[float] = []
    remaining = multiplier
    while remaining > upper:
        passes.append(upper)
        remaining /= upper
    while remaining < lower:
        passes.append(lower)
        remaining /= lower
    if not math.isclose(remaining, 1.0, rel_tol=1e-9):
        passes.append(remaining)
    return passes


def build_audio_filter(speed: float, volume: float, *, upper: float = ATEMPO_MAX) -> str:
    """ffmpeg ``-filter:a`` expression for a speed and volume multiplier."""
    filters = [f"atempo={ratio:.6g}" for ratio in tempo_chain(speed, upper=upper)]
    if not math.isclose(volume, 1.0, rel_tol=1e-9):
        filters.append(f"volume={volume:.6g}")
    return ",".join(filters)


def write_pcm_as_wav(data: bytes, path: Path, *, sample_rate: int = 24000) -> Path:
    """Wrap raw 16-bit mono PCM in a WAV container."""
    segment = AudioSegment(data=data, sample_width=2, frame_rate=sample_rate, channels=1)
    segment.export(str(path), format="wav")
    return path


def post_process(src: Path, dst: Path, *, speed: float, volume: float) -> Path:
    """Re-encode ``src`` to MP3 at ``dst`` with speed and volume applied."""
    audio_filter = build_audio_filter(speed, volume)
    logger.info("Post-processing %s (filter=%s)", src.name, audio_filter or "none")
    segment = AudioSegment.from_file(str(src))
    parameters = ["-filter:a", audio_filter] if audio_filter else None
    segment.export(str(dst), format="mp3", bitrate=MP3_BITRATE, parameters=parameters)
    return dst


def mix_background(narration: Path, music: Path, *, volume: float = 0.08) -> bool:
    """Loop ``music`` under ``narration`` in place at a low relative volume.

    Returns False (leaving the file untouched) when the music asset is absent.
    """
    if not music.exists():
        logger.warning("BGM file not found: %s; skipping mix", music)
        return False
    if volume <= 0:
        raise ValueError("BGM volume must be positive")

    voice = AudioSegment.from_file(str(narration))
    bgm = AudioSegment.from_file(str(music)).apply_gain(20 * math.log10(volume))
    # overlay keeps the base segment's length, so the mix ends with the voice
    mixed = voice.overlay(bgm, loop=True)

    fmt = narration.suffix.lstrip(".").lower() or "mp3"
    tmp = narration.with_name(f"{narration.stem}_mixed{narration.suffix}")
    mixed.export(str(tmp), format=fmt, bitrate=MP3_BITRATE if fmt == "mp3" else None)
    tmp.replace(narration)
    logger.info("Mixed BGM into %s at %.0f%%", narration.name, volume * 100)
    return True
