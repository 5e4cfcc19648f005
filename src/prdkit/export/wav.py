"""RIFF/WAVE output for decoded sounds."""

from __future__ import annotations

import wave
from pathlib import Path

from ..codec.audio import PcmBuffer

__all__ = ["write_wav"]


def write_wav(path: Path, pcm: PcmBuffer) -> Path:
    """Write ``pcm`` as 16-bit PCM WAVE, creating parent folders."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as wav_file:
        wav_file.setnchannels(pcm.channel_count)
        wav_file.setsampwidth(2)
        wav_file.setframerate(pcm.sample_rate)
        wav_file.writeframes(pcm.samples)
    return path
