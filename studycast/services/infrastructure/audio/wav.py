"""WAV container helpers for raw 16-bit PCM produced by speech synthesis."""

from __future__ import annotations

import base64
import binascii
import io
import wave
from typing import Iterable

from studycast.config import AUDIO_CHANNELS, AUDIO_SAMPLE_RATE, AUDIO_SAMPLE_WIDTH

# Base64 for a tiny all-zero payload, used when a segment has no dialogue
SILENT_SEGMENT = "AAA="


def parse_mime(mime_type: str | None) -> tuple[str | None, dict[str, str]]:
    """Split ``audio/L16;codec=pcm;rate=24000`` into base type and parameters."""
    if not mime_type:
        return None, {}
    parts = [part.strip() for part in mime_type.split(";") if part.strip()]
    params: dict[str, str] = {}
    for part in parts[1:]:
        key, sep, value = part.partition("=")
        if sep:
            params[key.strip().lower()] = value.strip()
    return (parts[0].lower() if parts else None), params


def decode_segment(encoded: str) -> bytes:
    """Base64 audio entry -> raw PCM bytes.

    Raises:
        ValueError: If the entry is not valid base64
    """
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Audio segment is not valid base64") from exc


def encode_segment(pcm: bytes) -> str:
    return base64.b64encode(pcm).decode("ascii")


def _aligned(pcm: bytes, channels: int, sample_width: int) -> bytes:
    frame_size = sample_width * max(1, channels)
    return pcm[: len(pcm) - (len(pcm) % frame_size)]


def pcm_to_wav(
    pcm: bytes,
    rate: int = AUDIO_SAMPLE_RATE,
    channels: int = AUDIO_CHANNELS,
    sample_width: int = AUDIO_SAMPLE_WIDTH,
) -> bytes:
    """Wrap raw PCM in a WAV container, dropping any trailing partial frame."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wavf:
        wavf.setnchannels(max(1, channels))
        wavf.setsampwidth(sample_width)
        wavf.setframerate(rate)
        wavf.writeframes(_aligned(pcm, channels, sample_width))
    return buffer.getvalue()


def render_episode_wav(encoded_segments: Iterable[str]) -> bytes:
    """Concatenate every segment into one playable WAV."""
    pcm = b"".join(
        _aligned(decode_segment(segment), AUDIO_CHANNELS, AUDIO_SAMPLE_WIDTH)
        for segment in encoded_segments
    )
    return pcm_to_wav(pcm)
