"""PCM/WAV helpers."""

from .wav import (
    SILENT_SEGMENT,
    decode_segment,
    encode_segment,
    pcm_to_wav,
    render_episode_wav,
)

__all__ = [
    "SILENT_SEGMENT",
    "decode_segment",
    "encode_segment",
    "pcm_to_wav",
    "render_episode_wav",
]
