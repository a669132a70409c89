"""
Tests for WAV helpers
"""

import io
import wave

import pytest

from studycast.services.infrastructure.audio.wav import (
    SILENT_SEGMENT,
    decode_segment,
    encode_segment,
    parse_mime,
    pcm_to_wav,
    render_episode_wav,
)


def _frames(wav_bytes):
    with wave.open(io.BytesIO(wav_bytes)) as wav:
        return wav.getnchannels(), wav.getsampwidth(), wav.getframerate(), wav.readframes(wav.getnframes())


def test_pcm_to_wav_header():
    channels, width, rate, frames = _frames(pcm_to_wav(b"\x01\x00\x02\x00"))
    assert (channels, width, rate) == (1, 2, 24000)
    assert frames == b"\x01\x00\x02\x00"


def test_trailing_partial_frame_is_dropped():
    *_, frames = _frames(pcm_to_wav(b"\x01\x00\x02"))
    assert frames == b"\x01\x00"


def test_render_episode_concatenates_segments():
    segments = [encode_segment(b"\x01\x00\x02"), encode_segment(b"\x03\x00")]
    *_, frames = _frames(render_episode_wav(segments))
    assert frames == b"\x01\x00\x03\x00"


def test_silent_segment_decodes():
    assert decode_segment(SILENT_SEGMENT) == b"\x00\x00"


def test_decode_rejects_invalid_base64():
    with pytest.raises(ValueError):
        decode_segment("non è base64")


@pytest.mark.parametrize("mime, expected", [
    ("audio/L16;codec=pcm;rate=24000", ("audio/l16", {"codec": "pcm", "rate": "24000"})),
    ("audio/wav", ("audio/wav", {})),
    (None, (None, {})),
])
def test_parse_mime(mime, expected):
    assert parse_mime(mime) == expected
