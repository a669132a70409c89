"""Gemini-backed generation gateway."""

from .gateway import GeminiGenerationGateway, clean_segment_for_speech, extract_inline_audio

__all__ = [
    "GeminiGenerationGateway",
    "clean_segment_for_speech",
    "extract_inline_audio",
]
