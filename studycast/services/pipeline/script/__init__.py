"""Script post-processing: speaker alternation, segments and phoneme hints."""

from .alternation import correct_voice_alternation, has_alternation_violation
from .segments import split_segments, join_segments, replace_segment
from .phonemes import insert_phoneme, clean_ipa

__all__ = [
    "correct_voice_alternation",
    "has_alternation_violation",
    "split_segments",
    "join_segments",
    "replace_segment",
    "insert_phoneme",
    "clean_ipa",
]
