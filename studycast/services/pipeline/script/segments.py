"""
Script segments.

A segment is the part of the script that covers one main idea. Segments are
never stored on their own: they are always derived from ``full_script`` and
are index-aligned with ``audio_segments``.
"""

from typing import List, Sequence

from studycast.config import SCRIPT_SEPARATOR


def split_segments(script: str, separator: str = SCRIPT_SEPARATOR) -> List[str]:
    """Split on the separator, strip each piece and drop empty ones."""
    if not script:
        return []
    return [piece.strip() for piece in script.split(separator) if piece.strip()]


def join_segments(segments: Sequence[str], separator: str = SCRIPT_SEPARATOR) -> str:
    """Canonical layout used whenever the script is rebuilt from segments."""
    return f"\n\n{separator}\n\n".join(segments)


def replace_segment(script: str, index: int, text: str, separator: str = SCRIPT_SEPARATOR) -> str:
    """Rebuild the script with one segment swapped for ``text``.

    Raises:
        IndexError: If ``index`` does not address an existing segment
    """
    segments = split_segments(script, separator)
    if not 0 <= index < len(segments):
        raise IndexError(f"Segment {index} out of range (script has {len(segments)})")
    if not text.strip():
        raise ValueError("Segment text cannot be empty")
    segments[index] = text.strip()
    return join_segments(segments, separator)
