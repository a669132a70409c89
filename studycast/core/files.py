"""
File name helpers used when packaging projects into archives.
"""

import re
import unicodedata

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f\x7f]')
_SEPARATORS = re.compile(r"[\s_]+")


def sanitize_filename(name: str, fallback: str = "untitled", max_length: int = 80) -> str:
    """
    Reduce arbitrary text (usually a project subject) to a safe archive path component.

    Accents are folded to ASCII, path separators and control characters are
    removed, whitespace collapses to single underscores, and leading dots are
    stripped so the result can never climb out of its parent folder.

    Example:
        >>> sanitize_filename("La Critica della Ragion Pura / Kant")
        "La_Critica_della_Ragion_Pura_Kant"
        >>> sanitize_filename("../..")
        "untitled"
    """
    folded = unicodedata.normalize("NFKD", name or "").encode("ascii", "ignore").decode("ascii")
    cleaned = _UNSAFE_CHARS.sub(" ", folded)
    cleaned = _SEPARATORS.sub("_", cleaned.strip())
    cleaned = cleaned.lstrip(".").strip("_")[:max_length].rstrip("_")

    if not cleaned or cleaned.replace(".", "") == "":
        return fallback
    return cleaned
