"""
SSML phoneme hints.

Speech synthesis mispronounces rare or foreign words. A single word in a
segment can be wrapped in ``<phoneme alphabet="ipa" ph="...">`` with an IPA
transcription obtained from the generation gateway.
"""

import re
from html import escape
from typing import Optional


def clean_ipa(raw: str) -> str:
    """Trim whitespace and the /slashes/ models like to put around IPA."""
    ipa = (raw or "").strip()
    if len(ipa) >= 2 and ipa.startswith("/") and ipa.endswith("/"):
        ipa = ipa[1:-1].strip()
    elif len(ipa) >= 2 and ipa.startswith("[") and ipa.endswith("]"):
        ipa = ipa[1:-1].strip()
    return ipa


def phoneme_tag(word: str, ipa: str) -> str:
    return f'<phoneme alphabet="ipa" ph="{escape(ipa, quote=True)}">{word}</phoneme>'


def insert_phoneme(text: str, word: str, ipa: str, occurrence: Optional[int] = None) -> str:
    """
    Wrap ``word`` in a phoneme tag.

    Args:
        text: Segment text
        word: Exact word to tag (matched on word boundaries, case-sensitive)
        ipa: IPA transcription
        occurrence: Zero-based occurrence to tag; every occurrence when None

    Raises:
        ValueError: If the word is empty, contains whitespace, or is not found
    """
    word = (word or "").strip()
    if not word or any(ch.isspace() for ch in word):
        raise ValueError("Select a single word to tag")

    pattern = re.compile(rf"(?<![\w>]){re.escape(word)}(?![\w<])")
    matches = list(pattern.finditer(text))
    if not matches:
        raise ValueError(f"Word {word!r} not found in segment")

    if occurrence is not None:
        if not 0 <= occurrence < len(matches):
            raise ValueError(f"Occurrence {occurrence} out of range ({len(matches)} found)")
        matches = [matches[occurrence]]

    tag = phoneme_tag(word, ipa)
    pieces = []
    cursor = 0
    for match in matches:
        pieces.append(text[cursor:match.start()])
        pieces.append(tag)
        cursor = match.end()
    pieces.append(text[cursor:])
    return "".join(pieces)
