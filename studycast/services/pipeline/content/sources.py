"""Combining uploaded source files into the text sent to the generation service."""

from typing import Iterable

from studycast.models.project import UploadedFile


def format_source_block(name: str, content: str) -> str:
    return f"--- START OF {name} ---\n\n{content}\n\n--- END OF {name} ---"


def combine_sources(files: Iterable[UploadedFile]) -> str:
    """Delimited concatenation of the selected files, in upload order."""
    return "\n\n".join(format_source_block(f.name, f.content) for f in files if f.selected)
