"""Response parsing utilities."""

from .json_parser import (
    parse_json_payload,
    strip_markdown_fences,
    fix_json_escapes,
    extract_largest_balanced_json,
)

__all__ = [
    "parse_json_payload",
    "strip_markdown_fences",
    "fix_json_escapes",
    "extract_largest_balanced_json",
]
