"""
JSON parsing for generation-service responses.

Structured-output calls usually return clean JSON, but models still wrap
payloads in markdown fences, emit stray backslashes or add chatter around
the object. ``parse_json_payload`` recovers from those cases and raises
``ParseError`` when nothing usable is left.
"""

import json
import re
from typing import Any, List, Optional

from studycast.core.exceptions import ParseError

_FENCE_LINE = re.compile(r"^\s*```")
_VALID_ESCAPE = re.compile(r'\\(["\\/bfnrt]|u[0-9a-fA-F]{4})')


def strip_markdown_fences(text: str) -> str:
    """Drop ```json fence lines, keeping the content between them."""
    if not text.lstrip().startswith("```"):
        return text.strip()
    kept = [line for line in text.splitlines() if not _FENCE_LINE.match(line)]
    return "\n".join(kept).strip()


def fix_json_escapes(text: str) -> str:
    """Escape lone backslashes while leaving valid JSON escapes untouched."""
    out: List[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != "\\":
            out.append(ch)
            i += 1
            continue
        match = _VALID_ESCAPE.match(text, i)
        if match:
            out.append(match.group(0))
            i = match.end()
        else:
            out.append("\\\\")
            i += 1
    return "".join(out)


def extract_largest_balanced_json(text: str, expect_array: bool = False) -> Optional[str]:
    """Return the largest balanced {...} or [...] substring, honouring string literals."""
    if not text:
        return None

    in_string = False
    escape = False
    stack: List[str] = []
    start: Optional[int] = None
    best: Optional[str] = None
    pairs = {"}": "{", "]": "["}

    for i, ch in enumerate(text):
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch in "{[":
            if not stack:
                start = i
            stack.append(ch)
        elif ch in "}]" and stack:
            if stack[-1] != pairs[ch]:
                stack.clear()
                start = None
                continue
            stack.pop()
            if not stack and start is not None:
                candidate = text[start:i + 1]
                start = None
                if expect_array and not candidate.startswith("["):
                    continue
                if best is None or len(candidate) > len(best):
                    best = candidate

    return best


def parse_json_payload(text: Optional[str], expect_array: bool = False) -> Any:
    """Parse JSON from a model response.

    Tries, in order: the text as-is, the text with escapes repaired, and the
    largest balanced JSON fragment found inside it.

    Raises:
        ParseError: If no strategy yields valid JSON.
    """
    if text is None or not text.strip():
        raise ParseError("Empty response where JSON was expected")

    body = strip_markdown_fences(text)
    candidates = [body, fix_json_escapes(body)]
    fragment = extract_largest_balanced_json(body, expect_array=expect_array)
    if fragment:
        candidates.extend([fragment, fix_json_escapes(fragment)])

    last_error: Optional[json.JSONDecodeError] = None
    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError as e:
            last_error = e

    preview = body[:120].replace("\n", " ")
    raise ParseError(f"Response is not valid JSON ({last_error}): {preview!r}")
