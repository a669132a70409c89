"""
Speaker alternation repair for generated podcast scripts.

The script model is asked to alternate two speakers strictly, and routinely
does not. ``correct_voice_alternation`` rewrites speaker labels so that no
two consecutive dialogue lines share a speaker, both inside a segment and
across segment boundaries.

A dialogue line is any line whose left-stripped text starts with
``"<label>:"``. Only that label token is ever rewritten. Everything else in
the script (blank lines, stray text, separators, indentation, the words
spoken) passes through byte for byte.

Two passes run in a loop until the text stops changing:

1. per segment, a line repeating the previous speaker gets the other label
   (the previous speaker is forgotten at every separator);
2. for each segment, its first dialogue line is compared with the last
   dialogue line of the closest earlier segment that has dialogue, and on a
   clash only that first line is relabelled.

A relabel in pass 2 can clash with the next line of the same segment; the
following pass 1 resolves it. Each round settles at least one more
boundary, so the loop ends after at most ``segments + 1`` rounds. The final
text satisfies the alternation rule end to end, which also makes the
function idempotent.
"""

from typing import List, Optional, Sequence, Tuple

from studycast.config import SCRIPT_SEPARATOR, SPEAKER_1, SPEAKER_2


def _validate_speakers(speakers: Sequence[str]) -> Tuple[str, str]:
    if len(speakers) != 2:
        raise ValueError(f"Exactly two speaker labels are required, got {len(speakers)}")
    first, second = speakers
    if not first or not second or first == second:
        raise ValueError(f"Speaker labels must be distinct and non-empty: {speakers!r}")
    return first, second


def speaker_of(line: str, speakers: Sequence[str]) -> Optional[str]:
    """Return the label opening a dialogue line, or None for any other line."""
    stripped = line.lstrip()
    for label in speakers:
        if stripped.startswith(f"{label}:"):
            return label
    return None


def _relabel(line: str, current: str, replacement: str) -> str:
    indent = line[: len(line) - len(line.lstrip())]
    return indent + replacement + line[len(indent) + len(current):]


def _other(label: str, speakers: Tuple[str, str]) -> str:
    return speakers[1] if label == speakers[0] else speakers[0]


def _alternate_within_segment(segment: str, speakers: Tuple[str, str]) -> str:
    lines = segment.split("\n")
    last: Optional[str] = None
    for index, line in enumerate(lines):
        speaker = speaker_of(line, speakers)
        if speaker is None:
            continue
        if speaker == last:
            flipped = _other(speaker, speakers)
            lines[index] = _relabel(line, speaker, flipped)
            last = flipped
        else:
            last = speaker
    return "\n".join(lines)


def _stitch_boundaries(segments: List[str], speakers: Tuple[str, str]) -> List[str]:
    stitched: List[str] = []
    previous_last: Optional[str] = None

    for segment in segments:
        lines = segment.split("\n")
        dialogue = [i for i, line in enumerate(lines) if speaker_of(line, speakers) is not None]

        if dialogue:
            first = dialogue[0]
            speaker = speaker_of(lines[first], speakers)
            if previous_last is not None and speaker == previous_last:
                lines[first] = _relabel(lines[first], speaker, _other(speaker, speakers))
            previous_last = speaker_of(lines[dialogue[-1]], speakers)

        stitched.append("\n".join(lines))

    return stitched


def correct_voice_alternation(
    script: str,
    speakers: Sequence[str] = (SPEAKER_1, SPEAKER_2),
    separator: str = SCRIPT_SEPARATOR,
) -> str:
    """
    Relabel speakers so that dialogue strictly alternates.

    Args:
        script: Full script, segments joined by ``separator``
        speakers: The two speaker labels
        separator: Segment separator token

    Returns:
        The corrected script. Text that needs no change is returned as is.

    Example:
        >>> correct_voice_alternation("Voce 1: A\\nVoce 1: B")
        'Voce 1: A\\nVoce 2: B'
    """
    labels = _validate_speakers(speakers)
    if not script:
        return script

    current = script
    for _ in range(current.count(separator) + 2):
        segments = [_alternate_within_segment(s, labels) for s in current.split(separator)]
        corrected = separator.join(_stitch_boundaries(segments, labels))
        if corrected == current:
            break
        current = corrected

    return current


def dialogue_speakers(
    script: str,
    speakers: Sequence[str] = (SPEAKER_1, SPEAKER_2),
    separator: str = SCRIPT_SEPARATOR,
) -> List[str]:
    """Speaker of every dialogue line in order, reading straight across separators."""
    labels = _validate_speakers(speakers)
    found: List[str] = []
    for segment in script.split(separator):
        for line in segment.split("\n"):
            speaker = speaker_of(line, labels)
            if speaker is not None:
                found.append(speaker)
    return found


def has_alternation_violation(
    script: str,
    speakers: Sequence[str] = (SPEAKER_1, SPEAKER_2),
    separator: str = SCRIPT_SEPARATOR,
) -> bool:
    sequence = dialogue_speakers(script, speakers, separator)
    return any(a == b for a, b in zip(sequence, sequence[1:]))
