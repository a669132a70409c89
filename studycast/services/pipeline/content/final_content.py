"""
Final content restructuring.

Summaries come back as one markdown document per main idea, with headings
mirroring the outline: ``#`` for the main idea, ``##`` for sub ideas and
``###`` for nested sub ideas. This module folds each document back into the
tree, so every node's ``content`` holds the text written under its heading.

The transform is pure and synchronous: no generation calls happen here.
"""

import re
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from studycast.core.logging import get_logger
from studycast.models.outline import IdeaNode, MainIdea, Outline, SubIdea

logger = get_logger(__name__, component="final_content")

_HEADING = re.compile(r"^\s{0,3}(#{1,6})\s+(.+?)\s*#*\s*$")
_EMPHASIS = re.compile(r"[*_`]+")


def normalize_title(title: str) -> str:
    """Case, emphasis and whitespace-insensitive key used to match headings to nodes."""
    text = _EMPHASIS.sub("", title)
    text = re.sub(r"\s+", " ", text).strip().rstrip(":").strip()
    return text.casefold()


def split_markdown_sections(markdown: str) -> Tuple[str, List[Tuple[int, str, str, str]]]:
    """
    Split a markdown document on ATX headings.

    Returns:
        (text before the first heading, [(level, title, heading line, body), ...])
    """
    preamble: List[str] = []
    sections: List[Tuple[int, str, str, List[str]]] = []
    in_fence = False

    for line in markdown.splitlines():
        if line.lstrip().startswith("```"):
            in_fence = not in_fence
        match = None if in_fence else _HEADING.match(line)
        if match:
            sections.append((len(match.group(1)), match.group(2), line.strip(), []))
        elif sections:
            sections[-1][3].append(line)
        else:
            preamble.append(line)

    return (
        "\n".join(preamble).strip(),
        [(level, title, heading, "\n".join(body).strip()) for level, title, heading, body in sections],
    )


def _match(nodes: Sequence[IdeaNode], title: str) -> Optional[IdeaNode]:
    key = normalize_title(title)
    for node in nodes:
        if normalize_title(node.title) == key:
            return node
    return None


def _section_texts(idea: MainIdea, summary: str) -> Dict[str, List[str]]:
    """Text blocks of one summary document keyed by the id of the node they belong to."""
    preamble, sections = split_markdown_sections(summary)
    texts: Dict[str, List[str]] = defaultdict(list)
    if preamble:
        texts[idea.id].append(preamble)

    current_sub: Optional[SubIdea] = None
    for level, title, heading, body in sections:
        target: Optional[IdeaNode]
        if level == 1:
            target = idea
            current_sub = None
        elif level == 2:
            target = _match(idea.sub_ideas, title)
            current_sub = target
        else:
            target = _match(current_sub.nested_sub_ideas, title) if current_sub else None
            if target is None:
                # Headings are sometimes emitted under the wrong H2
                for sub in idea.sub_ideas:
                    target = _match(sub.nested_sub_ideas, title)
                    if target is not None:
                        break

        if target is None:
            owner = current_sub if (level >= 3 and current_sub is not None) else idea
            logger.debug(
                "Summary heading matched no outline node",
                extra={"idea_id": idea.id, "heading": title, "attached_to": owner.id},
            )
            texts[owner.id].append(f"{heading}\n\n{body}".strip())
        elif body:
            texts[target.id].append(body)

    return texts


def build_final_content(outline_with_summaries: Outline) -> Outline:
    """
    Turn an outline whose main ideas carry markdown summaries into the
    final content tree.

    The input is left untouched; the returned tree has ``content`` filled
    wherever a heading matched and no ``summary`` fields.
    """
    final = outline_with_summaries.clone()
    for idea in final.ideas:
        if idea.summary:
            for node_id, parts in _section_texts(idea, idea.summary).items():
                final.find(node_id).content = "\n\n".join(parts)
        idea.summary = None
    return final
