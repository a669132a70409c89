"""
Outline tree models.

A three-level tree shared by every stage after the outline:
main idea -> sub idea -> nested sub idea. Each level is a variant of
``IdeaNode`` tagged with an explicit ``kind`` and exposing ``children()``.

Snapshots are persisted as JSON with snake_case keys. Parsing also accepts
the camelCase keys older exports used (``quizQuestions``, ``subIdeas``,
``nestedSubIdeas``) and infers ``kind``/``level`` from position when absent.
"""

import json
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    field_validator,
    model_validator,
)

from studycast.core.exceptions import ParseError
from studycast.core.logging import get_logger

logger = get_logger(__name__, component="outline")


class IdeaKind(str, Enum):
    MAIN = "main"
    SUB = "sub"
    NESTED = "nested"


class Flashcard(BaseModel):
    """Front/back review card"""
    front: str
    back: str


class QuizQuestion(BaseModel):
    """Multiple choice question with a single correct option"""
    question: str
    options: List[str]
    correct_option_index: int = Field(
        default=0,
        validation_alias=AliasChoices("correct_option_index", "correctOptionIndex", "correct_answer_index"),
    )

    @model_validator(mode="after")
    def _index_in_range(self) -> "QuizQuestion":
        if self.options and not 0 <= self.correct_option_index < len(self.options):
            raise ValueError(
                f"correct_option_index {self.correct_option_index} out of range for {len(self.options)} options"
            )
        return self


class IdeaNode(BaseModel):
    """Fields shared by every level of the tree."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    title: str
    content: Optional[str] = None
    flashcards: Optional[List[Flashcard]] = None
    quiz_questions: Optional[List[QuizQuestion]] = Field(
        default=None,
        validation_alias=AliasChoices("quiz_questions", "quizQuestions"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # Models occasionally return numeric ids
        if isinstance(value, (int, float)):
            return str(value)
        return value

    def children(self) -> Sequence["IdeaNode"]:
        return []

    @property
    def has_study_aids(self) -> bool:
        return bool(self.flashcards) or bool(self.quiz_questions)

    def set_study_aids(self, flashcards: List[Flashcard], quiz_questions: List[QuizQuestion]) -> None:
        self.flashcards = list(flashcards)
        self.quiz_questions = list(quiz_questions)


class NestedSubIdea(IdeaNode):
    level: int = 3

    @computed_field
    @property
    def kind(self) -> IdeaKind:
        return IdeaKind.NESTED


class SubIdea(IdeaNode):
    level: int = 2
    nested_sub_ideas: List[NestedSubIdea] = Field(
        default_factory=list,
        validation_alias=AliasChoices("nested_sub_ideas", "nestedSubIdeas"),
    )

    @computed_field
    @property
    def kind(self) -> IdeaKind:
        return IdeaKind.SUB

    def children(self) -> Sequence[IdeaNode]:
        return self.nested_sub_ideas


class MainIdea(IdeaNode):
    level: int = 1
    summary: Optional[str] = None
    sub_ideas: List[SubIdea] = Field(
        default_factory=list,
        validation_alias=AliasChoices("sub_ideas", "subIdeas"),
    )

    @computed_field
    @property
    def kind(self) -> IdeaKind:
        return IdeaKind.MAIN

    def children(self) -> Sequence[IdeaNode]:
        return self.sub_ideas


def _check_unique_titles(nodes: Sequence[IdeaNode], parent: str) -> None:
    seen: Dict[str, str] = {}
    for node in nodes:
        key = node.title.strip().casefold()
        if key in seen:
            raise ValueError(f"Duplicate title {node.title!r} under {parent}")
        seen[key] = node.id
        _check_unique_titles(node.children(), repr(node.title))


class Outline(BaseModel):
    """Root of the tree: subject, description and the main ideas."""

    model_config = ConfigDict(extra="ignore")

    subject: str = ""
    description: str = ""
    ideas: List[MainIdea] = Field(default_factory=list)

    @field_validator("subject", "description", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @model_validator(mode="after")
    def _validate_tree(self) -> "Outline":
        _check_unique_titles(self.ideas, "the outline root")
        seen_ids = set()
        for node, _depth in self.walk():
            if node.id in seen_ids:
                raise ValueError(f"Duplicate node id {node.id!r}")
            seen_ids.add(node.id)
        return self

    def walk(self) -> Iterator[Tuple[IdeaNode, int]]:
        """Pre-order traversal yielding (node, depth) with depth 1 for main ideas."""
        stack: List[Tuple[IdeaNode, int]] = [(idea, 1) for idea in reversed(self.ideas)]
        while stack:
            node, depth = stack.pop()
            yield node, depth
            stack.extend((child, depth + 1) for child in reversed(node.children()))

    def nodes(self) -> List[IdeaNode]:
        return [node for node, _ in self.walk()]

    def find(self, node_id: str) -> Optional[IdeaNode]:
        for node, _ in self.walk():
            if node.id == node_id:
                return node
        return None

    def clone(self) -> "Outline":
        """Structural deep copy; the tree is acyclic so nothing special is needed."""
        return self.model_copy(deep=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


def parse_outline(
    source: Union[str, bytes, Dict[str, Any], Outline],
    expected_main_ideas: Optional[int] = None,
) -> Outline:
    """
    Parse an outline snapshot from JSON text, a dict or an existing Outline.

    Args:
        source: Serialized outline
        expected_main_ideas: When given, a different count is logged as a warning

    Returns:
        A validated Outline (a fresh copy when an Outline is passed)

    Raises:
        ParseError: If the payload is not JSON or does not match the tree schema
    """
    if isinstance(source, Outline):
        return source.clone()

    if isinstance(source, (str, bytes)):
        from studycast.services.infrastructure.parsing.json_parser import parse_json_payload
        text = source.decode("utf-8") if isinstance(source, bytes) else source
        data = parse_json_payload(text)
    else:
        data = source

    if not isinstance(data, dict):
        raise ParseError(f"Outline must be a JSON object, got {type(data).__name__}")

    try:
        outline = Outline.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ParseError(f"Outline does not match the expected structure at {location or 'root'}: {first.get('msg', e)}") from e

    if expected_main_ideas is not None and len(outline.ideas) != expected_main_ideas:
        logger.warning(
            "Outline main idea count differs from convention",
            extra={"main_ideas": len(outline.ideas), "expected": expected_main_ideas},
        )

    return outline


def validate_outline(outline: Outline) -> Outline:
    """Re-check tree invariants after in-place edits (titles, ids, quiz options)."""
    return parse_outline(outline.to_dict())


__all__ = [
    "IdeaKind",
    "Flashcard",
    "QuizQuestion",
    "IdeaNode",
    "MainIdea",
    "SubIdea",
    "NestedSubIdea",
    "Outline",
    "parse_outline",
    "validate_outline",
]
