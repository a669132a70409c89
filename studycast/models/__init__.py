"""
Domain models and API schemas

    outline.py - the three-level idea tree (pydantic)
    project.py - project record and its artifacts
    stage.py   - pipeline stages derived from a project
    api.py     - request/response bodies for the HTTP API
"""

from .stage import Stage, STAGE_LABELS, TRANSITION_FROM_STAGE
from .outline import (
    IdeaKind,
    Flashcard,
    QuizQuestion,
    IdeaNode,
    MainIdea,
    SubIdea,
    NestedSubIdea,
    Outline,
    parse_outline,
    validate_outline,
)
from .project import Project, UploadedFile, PATCHABLE_FIELDS, LEGACY_FIELD_NAMES
from .api import (
    UploadedFileModel,
    CreateProjectRequest,
    SummariesRequest,
    ScriptRequest,
    AudioRequest,
    SegmentRegenerationRequest,
    RunRequest,
    NavigateRequest,
    PromptUpdateRequest,
    PhonemeRequest,
    ProjectSummary,
    ProjectDetail,
    ResumeResponse,
    ProgressResponse,
    PromptResponse,
    PhonemeResponse,
    ImportResponse,
    TransitionAccepted,
)

__all__ = [
    "Stage",
    "STAGE_LABELS",
    "TRANSITION_FROM_STAGE",
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
    "Project",
    "UploadedFile",
    "PATCHABLE_FIELDS",
    "LEGACY_FIELD_NAMES",
    "UploadedFileModel",
    "CreateProjectRequest",
    "SummariesRequest",
    "ScriptRequest",
    "AudioRequest",
    "SegmentRegenerationRequest",
    "RunRequest",
    "NavigateRequest",
    "PromptUpdateRequest",
    "PhonemeRequest",
    "ProjectSummary",
    "ProjectDetail",
    "ResumeResponse",
    "ProgressResponse",
    "PromptResponse",
    "PhonemeResponse",
    "ImportResponse",
    "TransitionAccepted",
]
