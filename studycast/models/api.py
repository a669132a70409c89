"""
API schemas for the project and pipeline endpoints
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from .project import Project, UploadedFile
from .stage import Stage

# Outline snapshots may be posted as JSON text or as an object
OutlinePayload = Union[str, Dict[str, Any]]


# === Request Models ===

class UploadedFileModel(BaseModel):
    """Source file as sent by the client"""
    name: str
    content: str
    selected: bool = True

    def to_domain(self) -> UploadedFile:
        return UploadedFile(name=self.name, content=self.content, selected=self.selected)


class CreateProjectRequest(BaseModel):
    """Start a project from source files"""
    files: List[UploadedFileModel] = Field(min_length=1)
    run_all: bool = False  # keep going in the background after the outline


class SummariesRequest(BaseModel):
    outline: Optional[OutlinePayload] = None  # user-edited outline
    wait: bool = True


class ScriptRequest(BaseModel):
    final_content: Optional[OutlinePayload] = None
    prompt_template: Optional[str] = None  # one-off template, the stored one is untouched
    wait: bool = True


class AudioRequest(BaseModel):
    script: Optional[str] = None
    study_materials: Optional[OutlinePayload] = None
    wait: bool = True


class SegmentRegenerationRequest(BaseModel):
    """New text for one segment; omit to re-synthesize the current text"""
    text: Optional[str] = None


class RunRequest(BaseModel):
    outline: Optional[OutlinePayload] = None
    wait: bool = False


class NavigateRequest(BaseModel):
    stage: str  # stage slug, e.g. "outline_ready"


class PromptUpdateRequest(BaseModel):
    prompt: str


class PhonemeRequest(BaseModel):
    """IPA lookup; when text is given the first (or nth) occurrence is tagged"""
    word: str
    text: Optional[str] = None
    occurrence: Optional[int] = None


# === Response Models ===

class ProjectSummary(BaseModel):
    """One row of the project listing"""
    id: int
    subject: str
    created_at: str
    stage: str
    status_label: str
    file_count: int = 0
    segment_count: int = 0

    @classmethod
    def from_project(cls, project: Project) -> "ProjectSummary":
        stage = project.derive_stage()
        return cls(
            id=project.id,
            subject=project.subject,
            created_at=project.created_at,
            stage=stage.slug,
            status_label=stage.label,
            file_count=len(project.uploaded_files),
            segment_count=len(project.audio_segments),
        )


class ProjectDetail(ProjectSummary):
    """Full project with every stored artifact"""
    position: str
    uploaded_files: List[UploadedFileModel] = []
    outline_json: Optional[str] = None
    outline_with_summaries_json: Optional[str] = None
    final_content_json: Optional[str] = None
    full_script: Optional[str] = None
    study_materials_json: Optional[str] = None
    audio_segments: List[str] = []
    segments: List[str] = []

    @classmethod
    def build(cls, project: Project, segments: List[str], position: Optional[Stage] = None) -> "ProjectDetail":
        summary = ProjectSummary.from_project(project)
        return cls(
            **summary.model_dump(),
            position=(position or project.derive_stage()).slug,
            uploaded_files=[UploadedFileModel(**f.to_dict()) for f in project.uploaded_files],
            outline_json=project.outline_json,
            outline_with_summaries_json=project.outline_with_summaries_json,
            final_content_json=project.final_content_json,
            full_script=project.full_script,
            study_materials_json=project.study_materials_json,
            audio_segments=list(project.audio_segments),
            segments=segments,
        )


class ResumeResponse(BaseModel):
    project_id: int
    stage: str
    stage_label: str
    position: str
    next_transition: Optional[str] = None
    segment_count: int = 0


class ProgressResponse(BaseModel):
    """Latest progress event (advisory)"""
    project_id: int
    busy: bool
    stage: Optional[str] = None
    item_index: int = 0
    item_total: int = 0
    message: Optional[str] = None
    done: bool = False
    fraction: float = 0.0  # 0.0 to 1.0
    timestamp: Optional[str] = None


class TransitionAccepted(BaseModel):
    """A transition scheduled in the background"""
    project_id: int
    transition: str
    message: str


class PromptResponse(BaseModel):
    prompt: str
    is_overridden: bool


class PhonemeResponse(BaseModel):
    word: str
    ipa: str
    tag: str
    text: Optional[str] = None


class ImportResponse(BaseModel):
    imported: int
    project_ids: List[int]
