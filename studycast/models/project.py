"""
Project record - the durable unit of work.

Progress is never stored as a status field. Which artifacts are present
decides the stage (``derive_stage``).
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, List, Optional

from studycast.models.stage import Stage

# camelCase keys written by older exports
LEGACY_FIELD_NAMES = {
    "createdAt": "created_at",
    "uploadedFiles": "uploaded_files",
    "outlineJson": "outline_json",
    "outlineWithSummariesJson": "outline_with_summaries_json",
    "finalContentJson": "final_content_json",
    "fullScript": "full_script",
    "studyMaterialsJson": "study_materials_json",
    "audioSegments": "audio_segments",
}


@dataclass
class UploadedFile:
    name: str
    content: str
    selected: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "content": self.content, "selected": self.selected}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UploadedFile":
        return cls(
            name=data.get("name", ""),
            content=data.get("content", ""),
            selected=data.get("selected", True),
        )


@dataclass
class Project:
    subject: str = ""
    id: Optional[int] = None
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    uploaded_files: List[UploadedFile] = field(default_factory=list)
    outline_json: Optional[str] = None
    outline_with_summaries_json: Optional[str] = None
    final_content_json: Optional[str] = None
    full_script: Optional[str] = None
    study_materials_json: Optional[str] = None
    audio_segments: List[str] = field(default_factory=list)

    def derive_stage(self) -> Stage:
        """Stage implied by the artifacts present, latest first."""
        if self.audio_segments:
            return Stage.AUDIO_READY
        if self.full_script and self.study_materials_json:
            return Stage.SCRIPT_AND_STUDY_AIDS_READY
        if self.final_content_json:
            return Stage.SUMMARIES_READY
        if self.outline_json:
            return Stage.OUTLINE_READY
        return Stage.EMPTY

    @property
    def stage(self) -> Stage:
        return self.derive_stage()

    @property
    def status_label(self) -> str:
        return self.derive_stage().label

    def selected_files(self) -> List[UploadedFile]:
        return [f for f in self.uploaded_files if f.selected]

    def to_dict(self, include_id: bool = True) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "subject": self.subject,
            "created_at": self.created_at,
            "uploaded_files": [f.to_dict() for f in self.uploaded_files],
            "outline_json": self.outline_json,
            "outline_with_summaries_json": self.outline_with_summaries_json,
            "final_content_json": self.final_content_json,
            "full_script": self.full_script,
            "study_materials_json": self.study_materials_json,
            "audio_segments": list(self.audio_segments),
        }
        if not include_id:
            data.pop("id")
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        normalized = {LEGACY_FIELD_NAMES.get(key, key): value for key, value in data.items()}
        return cls(
            id=normalized.get("id"),
            subject=normalized.get("subject") or "",
            created_at=normalized.get("created_at") or datetime.now().isoformat(),
            uploaded_files=[
                f if isinstance(f, UploadedFile) else UploadedFile.from_dict(f)
                for f in normalized.get("uploaded_files") or []
            ],
            outline_json=normalized.get("outline_json"),
            outline_with_summaries_json=normalized.get("outline_with_summaries_json"),
            final_content_json=normalized.get("final_content_json"),
            full_script=normalized.get("full_script"),
            study_materials_json=normalized.get("study_materials_json"),
            audio_segments=list(normalized.get("audio_segments") or []),
        )


# Everything except the identifier can be patched
PATCHABLE_FIELDS = frozenset(f.name for f in fields(Project) if f.name != "id")


__all__ = [
    "UploadedFile",
    "Project",
    "PATCHABLE_FIELDS",
    "LEGACY_FIELD_NAMES",
]
