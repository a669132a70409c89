"""
Project repository - data access for Project records.

Implements the Repository pattern so the orchestrator and the API depend on
an interface rather than on the storage layout.

The orchestrator relies on two guarantees only:
    - partial updates change the named fields and nothing else
    - a read issued after a write sees that write

Classes:
    ProjectRepository: Abstract interface for project data access
    FileBasedProjectRepository: One JSON file per project on local disk
"""

import json
import os
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from threading import RLock
from typing import Any, Dict, Iterable, List, Optional

from studycast.core.exceptions import PersistenceError, ProjectNotFoundError
from studycast.core.logging import get_logger
from studycast.models.project import PATCHABLE_FIELDS, Project, UploadedFile

logger = get_logger(__name__, component="project_repository")


class ProjectRepository(ABC):
    """Abstract repository for project data access."""

    @abstractmethod
    def create(self, project: Project) -> Project:
        """
        Persist a new project.

        Args:
            project: Project to store; its ``id`` is ignored

        Returns:
            The stored project with its newly assigned id
        """

    @abstractmethod
    def get(self, project_id: int) -> Optional[Project]:
        """Project by id, or None if it does not exist."""

    @abstractmethod
    def update(self, project_id: int, **changes: Any) -> Project:
        """
        Patch the named fields of a project.

        Raises:
            ProjectNotFoundError: If the project does not exist
            ValueError: If a field name is unknown or not patchable
        """

    @abstractmethod
    def delete(self, project_id: int) -> bool:
        """Delete a project. Returns False if it did not exist."""

    @abstractmethod
    def list_all(self) -> List[Project]:
        """All projects, newest first."""

    @abstractmethod
    def bulk_insert(self, projects: Iterable[Project]) -> List[Project]:
        """
        Insert a batch atomically: either every project is stored or none is.

        Raises:
            PersistenceError: If any write fails (the batch is rolled back)
        """

    def require(self, project_id: int) -> Project:
        project = self.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project


def _coerce_change(name: str, value: Any) -> Any:
    if name == "uploaded_files":
        return [f if isinstance(f, UploadedFile) else UploadedFile.from_dict(f) for f in value or []]
    if name == "audio_segments":
        return list(value or [])
    return value


class FileBasedProjectRepository(ProjectRepository):
    """
    Stores each project as ``<id>.json`` under ``storage_dir``.

    Ids are positive integers assigned as one more than the highest id ever
    issued. The high-water mark lives in ``_sequence`` so a deleted project's
    id is never handed out again, even after a restart.

    Writes go through a temporary file and ``os.replace`` so a crash never
    leaves a half-written record behind.
    """

    def __init__(self, storage_dir: Optional[Path] = None):
        if storage_dir is None:
            from studycast.config import PROJECTS_DIR
            storage_dir = PROJECTS_DIR
        self._storage_dir = Path(storage_dir)
        self._lock = RLock()
        try:
            self._storage_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot create project storage at {self._storage_dir}: {e}") from e
        self._known_ids: set[int] = set()
        self._high_water = self._load_sequence()
        self._index_projects()

    def _index_projects(self) -> None:
        """Build the id index from disk without loading payloads."""
        with self._lock:
            self._known_ids = {
                int(path.stem) for path in self._storage_dir.glob("*.json") if path.stem.isdigit()
            }

    @property
    def _sequence_file(self) -> Path:
        return self._storage_dir / "_sequence"

    def _load_sequence(self) -> int:
        try:
            return int(self._sequence_file.read_text(encoding="utf-8").strip())
        except FileNotFoundError:
            return 0
        except (OSError, ValueError) as e:
            logger.warning("Unreadable id sequence, falling back to the index", extra={"error": str(e)})
            return 0

    def _save_sequence(self, last_id: int) -> None:
        """Raise the persisted high-water mark to ``last_id``."""
        high_water = max(self._high_water, last_id)
        tmp_path = self._sequence_file.with_suffix(".tmp")
        try:
            tmp_path.write_text(str(high_water), encoding="utf-8")
            os.replace(tmp_path, self._sequence_file)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise PersistenceError(f"Error saving id sequence: {e}") from e
        self._high_water = high_water

    def _next_id(self) -> int:
        return max(self._high_water, max(self._known_ids, default=0)) + 1

    def _project_file(self, project_id: int) -> Path:
        return self._storage_dir / f"{int(project_id)}.json"

    def _read(self, project_id: int) -> Project:
        path = self._project_file(project_id)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data: Dict[str, Any] = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Error loading project {project_id}: {e}") from e
        project = Project.from_dict(data)
        project.id = project_id
        return project

    def _write(self, project: Project) -> None:
        path = self._project_file(project.id)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(project.to_dict(), f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            tmp_path.unlink(missing_ok=True)
            raise PersistenceError(f"Error saving project {project.id}: {e}") from e
        self._known_ids.add(project.id)

    def _remove(self, project_id: int) -> None:
        self._project_file(project_id).unlink(missing_ok=True)
        self._known_ids.discard(project_id)

    def create(self, project: Project) -> Project:
        with self._lock:
            stored = replace(project, id=self._next_id())
            self._write(stored)
            try:
                self._save_sequence(stored.id)
            except PersistenceError:
                self._remove(stored.id)
                raise
            logger.info("Project created", extra={"project_id": stored.id, "subject": stored.subject})
            return stored

    def get(self, project_id: int) -> Optional[Project]:
        with self._lock:
            if project_id not in self._known_ids:
                return None
            if not self._project_file(project_id).exists():
                self._known_ids.discard(project_id)
                return None
            return self._read(project_id)

    def update(self, project_id: int, **changes: Any) -> Project:
        unknown = set(changes) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown project fields: {sorted(unknown)}")

        with self._lock:
            project = self.require(project_id)
            for name, value in changes.items():
                setattr(project, name, _coerce_change(name, value))
            self._write(project)
            logger.debug(
                "Project updated",
                extra={"project_id": project_id, "fields": sorted(changes)},
            )
            return project

    def delete(self, project_id: int) -> bool:
        with self._lock:
            if project_id not in self._known_ids:
                return False
            try:
                self._remove(project_id)
            except OSError as e:
                raise PersistenceError(f"Error deleting project {project_id}: {e}") from e
            logger.info("Project deleted", extra={"project_id": project_id})
            return True

    def list_all(self) -> List[Project]:
        with self._lock:
            projects = [self._read(project_id) for project_id in sorted(self._known_ids)]

        def _sort_key(p: Project):
            try:
                created = datetime.fromisoformat(p.created_at)
            except (TypeError, ValueError):
                created = datetime.min
            return (created.replace(tzinfo=None), p.id)

        return sorted(projects, key=_sort_key, reverse=True)

    def bulk_insert(self, projects: Iterable[Project]) -> List[Project]:
        with self._lock:
            written: List[Project] = []
            try:
                for project in projects:
                    stored = replace(project, id=self._next_id())
                    self._write(stored)
                    written.append(stored)
                if written:
                    self._save_sequence(written[-1].id)
            except Exception as e:
                for stored in written:
                    self._remove(stored.id)
                logger.error(
                    "Bulk insert rolled back",
                    extra={"written": len(written), "error": str(e)},
                )
                if isinstance(e, PersistenceError):
                    raise
                raise PersistenceError(f"Bulk insert failed: {e}") from e

            logger.info("Bulk insert completed", extra={"count": len(written)})
            return written


_project_repository: Optional[FileBasedProjectRepository] = None


def get_project_repository() -> FileBasedProjectRepository:
    global _project_repository
    if _project_repository is None:
        _project_repository = FileBasedProjectRepository()
    return _project_repository
