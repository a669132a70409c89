"""Storage layer - data persistence."""

from .project_repository import (
    ProjectRepository,
    FileBasedProjectRepository,
    get_project_repository,
)
from .archive import export_archive, import_archive

__all__ = [
    "ProjectRepository",
    "FileBasedProjectRepository",
    "get_project_repository",
    "export_archive",
    "import_archive",
]
