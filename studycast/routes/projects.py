"""
Project routes: listing, detail, deletion, creation, navigation, progress
and archive import/export.

Routes talk to the store through the orchestrator so they share its
repository and its per-project position.
"""

from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, Response, UploadFile

from ..core import ProjectNotFoundError, get_logger
from ..models import (
    CreateProjectRequest,
    ImportResponse,
    NavigateRequest,
    ProgressResponse,
    ProjectDetail,
    ProjectSummary,
    ResumeResponse,
    Stage,
)
from ..services.infrastructure.storage import export_archive, import_archive
from ..services.pipeline import PipelineOrchestrator
from .dependencies import get_orchestrator
from .pipeline_helpers import project_detail, run_in_background

logger = get_logger(__name__, component="projects_routes")

router = APIRouter(prefix="/projects", tags=["projects"])

EXPORT_FILENAME = "studycast_projects.zip"


@router.get("", response_model=List[ProjectSummary])
async def list_projects(orchestrator: PipelineOrchestrator = Depends(get_orchestrator)):
    """All projects, newest first, with their derived stage."""
    return [ProjectSummary.from_project(p) for p in orchestrator.repository.list_all()]


@router.post("", response_model=ProjectDetail, status_code=201)
async def create_project(
    request: CreateProjectRequest,
    background_tasks: BackgroundTasks,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    """
    Create a project from source files.

    The outline is extracted before responding. With ``run_all`` the
    remaining stages continue in the background.
    """
    project = await orchestrator.create_project([f.to_domain() for f in request.files])

    if request.run_all:
        background_tasks.add_task(
            run_in_background,
            orchestrator,
            project.id,
            "run",
            lambda: orchestrator.run_all(project.id),
        )

    return project_detail(orchestrator, project)


@router.get("/export")
async def export_projects(orchestrator: PipelineOrchestrator = Depends(get_orchestrator)):
    """Download every project as a ZIP archive."""
    data = export_archive(orchestrator.repository.list_all())
    return Response(
        content=data,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.post("/import", response_model=ImportResponse)
async def import_projects(
    file: UploadFile = File(...),
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    """Import a ZIP archive or a legacy JSON export. All or nothing."""
    data = await file.read()
    projects = import_archive(data)
    stored = orchestrator.repository.bulk_insert(projects)
    logger.info("Projects imported", extra={"count": len(stored), "upload_name": file.filename})
    return ImportResponse(imported=len(stored), project_ids=[p.id for p in stored])


@router.get("/{project_id}", response_model=ProjectDetail)
async def get_project(project_id: int, orchestrator: PipelineOrchestrator = Depends(get_orchestrator)):
    project = orchestrator.repository.require(project_id)
    return project_detail(orchestrator, project)


@router.delete("/{project_id}", status_code=204)
async def delete_project(project_id: int, orchestrator: PipelineOrchestrator = Depends(get_orchestrator)):
    if not orchestrator.delete_project(project_id):
        raise ProjectNotFoundError(project_id)
    return Response(status_code=204)


@router.get("/{project_id}/resume", response_model=ResumeResponse)
async def resume_project(project_id: int, orchestrator: PipelineOrchestrator = Depends(get_orchestrator)):
    """Reload a project and put the cursor on its derived stage."""
    return ResumeResponse(**orchestrator.resume(project_id).to_dict())


@router.post("/{project_id}/navigate", response_model=ResumeResponse)
async def navigate_project(
    project_id: int,
    request: NavigateRequest,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    try:
        stage = Stage.from_slug(request.stage)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ResumeResponse(**orchestrator.navigate(project_id, stage).to_dict())


@router.get("/{project_id}/progress", response_model=ProgressResponse)
async def get_progress(project_id: int, orchestrator: PipelineOrchestrator = Depends(get_orchestrator)):
    """Latest progress event; advisory only."""
    orchestrator.repository.require(project_id)
    busy = orchestrator.is_busy(project_id)
    event = orchestrator.get_progress(project_id)
    if event is None:
        return ProgressResponse(project_id=project_id, busy=busy)

    data = event.to_dict()
    data.pop("project_id", None)
    return ProgressResponse(project_id=project_id, busy=busy, **data)
