"""
Pipeline transition routes.

Each transition either runs inside the request (``wait=true``, the default)
and returns the updated project, or is scheduled as a background task and
answered with 202; progress is then polled from ``/projects/{id}/progress``.
"""

from typing import Any, Awaitable, Callable

from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import JSONResponse

from ..models import (
    AudioRequest,
    ProjectDetail,
    RunRequest,
    ScriptRequest,
    SegmentRegenerationRequest,
    SummariesRequest,
)
from ..services.pipeline import PipelineOrchestrator
from .dependencies import get_orchestrator
from .pipeline_helpers import accepted, ensure_idle, project_detail, run_in_background

router = APIRouter(prefix="/projects", tags=["pipeline"])


async def _dispatch(
    orchestrator: PipelineOrchestrator,
    background_tasks: BackgroundTasks,
    project_id: int,
    transition: str,
    wait: bool,
    operation: Callable[[], Awaitable[Any]],
):
    if wait:
        project = await operation()
        return project_detail(orchestrator, project)

    ensure_idle(orchestrator, project_id, transition)
    background_tasks.add_task(run_in_background, orchestrator, project_id, transition, operation)
    return JSONResponse(status_code=202, content=accepted(project_id, transition).model_dump())


@router.post("/{project_id}/summaries", response_model=ProjectDetail)
async def generate_summaries(
    project_id: int,
    request: SummariesRequest,
    background_tasks: BackgroundTasks,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    """Summarize every main idea and build the final content."""
    return await _dispatch(
        orchestrator, background_tasks, project_id, "summaries", request.wait,
        lambda: orchestrator.generate_summaries(project_id, outline_override=request.outline),
    )


@router.post("/{project_id}/script", response_model=ProjectDetail)
async def generate_script(
    project_id: int,
    request: ScriptRequest,
    background_tasks: BackgroundTasks,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    """Generate the podcast script and the study aids together."""
    return await _dispatch(
        orchestrator, background_tasks, project_id, "script", request.wait,
        lambda: orchestrator.generate_script_and_study_aids(
            project_id,
            final_content_override=request.final_content,
            prompt_template=request.prompt_template,
        ),
    )


@router.post("/{project_id}/audio", response_model=ProjectDetail)
async def generate_audio(
    project_id: int,
    request: AudioRequest,
    background_tasks: BackgroundTasks,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    return await _dispatch(
        orchestrator, background_tasks, project_id, "audio", request.wait,
        lambda: orchestrator.generate_audio(
            project_id,
            script_override=request.script,
            study_materials_override=request.study_materials,
        ),
    )


@router.post("/{project_id}/audio/{index}", response_model=ProjectDetail)
async def regenerate_segment(
    project_id: int,
    index: int,
    request: SegmentRegenerationRequest,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    """Re-synthesize one segment, optionally with edited text."""
    project = await orchestrator.regenerate_segment(project_id, index, request.text)
    return project_detail(orchestrator, project)


@router.post("/{project_id}/run", response_model=ProjectDetail)
async def run_all(
    project_id: int,
    request: RunRequest,
    background_tasks: BackgroundTasks,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    """Run every remaining stage from the current position."""
    return await _dispatch(
        orchestrator, background_tasks, project_id, "run", request.wait,
        lambda: orchestrator.run_all(project_id, outline_override=request.outline),
    )
