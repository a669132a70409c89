"""
Helpers shared by the project and pipeline routes.

Kept out of the route modules so handlers stay focused on HTTP concerns.
"""

from typing import Any, Awaitable, Callable

from ..core import StudyCastError, TransitionInProgressError, get_logger
from ..models import Project, ProjectDetail, TransitionAccepted
from ..services.pipeline import PipelineOrchestrator, ProgressEvent
from ..services.pipeline.script import split_segments

logger = get_logger(__name__, component="pipeline_routes")


def project_detail(orchestrator: PipelineOrchestrator, project: Project) -> ProjectDetail:
    segments = split_segments(project.full_script or "", orchestrator.settings.separator)
    return ProjectDetail.build(project, segments, position=orchestrator.position(project.id))


def ensure_idle(orchestrator: PipelineOrchestrator, project_id: int, transition: str) -> None:
    """Reject early so a background request gets its 409 synchronously."""
    orchestrator.repository.require(project_id)
    if orchestrator.is_busy(project_id):
        raise TransitionInProgressError(
            f"Another transition is already running for project {project_id}",
            stage=transition,
        )


async def run_in_background(
    orchestrator: PipelineOrchestrator,
    project_id: int,
    transition: str,
    operation: Callable[[], Awaitable[Any]],
) -> None:
    """
    Run a transition after the response was sent.

    There is no caller left to raise to, so the failure is logged and
    published as the project's latest progress event for pollers. A run
    rejected because another transition holds the project is only logged.
    """
    try:
        await operation()
    except TransitionInProgressError as e:
        # The running transition owns the progress stream
        logger.warning(
            "Background transition rejected",
            extra={"project_id": project_id, "transition": transition, "error": e.message},
        )
    except StudyCastError as e:
        logger.error(
            "Background transition failed",
            extra={"project_id": project_id, "transition": transition, "failed_stage": e.stage, "error": e.message},
        )
        orchestrator.progress.publish(
            ProgressEvent(project_id=project_id, stage=e.stage or transition, item_index=0, item_total=0, message=f"Failed: {e.message}")
        )
    except Exception as e:
        logger.error(
            "Background transition crashed",
            extra={"project_id": project_id, "transition": transition, "error": str(e)},
            exc_info=True,
        )
        orchestrator.progress.publish(
            ProgressEvent(project_id=project_id, stage=transition, item_index=0, item_total=0, message=f"Failed: {e}")
        )


def accepted(project_id: int, transition: str) -> TransitionAccepted:
    return TransitionAccepted(
        project_id=project_id,
        transition=transition,
        message=f"{transition} started; poll /projects/{project_id}/progress",
    )
