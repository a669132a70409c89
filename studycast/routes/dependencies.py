"""
Shared service instances for the routes.

Every route receives its collaborators through ``Depends`` so tests can swap
them with ``app.dependency_overrides``.
"""

from typing import Optional

from ..config import ScriptPromptStore
from ..config.prompts import get_script_prompt_store
from ..services.gateway.gemini import GeminiGenerationGateway
from ..services.infrastructure.storage import get_project_repository
from ..services.pipeline import PipelineOrchestrator

_orchestrator: Optional[PipelineOrchestrator] = None


def get_prompt_store() -> ScriptPromptStore:
    return get_script_prompt_store()


def get_orchestrator() -> PipelineOrchestrator:
    """Process-wide orchestrator backed by the file store and Gemini."""
    global _orchestrator
    if _orchestrator is None:
        prompt_store = get_prompt_store()
        _orchestrator = PipelineOrchestrator(
            repository=get_project_repository(),
            gateway=GeminiGenerationGateway(),
            script_prompt=lambda: prompt_store.current,
        )
    return _orchestrator
