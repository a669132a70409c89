"""
Core Exceptions
Standardized base exceptions for the application.

Every error raised out of a pipeline transition carries the name of the
stage it happened in (``outline``, ``summaries``, ``script``, ``audio``).
"""

from typing import Optional


class StudyCastError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def with_stage(self, stage: str) -> "StudyCastError":
        """Attach the failing stage unless one is already recorded."""
        if self.stage is None:
            self.stage = stage
        return self

    def __str__(self) -> str:
        if self.stage:
            return f"[{self.stage}] {self.message}"
        return self.message


class PipelineError(StudyCastError):
    """Base exception for processing pipeline errors."""
    pass


class GenerationError(PipelineError):
    """The generation service failed or returned an unusable result."""
    pass


class ParseError(GenerationError):
    """Stage output did not conform to the expected structure."""
    pass


class RetryExhaustedError(GenerationError):
    """An operation kept failing until the attempt budget ran out."""

    def __init__(
        self,
        message: str,
        attempts: int,
        last_error: Optional[BaseException] = None,
        stage: Optional[str] = None,
    ):
        super().__init__(message, stage=stage)
        self.attempts = attempts
        self.last_error = last_error


class PipelineInputError(PipelineError):
    """The caller supplied input a transition cannot start from."""
    pass


class NavigationError(PipelineError):
    """Requested stage is not reachable for this project."""
    pass


class TransitionInProgressError(PipelineError):
    """Another transition is already running for the same project."""
    pass


class InfrastructureError(StudyCastError):
    """Base exception for infrastructure errors (LLM, Storage, etc)."""
    pass


class PersistenceError(InfrastructureError):
    """Project store read or write failed."""
    pass


class ProjectNotFoundError(PersistenceError):
    def __init__(self, project_id: int):
        super().__init__(f"Project {project_id} not found")
        self.project_id = project_id


class ImportFormatError(InfrastructureError):
    """Import payload matched no recognized archive shape."""
    pass
