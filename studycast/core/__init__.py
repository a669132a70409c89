"""
Core Module - Cross-cutting concerns and shared infrastructure

Organization:
    - logging.py: Structured logging configuration and utilities
    - exceptions.py: Error taxonomy shared by every layer
    - files.py: Safe file names for archive packaging

Usage:
    from studycast.core import get_logger, StudyCastError
"""

from .logging import (
    setup_logging,
    get_logger,
    set_request_id,
    set_project_id,
    set_stage,
    clear_context,
    LogTimer,
)

from .exceptions import (
    StudyCastError,
    PipelineError,
    GenerationError,
    ParseError,
    RetryExhaustedError,
    PipelineInputError,
    NavigationError,
    TransitionInProgressError,
    InfrastructureError,
    PersistenceError,
    ProjectNotFoundError,
    ImportFormatError,
)

from .files import sanitize_filename

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "set_request_id",
    "set_project_id",
    "set_stage",
    "clear_context",
    "LogTimer",
    # Exceptions
    "StudyCastError",
    "PipelineError",
    "GenerationError",
    "ParseError",
    "RetryExhaustedError",
    "PipelineInputError",
    "NavigationError",
    "TransitionInProgressError",
    "InfrastructureError",
    "PersistenceError",
    "ProjectNotFoundError",
    "ImportFormatError",
    # Files
    "sanitize_filename",
]
