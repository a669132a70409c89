"""
Pipeline - outline to audio

    orchestrator.py - stage state machine and transitions
    retry.py        - bounded retry around speech synthesis
    progress.py     - progress events and observers
    content/        - source combination, final-content restructuring
    script/         - speaker alternation, segments, phoneme hints
"""

from .orchestrator import PipelineOrchestrator, ResumeCursor
from .progress import ProgressEvent, ProgressTracker
from .retry import RetryExecutor, RetryOutcome, RetryPolicy, SoftFailure

__all__ = [
    "PipelineOrchestrator",
    "ResumeCursor",
    "ProgressEvent",
    "ProgressTracker",
    "RetryExecutor",
    "RetryOutcome",
    "RetryPolicy",
    "SoftFailure",
]
