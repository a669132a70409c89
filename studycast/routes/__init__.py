"""
Routes module - contains all API route handlers
"""

from .projects import router as projects_router
from .pipeline import router as pipeline_router
from .prompt import router as prompt_router

__all__ = [
    "projects_router",
    "pipeline_router",
    "prompt_router",
]
