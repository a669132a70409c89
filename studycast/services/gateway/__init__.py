"""
Generation Gateway

    base.py  - abstract contract consumed by the orchestrator
    gemini/  - Google Gemini implementation
"""

from .base import GenerationGateway

__all__ = ["GenerationGateway"]
