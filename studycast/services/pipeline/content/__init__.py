"""Deterministic content transforms between generation steps."""

from .final_content import build_final_content
from .sources import combine_sources

__all__ = ["build_final_content", "combine_sources"]
