"""LLM client infrastructure."""

from .gemini_client import GeminiClient, response_text, finish_details

__all__ = ["GeminiClient", "response_text", "finish_details"]
