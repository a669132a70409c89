"""
Gemini client wrapper.

Creates the ``google.genai`` client lazily, moves the blocking SDK call off
the event loop, applies the per-call timeout and turns SDK failures into
``GenerationError`` so callers deal with a single error type.
"""

import asyncio
import os
import time
from typing import Any, Optional

from google import genai
from google.genai import types

from studycast.config import GENERATION_TIMEOUT_SECONDS
from studycast.core.exceptions import GenerationError
from studycast.core.logging import get_logger

logger = get_logger(__name__, component="gemini_client")


class GeminiClient:
    """Thin async facade over ``genai.Client().models.generate_content``."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = GENERATION_TIMEOUT_SECONDS,
        client: Optional[Any] = None,
    ):
        self._api_key = api_key
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            api_key = self._api_key or os.getenv("GEMINI_API_KEY")
            if not api_key:
                raise GenerationError("GEMINI_API_KEY environment variable is required")
            self._client = genai.Client(api_key=api_key)
        return self._client

    async def generate(
        self,
        model: str,
        contents: Any,
        config: Optional[types.GenerateContentConfig] = None,
        operation: str = "generate_content",
    ) -> Any:
        """
        Run one ``generate_content`` call.

        Args:
            model: Model name
            contents: Prompt text or structured contents
            config: Optional generation config
            operation: Label used in logs and error messages

        Returns:
            The raw SDK response

        Raises:
            GenerationError: On timeout or any SDK error
        """
        client = self.client
        started = time.monotonic()
        call = asyncio.to_thread(
            client.models.generate_content,
            model=model,
            contents=contents,
            config=config,
        )
        try:
            if self.timeout:
                response = await asyncio.wait_for(call, timeout=self.timeout)
            else:
                response = await call
        except asyncio.TimeoutError as e:
            raise GenerationError(f"{operation} timed out after {self.timeout:.0f}s") from e
        except GenerationError:
            raise
        except Exception as e:
            logger.error(
                f"Gemini call failed: {operation}",
                extra={"model": model, "error": str(e), "error_type": type(e).__name__},
            )
            raise GenerationError(f"{operation} failed: {e}") from e

        logger.debug(
            f"Gemini call completed: {operation}",
            extra={"model": model, "duration_seconds": round(time.monotonic() - started, 2)},
        )
        return response


def response_text(response: Any) -> str:
    """Text of a response, empty when the model returned no text part."""
    try:
        text = getattr(response, "text", None)
    except ValueError:
        # The SDK raises when the candidate holds no text parts
        return ""
    return text or ""


def finish_details(response: Any) -> str:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return "no candidates"
    candidate = candidates[0]
    reason = getattr(candidate, "finish_reason", None)
    message = getattr(candidate, "finish_message", None)
    return f"reason={reason}, message={message}"
