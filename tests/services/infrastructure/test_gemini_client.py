"""
Tests for the Gemini client wrapper
"""

import time
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from studycast.core.exceptions import GenerationError
from studycast.services.infrastructure.llm import GeminiClient, finish_details, response_text


@pytest.fixture
def sdk_client():
    client = MagicMock()
    client.models.generate_content.return_value = SimpleNamespace(text="ciao")
    return client


class TestGenerate:

    @pytest.mark.asyncio
    async def test_passes_arguments_through(self, sdk_client):
        client = GeminiClient(client=sdk_client)

        response = await client.generate("gemini-2.5-flash", "prompt", None, operation="test")

        assert response.text == "ciao"
        sdk_client.models.generate_content.assert_called_once_with(
            model="gemini-2.5-flash", contents="prompt", config=None,
        )

    @pytest.mark.asyncio
    async def test_sdk_error_becomes_generation_error(self, sdk_client):
        sdk_client.models.generate_content.side_effect = RuntimeError("quota exceeded")

        with pytest.raises(GenerationError, match="summarize_idea failed: quota exceeded"):
            await GeminiClient(client=sdk_client).generate("m", "p", operation="summarize_idea")

    @pytest.mark.asyncio
    async def test_timeout(self, sdk_client):
        sdk_client.models.generate_content.side_effect = lambda **_: time.sleep(0.5)

        with pytest.raises(GenerationError, match="timed out"):
            await GeminiClient(client=sdk_client, timeout=0.05).generate("m", "p")

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

        with pytest.raises(GenerationError, match="GEMINI_API_KEY"):
            GeminiClient().client


class TestResponseHelpers:

    def test_response_text(self):
        assert response_text(SimpleNamespace(text="ok")) == "ok"
        assert response_text(SimpleNamespace(text=None)) == ""
        assert response_text(object()) == ""

    def test_response_text_when_sdk_raises(self):
        class NoText:
            @property
            def text(self):
                raise ValueError("no text parts")

        assert response_text(NoText()) == ""

    def test_finish_details(self):
        candidate = SimpleNamespace(finish_reason="SAFETY", finish_message="blocked")
        assert finish_details(SimpleNamespace(candidates=[candidate])) == "reason=SAFETY, message=blocked"
        assert finish_details(SimpleNamespace(candidates=[])) == "no candidates"
