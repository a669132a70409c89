"""
Tests for configuration: per-step models, pipeline settings and the
script prompt store
"""

import pytest

from studycast.config import (
    DEFAULT_SCRIPT_PROMPT,
    ScriptPromptStore,
    describe_models,
    get_model_config,
    get_pipeline_settings,
    list_pipeline_steps,
)
from studycast.core.exceptions import PersistenceError


class TestModelConfig:

    def test_every_step_is_listed(self):
        assert list_pipeline_steps() == ["outline", "summary", "script", "study_aids", "tts", "phoneme"]

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("STUDYCAST_MODEL_SCRIPT", "gemini-custom")

        config = get_model_config("script")

        assert config.model_name == "gemini-custom"
        assert describe_models()["script"] == "gemini-custom"

    def test_structured_steps_request_json(self):
        assert get_model_config("outline").response_mime_type == "application/json"
        assert get_model_config("study_aids").response_mime_type == "application/json"

    def test_unknown_step(self):
        with pytest.raises(ValueError, match="Unknown pipeline step"):
            get_model_config("video")


class TestPipelineSettings:

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("STUDYCAST_SPEAKER_1", "Anna")
        monkeypatch.setenv("STUDYCAST_TTS_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("STUDYCAST_TTS_RETRY_BASE_SECONDS", "2.5")

        settings = get_pipeline_settings()

        assert settings.speakers == ("Anna", "Voce 2")
        assert settings.max_attempts == 5
        assert settings.retry_base_seconds == 2.5

    @pytest.mark.parametrize("raw, expected", [("0", 1), ("abc", 3)])
    def test_invalid_attempts_fall_back(self, monkeypatch, raw, expected):
        monkeypatch.setenv("STUDYCAST_TTS_MAX_ATTEMPTS", raw)
        assert get_pipeline_settings().max_attempts == expected


class TestScriptPromptStore:

    def test_default_when_no_override(self, tmp_path):
        store = ScriptPromptStore(tmp_path / "prompt.md")

        assert store.current == DEFAULT_SCRIPT_PROMPT
        assert not store.is_overridden

    def test_persisted_override_wins(self, tmp_path):
        path = tmp_path / "prompt.md"
        path.write_text("Scrivi un dialogo.", encoding="utf-8")

        assert ScriptPromptStore(path).current == "Scrivi un dialogo."

    def test_blank_override_is_ignored(self, tmp_path):
        path = tmp_path / "prompt.md"
        path.write_text("   \n", encoding="utf-8")

        assert ScriptPromptStore(path).current == DEFAULT_SCRIPT_PROMPT

    def test_save_and_reload(self, tmp_path):
        path = tmp_path / "nested" / "prompt.md"
        store = ScriptPromptStore(path)

        store.save("Nuovo prompt")

        assert store.current == "Nuovo prompt"
        assert store.is_overridden
        assert ScriptPromptStore(path).current == "Nuovo prompt"

    def test_reset(self, tmp_path):
        path = tmp_path / "prompt.md"
        store = ScriptPromptStore(path)
        store.save("Nuovo prompt")

        assert store.reset() == DEFAULT_SCRIPT_PROMPT
        assert not path.exists()
        store.reset()

    @pytest.mark.parametrize("prompt", ["", "   "])
    def test_empty_prompt_rejected(self, tmp_path, prompt):
        with pytest.raises(ValueError):
            ScriptPromptStore(tmp_path / "prompt.md").save(prompt)

    def test_write_failure(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        store = ScriptPromptStore(blocker / "prompt.md")

        with pytest.raises(PersistenceError):
            store.save("Nuovo prompt")
