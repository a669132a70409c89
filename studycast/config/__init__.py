"""
Application configuration and settings
"""

import os
from dataclasses import dataclass
from pathlib import Path

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from .models import (
    ModelConfig,
    PipelineModels,
    DEFAULT_PIPELINE_MODELS,
    get_model_config,
    get_model_name,
    list_pipeline_steps,
    describe_models,
)


def _env_int(name: str, default: int, minimum: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return max(int(raw), minimum)
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float, minimum: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return max(float(raw), minimum)
    except (TypeError, ValueError):
        return default


# Base directories
APP_DIR = Path(__file__).parent.parent
ROOT_DIR = APP_DIR.parent
DATA_DIR = Path(os.getenv("STUDYCAST_DATA_DIR", str(ROOT_DIR / "data")))
PROJECTS_DIR = DATA_DIR / "projects"
SCRIPT_PROMPT_FILE = DATA_DIR / "script_prompt.md"

# API settings
API_TITLE = "StudyCast API"
API_DESCRIPTION = "Turn study material into outlines, summaries, study aids and a two-voice podcast"
API_VERSION = "1.0.0"

# CORS origins
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:5173",
    ).split(",")
    if origin.strip()
]

# Gemini API
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")

# Script layout
SCRIPT_SEPARATOR = "--- SEGMENT ---"
SPEAKER_1 = os.getenv("STUDYCAST_SPEAKER_1", "Voce 1")
SPEAKER_2 = os.getenv("STUDYCAST_SPEAKER_2", "Voce 2")
EXPECTED_MAIN_IDEAS = 5

# Speech synthesis
TTS_MAX_ATTEMPTS = _env_int("STUDYCAST_TTS_MAX_ATTEMPTS", 3, 1)
TTS_RETRY_BASE_SECONDS = _env_float("STUDYCAST_TTS_RETRY_BASE_SECONDS", 1.0, 0.0)
TTS_LANGUAGE_CODE = os.getenv("STUDYCAST_TTS_LANGUAGE", "it-IT")
TTS_VOICES = (
    os.getenv("STUDYCAST_VOICE_1", "Kore"),
    os.getenv("STUDYCAST_VOICE_2", "Puck"),
)
AUDIO_SAMPLE_RATE = 24000
AUDIO_CHANNELS = 1
AUDIO_SAMPLE_WIDTH = 2

# Per-call timeout for generation requests
GENERATION_TIMEOUT_SECONDS = _env_float("GENERATION_TIMEOUT_SECONDS", 300.0, 1.0)


@dataclass(frozen=True)
class PipelineSettings:
    """Values the orchestrator needs at runtime, bundled for injection."""

    speakers: tuple = (SPEAKER_1, SPEAKER_2)
    separator: str = SCRIPT_SEPARATOR
    max_attempts: int = TTS_MAX_ATTEMPTS
    retry_base_seconds: float = TTS_RETRY_BASE_SECONDS
    expected_main_ideas: int = EXPECTED_MAIN_IDEAS


def get_pipeline_settings() -> PipelineSettings:
    """Build settings from the current environment."""
    return PipelineSettings(
        speakers=(
            os.getenv("STUDYCAST_SPEAKER_1", "Voce 1"),
            os.getenv("STUDYCAST_SPEAKER_2", "Voce 2"),
        ),
        max_attempts=_env_int("STUDYCAST_TTS_MAX_ATTEMPTS", 3, 1),
        retry_base_seconds=_env_float("STUDYCAST_TTS_RETRY_BASE_SECONDS", 1.0, 0.0),
    )


from .prompts import ScriptPromptStore, DEFAULT_SCRIPT_PROMPT  # noqa: E402
