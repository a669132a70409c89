"""
Model Configuration for Pipeline Steps

Each generation step has its own Gemini model, so a step can be tuned
without touching the others. Every step can be overridden from the
environment with STUDYCAST_MODEL_<STEP>, for example:

    STUDYCAST_MODEL_SCRIPT=gemini-2.5-flash

Steps:
    - outline     : structured outline extraction from the source files
    - summary     : per-idea markdown summaries
    - script      : two-speaker podcast script
    - study_aids  : flashcards and quiz questions per node
    - tts         : multi-speaker speech synthesis
    - phoneme     : IPA transcription of a single word
"""

import os
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional


@dataclass(frozen=True)
class ModelConfig:
    """Configuration for a single model call"""
    model_name: str
    temperature: Optional[float] = None
    response_mime_type: Optional[str] = None
    description: str = ""


@dataclass(frozen=True)
class PipelineModels:
    """Model assignment for every pipeline step"""

    outline: ModelConfig = field(default_factory=lambda: ModelConfig(
        model_name="gemini-2.5-flash",
        response_mime_type="application/json",
        description="Extract a 5-idea outline from the source text",
    ))

    summary: ModelConfig = field(default_factory=lambda: ModelConfig(
        model_name="gemini-2.5-flash",
        description="Summarize one main idea as markdown",
    ))

    script: ModelConfig = field(default_factory=lambda: ModelConfig(
        model_name="gemini-2.5-pro",
        description="Write the two-speaker podcast script",
    ))

    study_aids: ModelConfig = field(default_factory=lambda: ModelConfig(
        model_name="gemini-2.5-flash-lite",
        response_mime_type="application/json",
        description="Generate flashcards and quiz questions for one node",
    ))

    tts: ModelConfig = field(default_factory=lambda: ModelConfig(
        model_name="gemini-2.5-flash-preview-tts",
        description="Synthesize one script segment with two voices",
    ))

    phoneme: ModelConfig = field(default_factory=lambda: ModelConfig(
        model_name="gemini-2.5-flash",
        temperature=0.0,
        description="Return the IPA transcription of a word",
    ))


DEFAULT_PIPELINE_MODELS = PipelineModels()


def list_pipeline_steps() -> List[str]:
    """List the names of all configurable steps"""
    return list(PipelineModels.__dataclass_fields__.keys())


def get_model_config(step: str, pipeline: PipelineModels = DEFAULT_PIPELINE_MODELS) -> ModelConfig:
    """Get the model configuration for a step, honouring env overrides

    Raises:
        ValueError: If the step is unknown
    """
    if step not in PipelineModels.__dataclass_fields__:
        raise ValueError(f"Unknown pipeline step: {step}. Available: {list_pipeline_steps()}")

    config: ModelConfig = getattr(pipeline, step)
    override = os.getenv(f"STUDYCAST_MODEL_{step.upper()}")
    if override:
        config = replace(config, model_name=override)
    return config


def get_model_name(step: str) -> str:
    return get_model_config(step).model_name


def describe_models() -> Dict[str, str]:
    """Step -> effective model name, used by the health endpoint."""
    return {step: get_model_name(step) for step in list_pipeline_steps()}
