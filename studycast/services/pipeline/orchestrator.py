"""
Pipeline Orchestrator

Moves a project through the pipeline stages:

    Empty -> OutlineReady -> SummariesReady -> ScriptAndStudyAidsReady -> AudioReady

Stages are derived from the artifacts stored on the project, never stored
themselves. Each transition:

    1. reads the project once,
    2. calls the generation gateway (speech through the retry executor),
    3. writes every artifact it produced in a single repository update.

A failure anywhere before step 3 leaves the stored project untouched, so
the project stays at its last persisted stage. Each transition is an async
generator of ``ProgressEvent`` objects; the orchestrator drives it and fans
the events out through the ``ProgressTracker``.

Re-running a transition replaces everything downstream of it: new summaries
clear the script, study aids and audio; a new script clears the audio.
"""

import asyncio
from contextlib import contextmanager
from dataclasses import dataclass
from threading import Lock
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from studycast.config import PipelineSettings, get_pipeline_settings
from studycast.core.exceptions import (
    GenerationError,
    NavigationError,
    ParseError,
    PipelineInputError,
    StudyCastError,
    TransitionInProgressError,
)
from studycast.core.logging import LogTimer, get_logger, set_project_id, set_stage
from studycast.models.outline import Outline, parse_outline
from studycast.models.project import Project, UploadedFile
from studycast.models.stage import Stage
from studycast.services.gateway.base import GenerationGateway
from studycast.services.infrastructure.storage.project_repository import ProjectRepository
from studycast.services.pipeline.content.final_content import build_final_content
from studycast.services.pipeline.content.sources import combine_sources
from studycast.services.pipeline.progress import ProgressEvent, ProgressTracker
from studycast.services.pipeline.retry import RetryExecutor, RetryPolicy
from studycast.services.pipeline.script.alternation import correct_voice_alternation
from studycast.services.pipeline.script.segments import replace_segment, split_segments

logger = get_logger(__name__, component="orchestrator")

OutlineInput = Union[str, Dict[str, Any], Outline]
PromptSource = Union[str, Callable[[], str]]

# Downstream artifacts dropped when an earlier stage is regenerated
_CLEARED_AFTER_OUTLINE = {
    "outline_with_summaries_json": None,
    "final_content_json": None,
    "full_script": None,
    "study_materials_json": None,
    "audio_segments": [],
}
_CLEARED_AFTER_SUMMARIES = {"full_script": None, "study_materials_json": None, "audio_segments": []}


class _Outcome:
    """Carries the persisted project out of a transition generator."""
    project: Optional[Project] = None


@dataclass(frozen=True)
class ResumeCursor:
    """Where a reloaded project stands."""
    project: Project
    stage: Stage
    position: Stage

    @property
    def segments(self) -> List[str]:
        return split_segments(self.project.full_script or "")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_id": self.project.id,
            "stage": self.stage.slug,
            "stage_label": self.stage.label,
            "position": self.position.slug,
            "next_transition": self.position.transition,
            "segment_count": len(self.segments),
        }


def _has_audio(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


class PipelineOrchestrator:
    """
    State machine that advances projects through the pipeline.

    Args:
        repository: Project store
        gateway: Generation gateway
        script_prompt: Prompt template for script generation, or a callable
            returning the current template
        settings: Speaker labels, separator and retry budget
        progress: Tracker receiving progress events
        sleep: Awaitable used for retry backoff
    """

    def __init__(
        self,
        repository: ProjectRepository,
        gateway: GenerationGateway,
        script_prompt: PromptSource,
        settings: Optional[PipelineSettings] = None,
        progress: Optional[ProgressTracker] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.repository = repository
        self.gateway = gateway
        self._script_prompt = script_prompt
        self.settings = settings or get_pipeline_settings()
        self.progress = progress or ProgressTracker()
        self.retry_policy = RetryPolicy(
            max_attempts=self.settings.max_attempts,
            base_delay=self.settings.retry_base_seconds,
        )
        self._sleep = sleep
        self._positions: Dict[int, Stage] = {}
        self._active: set[int] = set()
        self._active_lock = Lock()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    @property
    def script_prompt(self) -> str:
        if callable(self._script_prompt):
            return self._script_prompt()
        return self._script_prompt

    def is_busy(self, project_id: int) -> bool:
        with self._active_lock:
            return project_id in self._active

    @contextmanager
    def _exclusive(self, project_id: int, stage: str):
        with self._active_lock:
            if project_id in self._active:
                raise TransitionInProgressError(
                    f"Another transition is already running for project {project_id}",
                    stage=stage,
                )
            self._active.add(project_id)
        try:
            yield
        finally:
            with self._active_lock:
                self._active.discard(project_id)

    async def _run(self, stage: str, project_id: Optional[int], steps: AsyncIterator[ProgressEvent]) -> None:
        set_project_id(project_id)
        set_stage(stage)
        try:
            with LogTimer(logger, f"{stage} transition"):
                async for event in steps:
                    self.progress.publish(event)
        except StudyCastError as e:
            e.with_stage(stage)
            raise
        except Exception as e:
            raise GenerationError(f"{type(e).__name__}: {e}", stage=stage) from e
        finally:
            set_project_id(None)
            set_stage(None)

    async def _transition(
        self,
        stage: str,
        project_id: int,
        steps: Callable[[Project, _Outcome], AsyncIterator[ProgressEvent]],
    ) -> Project:
        with self._exclusive(project_id, stage):
            outcome = _Outcome()

            async def _load_then_run() -> AsyncIterator[ProgressEvent]:
                project = self.repository.require(project_id)
                async for event in steps(project, outcome):
                    yield event

            await self._run(stage, project_id, _load_then_run())
            self._positions[project_id] = outcome.project.derive_stage()
            return outcome.project

    def _event(self, project_id: Optional[int], stage: str, index: int, total: int, message: str, done: bool = False) -> ProgressEvent:
        return ProgressEvent(
            project_id=project_id,
            stage=stage,
            item_index=index,
            item_total=total,
            message=message,
            done=done,
        )

    def _parse(self, source: OutlineInput, what: str) -> Outline:
        try:
            return parse_outline(source, expected_main_ideas=self.settings.expected_main_ideas)
        except ParseError as e:
            raise ParseError(f"Invalid {what}: {e.message}") from e

    @staticmethod
    def _source_text(project: Project) -> str:
        source = combine_sources(project.uploaded_files)
        if not source:
            raise PipelineInputError(f"Project {project.id} has no selected source files")
        return source

    async def _synthesize(self, segment: str, index: int, total: int) -> str:
        executor = RetryExecutor(self.retry_policy, sleep=self._sleep)
        outcome = await executor.run(
            lambda: self.gateway.synthesize_speech(segment, self.settings.speakers),
            accept=_has_audio,
            description=f"speech synthesis for segment {index + 1}/{total}",
        )
        return outcome.value

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def _outline_steps(
        self,
        files: Sequence[UploadedFile],
        outcome: _Outcome,
        existing: Optional[Project] = None,
    ) -> AsyncIterator[ProgressEvent]:
        project_id = existing.id if existing else None
        selected = [f for f in files if f.selected]
        yield self._event(project_id, "outline", 0, 1, f"Extracting outline from {len(selected)} file(s)")

        outline = self._parse(await self.gateway.extract_outline(combine_sources(selected)), "outline")
        subject = outline.subject.strip() or "Untitled Project"

        if existing is None:
            project = self.repository.create(
                Project(subject=subject, uploaded_files=list(files), outline_json=outline.to_json())
            )
            set_project_id(project.id)
        else:
            project = self.repository.update(
                existing.id,
                subject=existing.subject or subject,
                outline_json=outline.to_json(),
                **_CLEARED_AFTER_OUTLINE,
            )

        outcome.project = project
        yield self._event(project.id, "outline", 1, 1, "Outline ready", done=True)

    async def create_project(self, files: Sequence[UploadedFile]) -> Project:
        """Empty -> OutlineReady: extract an outline and store it as a new project."""
        if not any(f.selected for f in files):
            raise PipelineInputError("Select at least one source file", stage="outline")

        outcome = _Outcome()
        await self._run("outline", None, self._outline_steps(files, outcome))
        project = outcome.project
        self._positions[project.id] = Stage.OUTLINE_READY
        return project

    async def generate_outline(self, project_id: int) -> Project:
        """Re-extract the outline of an existing project from its own files."""

        async def steps(project: Project, outcome: _Outcome):
            if not project.selected_files():
                raise PipelineInputError(f"Project {project.id} has no selected source files")
            async for event in self._outline_steps(project.uploaded_files, outcome, existing=project):
                yield event

        return await self._transition("outline", project_id, steps)

    async def generate_summaries(self, project_id: int, outline_override: Optional[OutlineInput] = None) -> Project:
        """OutlineReady -> SummariesReady, one main idea at a time."""

        async def steps(project: Project, outcome: _Outcome):
            if outline_override is not None:
                outline = self._parse(outline_override, "outline")
            elif project.outline_json:
                outline = self._parse(project.outline_json, "stored outline")
            else:
                raise PipelineInputError(f"Project {project.id} has no outline yet")
            source = self._source_text(project)

            working = outline.clone()
            total = len(working.ideas)
            previous: Optional[str] = None
            for index, idea in enumerate(working.ideas):
                yield self._event(project.id, "summaries", index, total, f"Generating summary for idea {index + 1} of {total}")
                summary = await self.gateway.summarize_idea(idea.model_copy(deep=True), source, previous)
                idea.summary = summary
                previous = summary

            yield self._event(project.id, "summaries", total, total, "Structuring summaries into final content")
            final = build_final_content(working)

            outcome.project = self.repository.update(
                project.id,
                outline_json=outline.to_json(),
                outline_with_summaries_json=working.to_json(),
                final_content_json=final.to_json(),
                **_CLEARED_AFTER_SUMMARIES,
            )
            yield self._event(project.id, "summaries", total, total, "Summaries ready", done=True)

        return await self._transition("summaries", project_id, steps)

    async def generate_script_and_study_aids(
        self,
        project_id: int,
        final_content_override: Optional[OutlineInput] = None,
        prompt_template: Optional[str] = None,
    ) -> Project:
        """SummariesReady -> ScriptAndStudyAidsReady; both calls run concurrently."""

        async def steps(project: Project, outcome: _Outcome):
            if final_content_override is not None:
                final = self._parse(final_content_override, "final content")
            elif project.final_content_json:
                final = self._parse(project.final_content_json, "stored final content")
            else:
                raise PipelineInputError(f"Project {project.id} has no final content yet")
            source = self._source_text(project)
            template = prompt_template if prompt_template is not None else self.script_prompt

            yield self._event(project.id, "script", 0, 2, "Generating podcast script and study aids")

            script_task = asyncio.ensure_future(self.gateway.generate_script(final.clone(), source, template))
            aids_task = asyncio.ensure_future(self.gateway.generate_study_aids(final.clone()))
            try:
                raw_script, study = await asyncio.gather(script_task, aids_task)
            except BaseException:
                for task in (script_task, aids_task):
                    task.cancel()
                raise

            yield self._event(project.id, "script", 1, 2, "Correcting speaker alternation")
            study = self._parse(study, "study aids")
            script = correct_voice_alternation(raw_script or "", self.settings.speakers, self.settings.separator)
            segments = split_segments(script, self.settings.separator)
            if not segments:
                raise ParseError("Generated script contains no segments")
            if len(segments) != len(final.ideas):
                logger.warning(
                    "Script segment count differs from main ideas",
                    extra={"segments": len(segments), "main_ideas": len(final.ideas)},
                )

            outcome.project = self.repository.update(
                project.id,
                full_script=script,
                final_content_json=final.to_json(),
                study_materials_json=study.to_json(),
                audio_segments=[],
            )
            yield self._event(project.id, "script", 2, 2, f"Script ready with {len(segments)} segments", done=True)

        return await self._transition("script", project_id, steps)

    async def generate_audio(
        self,
        project_id: int,
        script_override: Optional[str] = None,
        study_materials_override: Optional[OutlineInput] = None,
    ) -> Project:
        """ScriptAndStudyAidsReady -> AudioReady, one segment at a time."""

        async def steps(project: Project, outcome: _Outcome):
            script = script_override if script_override is not None else project.full_script
            if not script or not script.strip():
                raise PipelineInputError(f"Project {project.id} has no script yet")

            study_source = study_materials_override if study_materials_override is not None else project.study_materials_json
            if not study_source:
                raise PipelineInputError(f"Project {project.id} has no study materials yet")
            study = self._parse(study_source, "study materials")

            segments = split_segments(script, self.settings.separator)
            if not segments:
                raise PipelineInputError("Script contains no segments")

            total = len(segments)
            audio: List[str] = []
            for index, segment in enumerate(segments):
                yield self._event(project.id, "audio", index, total, f"Generating audio for segment {index + 1} of {total}")
                audio.append(await self._synthesize(segment, index, total))

            outcome.project = self.repository.update(
                project.id,
                audio_segments=audio,
                full_script=script,
                study_materials_json=study.to_json(),
            )
            yield self._event(project.id, "audio", total, total, "Audio ready", done=True)

        return await self._transition("audio", project_id, steps)

    async def regenerate_segment(self, project_id: int, index: int, text: Optional[str] = None) -> Project:
        """Re-synthesize one segment, optionally replacing its text first."""

        async def steps(project: Project, outcome: _Outcome):
            if project.derive_stage() is not Stage.AUDIO_READY:
                raise NavigationError(f"Project {project.id} has no audio to regenerate")
            segments = split_segments(project.full_script or "", self.settings.separator)
            if not 0 <= index < len(segments):
                raise PipelineInputError(f"Segment {index} out of range (script has {len(segments)})")
            if len(project.audio_segments) != len(segments):
                raise PipelineInputError(
                    f"Project {project.id} has {len(project.audio_segments)} audio segments for {len(segments)} script segments"
                )

            new_text = text.strip() if text and text.strip() else segments[index]
            yield self._event(project.id, "audio", 0, 1, f"Regenerating audio for segment {index + 1}")
            encoded = await self._synthesize(new_text, index, len(segments))

            audio = list(project.audio_segments)
            audio[index] = encoded
            script = project.full_script
            if new_text != segments[index]:
                script = replace_segment(script, index, new_text, self.settings.separator)

            outcome.project = self.repository.update(project.id, audio_segments=audio, full_script=script)
            yield self._event(project.id, "audio", 1, 1, f"Segment {index + 1} regenerated", done=True)

        return await self._transition("audio", project_id, steps)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def resume(self, project_id: int) -> ResumeCursor:
        """Reload a project and place the cursor at its derived stage."""
        project = self.repository.require(project_id)
        stage = project.derive_stage()
        self._positions[project_id] = stage
        logger.info("Project resumed", extra={"project_id": project_id, "resume_stage": stage.slug})
        return ResumeCursor(project=project, stage=stage, position=stage)

    def position(self, project_id: int) -> Stage:
        derived = self.repository.require(project_id).derive_stage()
        current = self._positions.get(project_id, derived)
        return current if current <= derived else derived

    def navigate(self, project_id: int, stage: Stage) -> ResumeCursor:
        """Move the current position back to any stage whose output exists."""
        project = self.repository.require(project_id)
        derived = project.derive_stage()
        if not stage <= derived:
            raise NavigationError(
                f"Cannot go to '{stage.label}': project {project_id} is at '{derived.label}'"
            )
        self._positions[project_id] = stage
        return ResumeCursor(project=project, stage=derived, position=stage)

    async def advance(self, project_id: int, **overrides: Any) -> Project:
        """Run the transition that follows the current position."""
        current = self.position(project_id)
        if current is Stage.EMPTY:
            return await self.generate_outline(project_id)
        if current is Stage.OUTLINE_READY:
            return await self.generate_summaries(project_id, **overrides)
        if current is Stage.SUMMARIES_READY:
            return await self.generate_script_and_study_aids(project_id, **overrides)
        if current is Stage.SCRIPT_AND_STUDY_AIDS_READY:
            return await self.generate_audio(project_id, **overrides)
        raise NavigationError(f"Project {project_id} is complete; nothing to advance")

    async def run_all(self, project_id: int, outline_override: Optional[OutlineInput] = None) -> Project:
        """
        Run every remaining transition back to back.

        Each transition persists exactly as in step-wise mode. The first
        failure propagates with its stage name; earlier stages stay saved.
        """
        current = self.position(project_id)
        if outline_override is not None and current is not Stage.OUTLINE_READY:
            raise PipelineInputError(
                f"An outline override needs the project at '{Stage.OUTLINE_READY.label}', it is at '{current.label}'"
            )

        project = self.repository.require(project_id)
        while not current.is_terminal():
            if current is Stage.OUTLINE_READY and outline_override is not None:
                project = await self.generate_summaries(project_id, outline_override=outline_override)
                outline_override = None
            else:
                project = await self.advance(project_id)
            current = self.position(project_id)

        logger.info("Full run completed", extra={"project_id": project_id})
        return project

    async def create_and_run_all(self, files: Sequence[UploadedFile]) -> Project:
        project = await self.create_project(files)
        return await self.run_all(project.id)

    def get_progress(self, project_id: int) -> Optional[ProgressEvent]:
        return self.progress.latest(project_id)

    def delete_project(self, project_id: int) -> bool:
        with self._exclusive(project_id, "delete"):
            deleted = self.repository.delete(project_id)
        self._positions.pop(project_id, None)
        self.progress.forget(project_id)
        return deleted
