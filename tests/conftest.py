"""
Shared fixtures: a sample outline, a scripted fake gateway and an
orchestrator wired to a tmp-dir project store.
"""

import base64
import copy
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Sequence
from unittest.mock import AsyncMock

import pytest

from studycast.config import PipelineSettings
from studycast.models import Flashcard, MainIdea, Outline, QuizQuestion, UploadedFile
from studycast.services.gateway import GenerationGateway
from studycast.services.infrastructure.storage import FileBasedProjectRepository
from studycast.services.pipeline import PipelineOrchestrator, ProgressTracker

SEPARATOR = "--- SEGMENT ---"

SAMPLE_OUTLINE: Dict[str, Any] = {
    "subject": "Fotosintesi",
    "description": "Come le piante producono energia",
    "ideas": [
        {
            "id": "1",
            "title": "Fase luminosa",
            "sub_ideas": [
                {
                    "id": "1.1",
                    "title": "Clorofilla",
                    "nested_sub_ideas": [{"id": "1.1.1", "title": "Pigmenti"}],
                },
                {"id": "1.2", "title": "Fotolisi"},
            ],
        },
        {
            "id": "2",
            "title": "Ciclo di Calvin",
            "sub_ideas": [{"id": "2.1", "title": "Fissazione"}],
        },
    ],
}

SAMPLE_SCRIPT = (
    "Voce 1: Benvenuti!\n"
    "Voce 1: Oggi parliamo della fase luminosa.\n"
    "Voce 2: La clorofilla cattura la luce.\n"
    f"{SEPARATOR}\n"
    "Voce 2: Passiamo al ciclo di Calvin.\n"
    "Voce 1: Qui il carbonio viene fissato."
)


def audio_for(segment: str) -> str:
    return base64.b64encode(f"pcm:{segment[:20]}".encode("utf-8")).decode("ascii")


class FakeGateway(GenerationGateway):
    """
    Deterministic gateway for orchestrator tests.

    ``failures`` maps an operation name to an exception raised on every call.
    ``speech_results`` is consumed in order by ``synthesize_speech``; items may
    be strings or exceptions. When it runs dry, audio is derived from the text.
    """

    def __init__(self):
        self.outline = Outline.model_validate(SAMPLE_OUTLINE)
        self.script = SAMPLE_SCRIPT
        self.failures: Dict[str, BaseException] = {}
        self.speech_results: Deque[Any] = deque()
        self.calls: List[tuple] = []

    def call_count(self, operation: str) -> int:
        return sum(1 for call in self.calls if call[0] == operation)

    def _enter(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, *args))
        if operation in self.failures:
            raise self.failures[operation]

    async def extract_outline(self, source_text: str) -> Outline:
        self._enter("extract_outline", source_text)
        return self.outline.clone()

    async def summarize_idea(self, idea: MainIdea, source_text: str, previous_summary: Optional[str]) -> str:
        self._enter("summarize_idea", idea.title, previous_summary)
        parts = [f"# {idea.title}", f"Sintesi di {idea.title}."]
        for sub in idea.sub_ideas:
            parts += [f"## {sub.title}", f"Dettagli su {sub.title}."]
        return "\n\n".join(parts)

    async def generate_script(self, final_content: Outline, source_text: str, prompt_template: str) -> str:
        self._enter("generate_script", prompt_template)
        return self.script

    async def generate_study_aids(self, content: Outline) -> Outline:
        self._enter("generate_study_aids")
        annotated = content.clone()
        for node, _depth in annotated.walk():
            node.set_study_aids(
                [Flashcard(front=node.title, back=f"Risposta su {node.title}")],
                [QuizQuestion(question=f"Cos'è {node.title}?", options=["a", "b", "c", "d"], correct_option_index=1)],
            )
        return annotated

    async def synthesize_speech(self, segment: str, speakers: Sequence[str]) -> str:
        self._enter("synthesize_speech", segment)
        if self.speech_results:
            result = self.speech_results.popleft()
            if isinstance(result, BaseException):
                raise result
            return result
        return audio_for(segment)

    async def lookup_phoneme(self, word: str) -> str:
        self._enter("lookup_phoneme", word)
        return "foˈtosintezi"


@pytest.fixture
def sample_outline_dict():
    return copy.deepcopy(SAMPLE_OUTLINE)


@pytest.fixture
def sample_outline():
    return Outline.model_validate(SAMPLE_OUTLINE)


@pytest.fixture
def sample_script():
    return SAMPLE_SCRIPT


@pytest.fixture
def source_files():
    return [
        UploadedFile(name="capitolo1.txt", content="La fotosintesi avviene nei cloroplasti."),
        UploadedFile(name="appunti.txt", content="Il ciclo di Calvin fissa la CO2."),
        UploadedFile(name="vecchio.txt", content="Non usare.", selected=False),
    ]


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def repository(tmp_path):
    return FileBasedProjectRepository(tmp_path / "projects")


@pytest.fixture
def pipeline_settings():
    return PipelineSettings(
        speakers=("Voce 1", "Voce 2"),
        separator=SEPARATOR,
        max_attempts=3,
        retry_base_seconds=1.0,
        expected_main_ideas=2,
    )


@pytest.fixture
def fake_sleep():
    return AsyncMock()


@pytest.fixture
def orchestrator(repository, fake_gateway, pipeline_settings, fake_sleep):
    return PipelineOrchestrator(
        repository=repository,
        gateway=fake_gateway,
        script_prompt="Scrivi un podcast.",
        settings=pipeline_settings,
        progress=ProgressTracker(),
        sleep=fake_sleep,
    )
