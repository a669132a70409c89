"""
Generation Gateway - the boundary to the content-producing service.

The orchestrator only talks to this interface. Implementations own prompt
construction, model selection, timeouts and response parsing; the
orchestrator owns sequencing, retries around speech and persistence.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from studycast.models.outline import MainIdea, Outline


class GenerationGateway(ABC):
    """Async contract for every generation call the pipeline makes."""

    @abstractmethod
    async def extract_outline(self, source_text: str) -> Outline:
        """Build the outline tree from the combined source text.

        Raises:
            ParseError: If the response is not a valid outline
            GenerationError: If the call itself fails
        """

    @abstractmethod
    async def summarize_idea(
        self,
        idea: MainIdea,
        source_text: str,
        previous_summary: Optional[str],
    ) -> str:
        """Markdown summary of one main idea, continuing from the previous one."""

    @abstractmethod
    async def generate_script(
        self,
        final_content: Outline,
        source_text: str,
        prompt_template: str,
    ) -> str:
        """Raw two-speaker script with segments separated by the separator token."""

    @abstractmethod
    async def generate_study_aids(self, content: Outline) -> Outline:
        """Copy of ``content`` with flashcards and quiz questions on every node.

        A failure on one node yields empty lists for that node only.
        """

    @abstractmethod
    async def synthesize_speech(self, segment: str, speakers: Sequence[str]) -> str:
        """Base64-encoded PCM audio for one script segment.

        Raises:
            GenerationError: If the response carries no audio
        """

    @abstractmethod
    async def lookup_phoneme(self, word: str) -> str:
        """IPA transcription of a single word, without surrounding slashes."""
