"""Gemini implementation of the Generation Gateway."""

import base64
import re
from typing import Any, List, Optional, Sequence, Tuple

from google.genai import types
from pydantic import ValidationError

from studycast.config import EXPECTED_MAIN_IDEAS, TTS_LANGUAGE_CODE, TTS_VOICES, get_model_config
from studycast.core.exceptions import GenerationError
from studycast.core.logging import get_logger
from studycast.models.outline import Flashcard, IdeaNode, MainIdea, Outline, QuizQuestion, parse_outline, validate_outline
from studycast.services.gateway.base import GenerationGateway
from studycast.services.gateway.gemini import prompts
from studycast.services.gateway.gemini.schemas import OUTLINE_SCHEMA, STUDY_AIDS_SCHEMA
from studycast.services.infrastructure.audio.wav import SILENT_SEGMENT, encode_segment, parse_mime
from studycast.services.infrastructure.llm.gemini_client import GeminiClient, finish_details, response_text
from studycast.services.infrastructure.parsing.json_parser import parse_json_payload
from studycast.services.pipeline.script.phonemes import clean_ipa

logger = get_logger(__name__, component="gemini_gateway")

_MARK_TAG = re.compile(r"</?mark[^>]*>")


def clean_segment_for_speech(segment: str) -> str:
    """Strip highlight tags and asterisks, trim lines and drop blank ones."""
    lines = (_MARK_TAG.sub("", line).replace("*", "").strip() for line in segment.split("\n"))
    return "\n".join(line for line in lines if line)


def extract_inline_audio(response: Any) -> Tuple[bytes, Optional[str]]:
    """First inline audio payload of a response.

    Raises:
        GenerationError: If no candidate carries audio
    """
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline_data = getattr(part, "inline_data", None)
            data = getattr(inline_data, "data", None) if inline_data else None
            if isinstance(data, bytes) and data:
                return data, getattr(inline_data, "mime_type", None)
            if isinstance(data, str) and data:
                return base64.b64decode(data), getattr(inline_data, "mime_type", None)

    raise GenerationError(f"Audio data not found in response ({finish_details(response)})")


class GeminiGenerationGateway(GenerationGateway):
    """
    Generation calls backed by Google Gemini.

    Outline and study aids use JSON structured output; summaries and the
    script are free text; speech uses the multi-speaker TTS model.
    """

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        voices: Sequence[str] = TTS_VOICES,
        language_code: str = TTS_LANGUAGE_CODE,
    ):
        self.client = client or GeminiClient()
        self.voices = tuple(voices)
        self.language_code = language_code

    async def _text(self, step: str, prompt: str, operation: str, config: Optional[types.GenerateContentConfig] = None) -> str:
        model = get_model_config(step)
        if config is None and model.temperature is not None:
            config = types.GenerateContentConfig(temperature=model.temperature)
        response = await self.client.generate(model.model_name, prompt, config, operation=operation)
        return response_text(response)

    async def extract_outline(self, source_text: str) -> Outline:
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=OUTLINE_SCHEMA,
        )
        text = await self._text("outline", prompts.outline_prompt(source_text), "extract_outline", config)
        outline = parse_outline(text, expected_main_ideas=EXPECTED_MAIN_IDEAS)
        logger.info(
            "Outline extracted",
            extra={"subject": outline.subject, "main_ideas": len(outline.ideas), "nodes": len(outline.nodes())},
        )
        return outline

    async def summarize_idea(self, idea: MainIdea, source_text: str, previous_summary: Optional[str]) -> str:
        prompt = prompts.summary_prompt(idea, source_text, previous_summary)
        summary = (await self._text("summary", prompt, "summarize_idea")).strip()
        if not summary:
            raise GenerationError(f"Empty summary for idea {idea.title!r}")
        return summary

    async def generate_script(self, final_content: Outline, source_text: str, prompt_template: str) -> str:
        prompt = prompts.script_prompt(final_content, source_text, prompt_template)
        script = await self._text("script", prompt, "generate_script")
        if not script.strip():
            raise GenerationError("Script generation returned no text")
        return script

    async def _study_aids_for_node(self, node: IdeaNode) -> Tuple[List[Flashcard], List[QuizQuestion]]:
        if not node.content or not node.content.strip():
            return [], []

        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=STUDY_AIDS_SCHEMA,
        )
        try:
            text = await self._text("study_aids", prompts.study_aids_prompt(node), "generate_study_aids", config)
            payload = parse_json_payload(text)
            flashcards = [Flashcard.model_validate(card) for card in payload.get("flashcards") or []]
            raw_questions = payload.get("quiz_questions", payload.get("quizQuestions")) or []
            questions = [QuizQuestion.model_validate(q) for q in raw_questions]
        except (GenerationError, ValidationError, AttributeError, TypeError) as e:
            logger.warning(
                "Study aids failed for node, substituting empty lists",
                extra={"node_id": node.id, "title": node.title, "error": str(e)},
            )
            return [], []

        if not flashcards and not questions:
            logger.warning("Study aids response was empty", extra={"node_id": node.id, "title": node.title})
        return flashcards, questions

    async def generate_study_aids(self, content: Outline) -> Outline:
        annotated = content.clone()
        # One request at a time, in tree order
        for node, _depth in annotated.walk():
            flashcards, questions = await self._study_aids_for_node(node)
            node.set_study_aids(flashcards, questions)
        return validate_outline(annotated)

    def _speech_config(self, speakers: Sequence[str]) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=types.SpeechConfig(
                language_code=self.language_code,
                multi_speaker_voice_config=types.MultiSpeakerVoiceConfig(
                    speaker_voice_configs=[
                        types.SpeakerVoiceConfig(
                            speaker=speaker,
                            voice_config=types.VoiceConfig(
                                prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice),
                            ),
                        )
                        for speaker, voice in zip(speakers, self.voices)
                    ]
                ),
            ),
        )

    async def synthesize_speech(self, segment: str, speakers: Sequence[str]) -> str:
        cleaned = clean_segment_for_speech(segment)
        if not any(f"{speaker}:" in cleaned for speaker in speakers):
            logger.info("Segment has no dialogue, returning silence")
            return SILENT_SEGMENT

        model = get_model_config("tts")
        response = await self.client.generate(
            model.model_name,
            prompts.speech_prompt(cleaned, speakers),
            self._speech_config(speakers),
            operation="synthesize_speech",
        )
        pcm, mime_type = extract_inline_audio(response)
        _, params = parse_mime(mime_type)
        if params.get("rate") and params["rate"] != "24000":
            logger.warning("Unexpected audio sample rate", extra={"mime_type": mime_type})
        return encode_segment(pcm)

    async def lookup_phoneme(self, word: str) -> str:
        word = (word or "").strip()
        if not word:
            raise ValueError("Word cannot be empty")
        ipa = clean_ipa(await self._text("phoneme", prompts.phoneme_prompt(word), "lookup_phoneme"))
        if not ipa:
            raise GenerationError(f"Could not generate phoneme for {word!r}: empty response")
        return ipa
