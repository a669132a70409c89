"""
Script prompt template and pronunciation routes
"""

from fastapi import APIRouter, Depends, HTTPException

from ..config import ScriptPromptStore
from ..models import PhonemeRequest, PhonemeResponse, PromptResponse, PromptUpdateRequest
from ..services.pipeline import PipelineOrchestrator
from ..services.pipeline.script.phonemes import insert_phoneme, phoneme_tag
from .dependencies import get_orchestrator, get_prompt_store

router = APIRouter(tags=["prompt"])


def _prompt_response(store: ScriptPromptStore) -> PromptResponse:
    return PromptResponse(prompt=store.current, is_overridden=store.is_overridden)


@router.get("/prompt", response_model=PromptResponse)
async def get_prompt(store: ScriptPromptStore = Depends(get_prompt_store)):
    return _prompt_response(store)


@router.put("/prompt", response_model=PromptResponse)
async def update_prompt(request: PromptUpdateRequest, store: ScriptPromptStore = Depends(get_prompt_store)):
    """Save a new script template; used by every later script generation."""
    try:
        store.save(request.prompt)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _prompt_response(store)


@router.delete("/prompt", response_model=PromptResponse)
async def reset_prompt(store: ScriptPromptStore = Depends(get_prompt_store)):
    store.reset()
    return _prompt_response(store)


@router.post("/phoneme", response_model=PhonemeResponse)
async def lookup_phoneme(request: PhonemeRequest, orchestrator: PipelineOrchestrator = Depends(get_orchestrator)):
    """
    IPA transcription for one word.

    When ``text`` is given, the word is also wrapped in a phoneme tag inside
    it and the tagged text is returned.
    """
    word = request.word.strip()
    if not word or any(ch.isspace() for ch in word):
        raise HTTPException(status_code=400, detail="Select a single word")

    ipa = await orchestrator.gateway.lookup_phoneme(word)

    tagged = None
    if request.text is not None:
        try:
            tagged = insert_phoneme(request.text, word, ipa, request.occurrence)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    return PhonemeResponse(word=word, ipa=ipa, tag=phoneme_tag(word, ipa), text=tagged)
