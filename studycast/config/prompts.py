"""
Script prompt template.

The template that steers script generation is user-editable. It is loaded
once when the store is created, with this precedence:

1. the persisted override file (``SCRIPT_PROMPT_FILE``), if present and non-empty
2. the built-in ``DEFAULT_SCRIPT_PROMPT``

The current value is passed explicitly to the orchestrator; nothing reads it
from global state at generation time.
"""

from pathlib import Path
from threading import RLock
from typing import Optional

from studycast.core.exceptions import PersistenceError
from studycast.core.logging import get_logger

logger = get_logger(__name__, component="script_prompt")


DEFAULT_SCRIPT_PROMPT = """Sei un autore di podcast. Trasforma il materiale fornito in una conversazione vivace e informale tra due conduttori, "Voce 1" e "Voce 2".

**REGOLE:**

1.  **Segmenti:** Scrivi esattamente 5 segmenti, separati dalla riga "--- SEGMENT ---".
2.  **Formato:** Solo testo semplice. Ogni battuta inizia con "Voce 1: " oppure "Voce 2: ". Niente markdown.
3.  **Alternanza:** Le due voci si alternano sempre. Dopo "Voce 1" viene "Voce 2" e viceversa, anche a cavallo tra due segmenti.
4.  **Continuità:** Niente introduzioni o saluti finali generali. Il discorso prosegue senza interruzioni da un segmento all'altro.

**STILE:**

*   I conduttori conoscono l'argomento e ne parlano come esperti. Non citano mai "il testo" o "l'articolo".
*   Tono energico e colloquiale, con intercalari come "Insomma," "Sai," "Esatto,".
*   Botta e risposta rapido: domande, dubbi, chiarimenti, analogie semplici.
*   Ogni segmento si chiude lasciando curiosità per il successivo.

Ecco il materiale da elaborare:"""


class ScriptPromptStore:
    """Holds the active script prompt and its persisted override."""

    def __init__(self, override_file: Path, default: str = DEFAULT_SCRIPT_PROMPT):
        self._override_file = Path(override_file)
        self._default = default
        self._lock = RLock()
        self._current = self._load()

    def _load(self) -> str:
        if not self._override_file.exists():
            return self._default
        try:
            text = self._override_file.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(
                "Could not read script prompt override, using default",
                extra={"path": str(self._override_file), "error": str(e)},
            )
            return self._default
        if not text.strip():
            return self._default
        logger.info("Loaded script prompt override", extra={"path": str(self._override_file)})
        return text

    @property
    def current(self) -> str:
        with self._lock:
            return self._current

    @property
    def default(self) -> str:
        return self._default

    @property
    def is_overridden(self) -> bool:
        with self._lock:
            return self._current != self._default

    def save(self, prompt: str) -> str:
        """Persist a new template and make it current."""
        if not prompt or not prompt.strip():
            raise ValueError("Prompt template cannot be empty")
        with self._lock:
            try:
                self._override_file.parent.mkdir(parents=True, exist_ok=True)
                self._override_file.write_text(prompt, encoding="utf-8")
            except OSError as e:
                raise PersistenceError(f"Could not save script prompt: {e}") from e
            self._current = prompt
            return self._current

    def reset(self) -> str:
        """Drop the override and fall back to the built-in template."""
        with self._lock:
            try:
                self._override_file.unlink(missing_ok=True)
            except OSError as e:
                raise PersistenceError(f"Could not remove script prompt override: {e}") from e
            self._current = self._default
            return self._current


_prompt_store: Optional[ScriptPromptStore] = None


def get_script_prompt_store() -> ScriptPromptStore:
    global _prompt_store
    if _prompt_store is None:
        from studycast.config import SCRIPT_PROMPT_FILE
        _prompt_store = ScriptPromptStore(SCRIPT_PROMPT_FILE)
    return _prompt_store
