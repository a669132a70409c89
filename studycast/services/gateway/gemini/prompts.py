"""
Prompt builders for the Gemini gateway.

All generated material is Italian, so prompts are written in Italian as well.
"""

import json
from typing import Optional

from studycast.config import EXPECTED_MAIN_IDEAS
from studycast.models.outline import IdeaNode, MainIdea, Outline


def _bullets(rules) -> str:
    return "\n".join(f"- {rule}" for rule in rules)


def outline_prompt(source_text: str, main_ideas: int = EXPECTED_MAIN_IDEAS) -> str:
    rules = [
        "**PAROLE:** ogni campo 'title', a qualunque livello, ha al massimo 3 parole.",
        "**UNICITÀ:** i titoli delle idee principali sono tutti diversi; lo stesso vale per i figli di uno stesso genitore.",
        "**ID:** ogni nodo ha un 'id' diverso da tutti gli altri nodi.",
        "**LINGUA:** tutto il JSON è in italiano.",
        "**FORMATO:** rispetta esattamente lo schema JSON richiesto.",
    ]
    return f"""
Sei un tutor che aiuta uno studente a padroneggiare in poco tempo l'argomento del testo qui sotto.
Costruisci una mappa mentale in JSON con l'argomento, una descrizione generale ed esattamente {main_ideas} idee principali, ciascuna con eventuali sotto-idee e sotto-sotto-idee.
Includi tutte e sole le idee che servono a uno studente liceale per superare un'interrogazione.

**REGOLE:**
{_bullets(rules)}

**Testo da analizzare:**
---
{source_text}
---
"""


def summary_prompt(idea: MainIdea, source_text: str, previous_summary: Optional[str]) -> str:
    rules = [
        "**LUNGHEZZA:** al massimo 400 parole. È un limite assoluto.",
        "**PUBBLICO:** studenti liceali. Linguaggio chiaro, esempi o analogie quando servono.",
        "**TITOLI:** `#` per l'idea principale, `##` per le sotto-idee, `###` per le sotto-sotto-idee.",
        "**CORRISPONDENZA:** il testo di ogni titolo è IDENTICO al campo `title` del nodo nel JSON.",
        "**INIZIO:** la risposta comincia direttamente con il titolo `#`, senza frasi introduttive.",
        "**CONTENUTO:** sotto ogni titolo un paragrafo basato sul testo originale.",
    ]
    idea_json = json.dumps(
        idea.model_dump(mode="json", exclude_none=True, exclude={"summary"}),
        indent=2,
        ensure_ascii=False,
    )

    prompt = f"""
Sei un tutor bravissimo a rendere accessibili argomenti difficili.
Scrivi in markdown un riassunto strutturato dell'idea qui sotto, rispettando TUTTE le regole.

**REGOLE:**
{_bullets(rules)}

**Struttura dell'idea:**
```json
{idea_json}
```
"""

    if previous_summary:
        prompt += f"""
**Riassunto dell'idea precedente:**
---
{previous_summary}
---
Collega il nuovo riassunto a quello precedente in modo naturale, senza ripeterne il contenuto. Inizia comunque con il titolo `#`.
"""

    prompt += f"""
**Testo originale:**
---
{source_text}
---

Rispondi solo con il riassunto in markdown.
"""
    return prompt


def script_prompt(final_content: Outline, source_text: str, template: str) -> str:
    return f"""{template}

**STRUTTURA DA SEGUIRE:**
Lo script segue la mappa JSON qui sotto. Ogni segmento corrisponde a una delle idee principali ("ideas"), nello stesso ordine.
Tratta tutte le idee e sotto-idee usando `title` e `content` come traccia, e arricchisci la conversazione con i dettagli dei testi originali.

```json
{final_content.to_json()}
```

**Testi originali:**
{source_text}
"""


def study_aids_prompt(node: IdeaNode) -> str:
    rules = [
        "Crea ESATTAMENTE 3 flashcard e 3 domande a scelta multipla con 4 opzioni ciascuna.",
        "Le flashcard sono brevi e puntano sui concetti chiave.",
        "Ogni domanda ha una sola risposta corretta, indicata da 'correct_option_index' (da 0 a 3); le altre opzioni sono plausibili ma sbagliate.",
        "Rispetta esattamente lo schema JSON richiesto.",
    ]
    return f"""
Sei un esperto di materiale didattico. Prepara materiale di ripasso sul capitolo seguente.

**CAPITOLO:**
- Titolo: "{node.title}"
- Contenuto: "{node.content}"

**REGOLE:**
{_bullets(rules)}
"""


def speech_prompt(cleaned_segment: str, speakers) -> str:
    first, second = speakers
    return (
        f"TTS the following conversation between {first} and {second} in a lively and engaging tone, "
        f"with a fast and sustained pace. The language is Italian.\n\n{cleaned_segment}"
    )


def phoneme_prompt(word: str) -> str:
    return (
        "Scrivi la trascrizione fonetica IPA della seguente parola italiana. "
        "Rispondi SOLO con la trascrizione, senza spiegazioni né formattazione.\n\n"
        f'Parola: "{word}"'
    )
