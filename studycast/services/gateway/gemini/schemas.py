"""Structured-output schemas passed as ``response_schema``."""

_TITLE = {
    "type": "STRING",
    "description": "Titolo conciso, al massimo 3 parole, unico tra i fratelli.",
}

NESTED_SUB_IDEA_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "id": {"type": "STRING"},
        "level": {"type": "INTEGER"},
        "title": _TITLE,
    },
    "required": ["id", "level", "title"],
}

SUB_IDEA_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "id": {"type": "STRING"},
        "level": {"type": "INTEGER"},
        "title": _TITLE,
        "nested_sub_ideas": {"type": "ARRAY", "items": NESTED_SUB_IDEA_SCHEMA},
    },
    "required": ["id", "level", "title"],
}

MAIN_IDEA_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "id": {"type": "STRING"},
        "level": {"type": "INTEGER"},
        "title": _TITLE,
        "sub_ideas": {"type": "ARRAY", "items": SUB_IDEA_SCHEMA},
    },
    "required": ["id", "level", "title"],
}

OUTLINE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "subject": {"type": "STRING", "description": "Argomento del testo"},
        "description": {"type": "STRING", "description": "Descrizione generale del testo"},
        "ideas": {
            "type": "ARRAY",
            "description": "Esattamente 5 idee principali con titoli unici.",
            "items": MAIN_IDEA_SCHEMA,
        },
    },
    "required": ["subject", "description", "ideas"],
}

STUDY_AIDS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "flashcards": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "front": {"type": "STRING"},
                    "back": {"type": "STRING"},
                },
                "required": ["front", "back"],
            },
        },
        "quiz_questions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "question": {"type": "STRING"},
                    "options": {"type": "ARRAY", "items": {"type": "STRING"}},
                    "correct_option_index": {"type": "INTEGER"},
                },
                "required": ["question", "options", "correct_option_index"],
            },
        },
    },
    "required": ["flashcards", "quiz_questions"],
}
