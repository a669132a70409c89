"""
Services layer

    gateway/        - generation calls (contract + Gemini implementation)
    pipeline/       - orchestration of the stages
    infrastructure/ - storage, LLM client, parsing, audio containers
"""
