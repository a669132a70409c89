"""
Infrastructure services: storage, LLM client, parsing and audio containers.
"""
