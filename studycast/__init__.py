"""StudyCast - study material to outline, summaries, study aids and a two-voice podcast."""

__version__ = "1.0.0"
