"""note-copilot: Claude-powered titles, summaries, hashtags and a knowledge graph for markdown vaults."""

__version__ = "0.1.0"
