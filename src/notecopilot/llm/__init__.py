"""Generation service access: prompts, client and interaction log."""

from .client import GenerationClient, GenerationResult
from .log import InteractionLog
from .prompts import DEFAULT_PROMPT_TEMPLATES, get_template, render_template

__all__ = [
    "GenerationClient",
    "GenerationResult",
    "InteractionLog",
    "DEFAULT_PROMPT_TEMPLATES",
    "get_template",
    "render_template",
]
