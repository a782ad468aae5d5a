"""Claude API generation client.

This is the only place that talks to the generation service. Every call that
reaches the service is recorded in the interaction log, and failures come back
as a ``GenerationResult`` rather than an exception.
"""

import logging
from dataclasses import dataclass
from typing import Any

from ..errors import CopilotError, GenerationFailedError, NotConfiguredError
from ..models import InteractionLogEntry
from .log import InteractionLog

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Outcome of one generation call: completion text or an error."""
    text: str | None = None
    error: CopilotError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None

    def unwrap(self) -> str:
        """Return the text or raise the recorded error."""
        if self.error is not None:
            raise self.error
        if self.text is None:
            raise GenerationFailedError("Generation returned no text")
        return self.text


class GenerationClient:
    """Sends a prompt to Claude and returns the completion text."""

    def __init__(self, config: dict[str, Any], log: InteractionLog, client: Any = None):
        self.config = config
        self.log = log
        self.model = config.get("claude_model", "claude-sonnet-4-20250514")
        self.max_tokens = int(config.get("max_tokens", 1000))
        self._client = client

    @property
    def client(self) -> Any:
        """Lazily build the Anthropic client from the configured key."""
        if self._client is None:
            api_key = self.config.get("claude_api_key")
            if not api_key:
                return None
            import anthropic
            self._client = anthropic.Anthropic(api_key=api_key)
        return self._client

    @property
    def is_configured(self) -> bool:
        return self._client is not None or bool(self.config.get("claude_api_key"))

    def generate(self, prompt: str) -> GenerationResult:
        """Send ``prompt`` and return the completion.

        Without a credential this fails immediately with NotConfiguredError and
        nothing is sent or logged. Every attempted call appends exactly one
        log entry, successful or not.
        """
        if not self.is_configured:
            logger.warning("Claude API key is not configured.")
            return GenerationResult(error=NotConfiguredError(
                "Claude API key required. Set ANTHROPIC_API_KEY or claude_api_key in config."
            ))

        entry = InteractionLogEntry(model=self.model, input_prompt=prompt)
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
            text = _response_text(response)
            if text is None:
                raise GenerationFailedError("Response contained no text content")
        except Exception as e:
            message = str(e) or e.__class__.__name__
            logger.error(f"Claude API call failed: {message}")
            entry.error = message
            self.log.append(entry)
            error = e if isinstance(e, GenerationFailedError) else GenerationFailedError(message)
            return GenerationResult(error=error)

        entry.output_response = text
        usage = getattr(response, "usage", None)
        if usage is not None:
            entry.input_tokens = getattr(usage, "input_tokens", None)
            entry.output_tokens = getattr(usage, "output_tokens", None)
        self.log.append(entry)
        return GenerationResult(text=text)


def _response_text(response: Any) -> str | None:
    """Text of the first text block in a Messages API response."""
    for block in getattr(response, "content", None) or []:
        text = getattr(block, "text", None)
        if isinstance(text, str):
            return text
    return None
