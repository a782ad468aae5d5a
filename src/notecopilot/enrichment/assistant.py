"""Claude-backed writing helpers for individual notes."""

from typing import Any

from ..llm.client import GenerationClient
from ..llm.prompts import get_template, render_template
from ..models import CustomPrompt


class NoteAssistant:
    """Generates titles, summaries, expansions and hashtags for notes.

    Each method returns the generated text, or None when the generation call
    failed (the failure is already in the interaction log).
    """

    def __init__(self, client: GenerationClient, config: dict[str, Any]):
        self.client = client
        self.config = config

    def _run(self, template_key: str, **variables: str) -> str | None:
        prompt = render_template(get_template(self.config, template_key), variables)
        result = self.client.generate(prompt)
        if not result.ok:
            return None
        return result.text.strip()

    def generate_title(self, content: str, current_title: str | None = None) -> str | None:
        return self._run("generate_title", content=content, currentTitle=current_title or "")

    def summarize(self, text: str) -> str | None:
        return self._run("summarize_text", content=text)

    def expand(self, text: str) -> str | None:
        return self._run("expand_text", content=text)

    def generate_hashtags(self, text: str) -> str | None:
        return self._run("generate_hashtags", content=text)

    @property
    def custom_prompts(self) -> list[CustomPrompt]:
        return [CustomPrompt.from_dict(p) for p in self.config.get("custom_prompts") or [] if isinstance(p, dict)]

    def get_custom_prompt(self, name: str) -> CustomPrompt:
        for prompt in self.custom_prompts:
            if prompt.name == name:
                return prompt
        raise KeyError(name)

    def run_custom_prompt(self, name: str, text: str) -> str | None:
        """Run the named custom prompt against ``text``.

        A prompt without a ``{{content}}`` placeholder gets the text appended.
        """
        prompt = self.get_custom_prompt(name)
        body = prompt.prompt
        if "{{content}}" not in body:
            body = f"{body.rstrip()}\n\n{{{{content}}}}"
        result = self.client.generate(render_template(body, {"content": text}))
        if not result.ok:
            return None
        return result.text.strip()
