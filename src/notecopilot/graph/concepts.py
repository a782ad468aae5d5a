"""Extract a document's core concepts with Claude."""

import logging
from typing import Any

from ..llm.client import GenerationClient
from ..llm.parsing import extract_json_object
from ..llm.prompts import get_template, render_template

logger = logging.getLogger(__name__)

MAX_CONTENT_CHARS = 2000
TRUNCATION_MARKER = "..."


def truncate_content(body: str, limit: int = MAX_CONTENT_CHARS) -> str:
    """Leading ``limit`` characters of ``body``, marked when cut."""
    if len(body) <= limit:
        return body
    return body[:limit] + TRUNCATION_MARKER


def parse_concepts(text: str) -> str:
    """Comma-joined ``concepts`` list from a response, or the raw text."""
    data = extract_json_object(text)
    if data is not None and isinstance(data.get("concepts"), list):
        return ", ".join(str(c).strip() for c in data["concepts"])
    logger.debug("Concept response was not structured; using raw text")
    return text


class ConceptExtractor:
    """Summarizes a document as a short list of topic phrases."""

    def __init__(self, client: GenerationClient, config: dict[str, Any]):
        self.client = client
        self.config = config

    def extract(self, body: str) -> str | None:
        """Concept string for ``body``; None only when the generation call failed."""
        prompt = render_template(
            get_template(self.config, "extract_core_concepts"),
            {"content": truncate_content(body)},
        )
        result = self.client.generate(prompt)
        if not result.ok:
            return None
        return parse_concepts(result.text)


def extract_concepts(body: str, client: GenerationClient, config: dict[str, Any]) -> str | None:
    return ConceptExtractor(client, config).extract(body)
