"""Prompt templates and placeholder rendering.

Templates use ``{{name}}`` placeholders. Available variables:

- ``content``: the selected text or note body
- ``currentTitle``: the note's current title (title generation)
- ``sourceTitle``, ``sourceConcepts``, ``targetTitle``, ``targetConcepts``:
  document relation analysis
"""

import re
from typing import Any, Mapping

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")

GENERATE_TITLE_PROMPT = """Generate a concise and informative title for a note with the following content.
Current title: {{currentTitle}}

{{content}}

Output format: YYYY-MM-DD: title. The title part must be usable as a filename (no special characters)."""

SUMMARIZE_TEXT_PROMPT = """Please summarize the following text concisely:

{{content}}

Summary:"""

EXPAND_TEXT_PROMPT = """Please expand upon the following text, adding more detail and information:

{{content}}

Expanded Text:"""

GENERATE_HASHTAGS_PROMPT = """Extract about 10 keywords that capture the core of the following document.
Output them on a single line as hashtags starting with '#', with no explanations, numbering or punctuation.

Document:
{{content}}

Hashtags:"""

EXTRACT_CORE_CONCEPTS_PROMPT = """Extract the core concepts of the following document: the main topics, ideas and named things it is about.
Keep each concept to a short phrase and list at most 10.

Document:
{{content}}

Respond in this exact JSON format:
{"concepts": ["concept 1", "concept 2", "concept 3"]}"""

ANALYZE_DOCUMENT_RELATION_PROMPT = """Judge how closely two documents from a personal knowledge base are related, based on their core concepts.

Source document: {{sourceTitle}}
Core concepts: {{sourceConcepts}}

Target document: {{targetTitle}}
Core concepts: {{targetConcepts}}

Give a similarity score between 0.0 (unrelated) and 1.0 (same subject) and one sentence explaining the relation.

Respond in this exact JSON format:
{"similarityScore": 0.0, "context": "one sentence describing how the documents relate"}"""

DEFAULT_PROMPT_TEMPLATES = {
    "generate_title": GENERATE_TITLE_PROMPT,
    "summarize_text": SUMMARIZE_TEXT_PROMPT,
    "expand_text": EXPAND_TEXT_PROMPT,
    "generate_hashtags": GENERATE_HASHTAGS_PROMPT,
    "extract_core_concepts": EXTRACT_CORE_CONCEPTS_PROMPT,
    "analyze_document_relation": ANALYZE_DOCUMENT_RELATION_PROMPT,
}


def render_template(template: str, variables: Mapping[str, Any]) -> str:
    """Substitute ``{{name}}`` placeholders with their bound values.

    Placeholders without a binding are left as literal text. Substituted
    values are inserted verbatim and never re-scanned.
    """
    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name in variables:
            return str(variables[name])
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(_replace, template)


def get_template(config: Mapping[str, Any], key: str) -> str:
    """Configured template for ``key``, or the built-in default when unset."""
    templates = config.get("prompt_templates") or {}
    template = templates.get(key)
    if isinstance(template, str) and template.strip():
        return template
    return DEFAULT_PROMPT_TEMPLATES[key]
