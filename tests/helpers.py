"""Fakes and vault builders shared by the tests."""

import json
import re
from pathlib import Path
from types import SimpleNamespace

from notecopilot.errors import GenerationFailedError
from notecopilot.llm.client import GenerationResult
from notecopilot.vault.store import VaultDocumentStore


class FakeGenerator:
    """Stands in for GenerationClient, answering prompts with ``respond``.

    ``respond`` returning None simulates a failed generation call.
    """

    def __init__(self, respond):
        self.respond = respond
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        text = self.respond(prompt)
        if text is None:
            return GenerationResult(error=GenerationFailedError("service unavailable"))
        return GenerationResult(text=text)


class FakeMessages:
    def __init__(self, text="ok", error=None):
        self.text = text
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(
            content=[SimpleNamespace(type="text", text=self.text)],
            usage=SimpleNamespace(input_tokens=12, output_tokens=7),
        )


class FakeAnthropic:
    """Minimal stand-in for ``anthropic.Anthropic``."""

    def __init__(self, text="ok", error=None):
        self.messages = FakeMessages(text=text, error=error)


_DOCUMENT_BODY = re.compile(r"Document:\n(.*)\n\nRespond", re.DOTALL)
_SOURCE = re.compile(r"^Source document: (.+)$", re.MULTILINE)
_TARGET = re.compile(r"^Target document: (.+)$", re.MULTILINE)


def is_concept_prompt(prompt):
    return prompt.startswith("Extract the core concepts")


def is_relation_prompt(prompt):
    return prompt.startswith("Judge how closely two documents")


def graph_responder(scores, fail_concepts=(), fail_relations=()):
    """Answer concept and relation prompts for builder tests.

    Concepts are the first line of the document body. Relation scores come
    from ``scores[(source_name, target_name)]`` (0.0 when absent).
    """
    def respond(prompt):
        if is_concept_prompt(prompt):
            first_line = _DOCUMENT_BODY.search(prompt).group(1).strip().splitlines()[0]
            if first_line in fail_concepts:
                return None
            return json.dumps({"concepts": [first_line, "notes"]})
        if is_relation_prompt(prompt):
            source = _SOURCE.search(prompt).group(1)
            target = _TARGET.search(prompt).group(1)
            if (source, target) in fail_relations:
                return "I cannot decide."
            score = scores.get((source, target), 0.0)
            return json.dumps({"similarityScore": score, "context": f"{source} and {target} overlap"})
        raise AssertionError(f"Unexpected prompt: {prompt[:60]}")
    return respond


def make_vault(root, files):
    """Write ``files`` (relative path -> body) under ``root``."""
    root = Path(root)
    for rel, body in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(body, encoding="utf-8")
    return VaultDocumentStore(root)


def graph_config(min_score=0.5, max_links=5, auto_add_links=False):
    return {
        "knowledge_graph": {
            "enabled": True,
            "min_similarity_score": min_score,
            "max_links_per_document": max_links,
            "auto_add_links": auto_add_links,
        },
    }
