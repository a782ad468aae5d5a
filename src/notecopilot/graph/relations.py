"""Score the relation between two documents from their concepts."""

import logging
import math
from dataclasses import dataclass
from typing import Any

from ..errors import ParseFailedError
from ..llm.client import GenerationClient
from ..llm.parsing import extract_json_object
from ..llm.prompts import get_template, render_template

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelationJudgement:
    """Similarity score in [0, 1] and a one-sentence justification."""
    similarity_score: float
    context: str


def _coerce_score(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        score = float(value)
    elif isinstance(value, str):
        try:
            score = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(score) or math.isinf(score):
        return None
    return score


def read_relation(text: str) -> RelationJudgement:
    """Read ``similarityScore`` and ``context`` from a response.

    Raises ParseFailedError when the payload is missing or the score is not
    a finite number. Scores outside [0, 1] are clamped.
    """
    data = extract_json_object(text)
    if data is None:
        raise ParseFailedError("Relation response contained no JSON object")

    score = _coerce_score(data.get("similarityScore"))
    if score is None:
        raise ParseFailedError(f"No usable similarityScore: {data.get('similarityScore')!r}")
    if not 0.0 <= score <= 1.0:
        logger.warning(f"Similarity score {score} out of range, clamping to [0, 1]")
        score = min(1.0, max(0.0, score))

    context = data.get("context")
    context = "" if context is None else str(context).strip()
    return RelationJudgement(similarity_score=score, context=context)


def parse_relation(text: str) -> RelationJudgement | None:
    """Like read_relation, but None when the response can't be parsed."""
    try:
        return read_relation(text)
    except ParseFailedError as e:
        logger.debug(f"Dropping relation: {e}")
        return None


class RelationAnalyzer:
    """Asks Claude how closely two documents are related."""

    def __init__(self, client: GenerationClient, config: dict[str, Any]):
        self.client = client
        self.config = config

    def analyze(
        self,
        source_name: str,
        source_concepts: str,
        target_name: str,
        target_concepts: str,
    ) -> RelationJudgement | None:
        prompt = render_template(
            get_template(self.config, "analyze_document_relation"),
            {
                "sourceTitle": source_name,
                "sourceConcepts": source_concepts,
                "targetTitle": target_name,
                "targetConcepts": target_concepts,
            },
        )
        result = self.client.generate(prompt)
        if not result.ok:
            return None
        return parse_relation(result.text)


def analyze_relation(
    source_name: str,
    source_concepts: str,
    target_name: str,
    target_concepts: str,
    client: GenerationClient,
    config: dict[str, Any],
) -> RelationJudgement | None:
    return RelationAnalyzer(client, config).analyze(source_name, source_concepts, target_name, target_concepts)
