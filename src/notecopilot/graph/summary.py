"""Summary statistics for a knowledge graph build."""

from dataclasses import dataclass, field

from ..models import DocumentRelation


@dataclass
class GraphSummary:
    total: int
    top_documents: list[tuple[str, int]] = field(default_factory=list)
    average_similarity: float = 0.0
    source_count: int = 0


def summarize_relations(relations: list[DocumentRelation], top_n: int = 10) -> GraphSummary:
    """Most-connected source documents and the mean similarity score."""
    counts: dict[str, int] = {}
    for relation in relations:
        counts[relation.source.path] = counts.get(relation.source.path, 0) + 1

    top = sorted(counts.items(), key=lambda item: item[1], reverse=True)[:top_n]
    average = sum(r.similarity_score for r in relations) / len(relations) if relations else 0.0
    return GraphSummary(
        total=len(relations),
        top_documents=top,
        average_similarity=average,
        source_count=len(counts),
    )
