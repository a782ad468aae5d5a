"""Knowledge graph: concept extraction, relation scoring and graph building."""

from .builder import KnowledgeGraphBuilder, rank_relations
from .concepts import ConceptExtractor, extract_concepts
from .relations import RelationAnalyzer, RelationJudgement, analyze_relation
from .summary import GraphSummary, summarize_relations

__all__ = [
    "KnowledgeGraphBuilder",
    "rank_relations",
    "ConceptExtractor",
    "extract_concepts",
    "RelationAnalyzer",
    "RelationJudgement",
    "analyze_relation",
    "GraphSummary",
    "summarize_relations",
]
