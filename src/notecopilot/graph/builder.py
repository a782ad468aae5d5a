"""Build a knowledge graph of related documents across the vault.

For a source document, every other document is compared pairwise: concepts
are extracted once per document, Claude scores each pair, and relations below
``min_similarity_score`` are dropped. Survivors are ranked by score and capped
at ``max_links_per_document``. A full build repeats this for every document,
so it costs O(n^2) generation calls; calls are issued one at a time in vault
order.
"""

import logging
from typing import Any, Callable, Iterable, Protocol

from ..config import knowledge_graph_settings
from ..models import DocumentRef, DocumentRelation
from ..vault.links import LinkWriter
from ..vault.store import DocumentStore
from .concepts import ConceptExtractor
from .relations import RelationAnalyzer

logger = logging.getLogger(__name__)

ProgressFn = Callable[[int, int, DocumentRef], None]


class CancelToken(Protocol):
    def is_set(self) -> bool: ...


def _cancelled(cancel: CancelToken | None) -> bool:
    return cancel is not None and cancel.is_set()


def rank_relations(relations: Iterable[DocumentRelation], max_links: int) -> list[DocumentRelation]:
    """Sort by score descending, keeping discovery order for ties, and cap."""
    ranked = sorted(relations, key=lambda r: r.similarity_score, reverse=True)
    return ranked[:max(0, max_links)]


class KnowledgeGraphBuilder:
    """Finds related documents and optionally links them."""

    def __init__(
        self,
        store: DocumentStore,
        extractor: ConceptExtractor,
        analyzer: RelationAnalyzer,
        config: dict[str, Any],
        link_writer: LinkWriter | None = None,
    ):
        self.store = store
        self.extractor = extractor
        self.analyzer = analyzer
        self.config = config
        self.link_writer = link_writer or LinkWriter(store)
        self.linked_documents: list[DocumentRef] = []

    @property
    def settings(self) -> dict[str, Any]:
        return knowledge_graph_settings(self.config)

    def _concepts(self, doc: DocumentRef, body: str, cache: dict[str, str | None] | None) -> str | None:
        # Failed extractions are cached too; a document is asked for at most once per run.
        if cache is not None and doc.path in cache:
            return cache[doc.path]
        concepts = self.extractor.extract(body)
        if cache is not None:
            cache[doc.path] = concepts
        return concepts

    def find_related(
        self,
        source: DocumentRef,
        candidates: Iterable[DocumentRef] | None = None,
        concept_cache: dict[str, str | None] | None = None,
        cancel: CancelToken | None = None,
    ) -> list[DocumentRelation]:
        """Relations from ``source`` to the other documents, best first.

        Raises DocumentIOError if the source itself cannot be read. Failures on
        individual candidates are logged and skipped.
        """
        settings = self.settings
        min_score = settings["min_similarity_score"]
        max_links = settings["max_links_per_document"]

        body = self.store.read_body(source)
        if not body.strip():
            return []

        source_concepts = self._concepts(source, body, concept_cache)
        if source_concepts is None:
            logger.warning(f"Could not extract concepts from {source.path}; no relations scored")
            return []

        if candidates is None:
            candidates = self.store.list_documents()

        kept: list[DocumentRelation] = []
        for target in candidates:
            if target.path == source.path:
                continue
            if _cancelled(cancel):
                logger.info(f"Cancelled while relating {source.path}")
                break
            try:
                target_body = self.store.read_body(target)
                if not target_body.strip():
                    continue

                target_concepts = self._concepts(target, target_body, concept_cache)
                if target_concepts is None:
                    logger.warning(f"Skipping {target.path}: concept extraction failed")
                    continue

                judgement = self.analyzer.analyze(source.name, source_concepts, target.name, target_concepts)
                if judgement is None:
                    logger.debug(f"No usable relation between {source.path} and {target.path}")
                    continue

                if judgement.similarity_score >= min_score:
                    kept.append(DocumentRelation(
                        source=source,
                        target=target,
                        similarity_score=judgement.similarity_score,
                        context=judgement.context,
                    ))
            except Exception as e:
                logger.warning(f"Skipping {target.path} while relating {source.path}: {e}")

        return rank_relations(kept, max_links)

    def build_graph(
        self,
        documents: Iterable[DocumentRef] | None = None,
        progress: ProgressFn | None = None,
        cancel: CancelToken | None = None,
    ) -> list[DocumentRelation]:
        """Relations for every document in the vault, concatenated by source.

        Writes link sections when ``auto_add_links`` is on and the run was not
        cancelled.
        """
        settings = self.settings
        docs = list(documents) if documents is not None else self.store.list_documents()
        self.linked_documents = []

        sources = []
        for doc in docs:
            try:
                if self.store.read_body(doc).strip():
                    sources.append(doc)
            except Exception as e:
                logger.warning(f"Skipping unreadable document {doc.path}: {e}")

        total = len(sources)
        logger.info(f"Building knowledge graph over {total} document(s)")

        cache: dict[str, str | None] = {}
        relations: list[DocumentRelation] = []
        for k, source in enumerate(sources, 1):
            if _cancelled(cancel):
                break
            try:
                relations.extend(self.find_related(source, candidates=docs, concept_cache=cache, cancel=cancel))
            except Exception as e:
                logger.error(f"Failed to relate {source.path}: {e}")
            logger.info(f"Processed {k} of {total} documents")
            if progress is not None:
                progress(k, total, source)

        if _cancelled(cancel):
            logger.warning(f"Knowledge graph build cancelled with {len(relations)} relation(s) found")
            return relations

        if settings["auto_add_links"] and relations:
            self.linked_documents = self.link_writer.apply(relations)

        return relations
