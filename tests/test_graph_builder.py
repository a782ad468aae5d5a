"""Tests for related-document lookup and full graph builds."""

import tempfile
import threading

import pytest

from helpers import FakeGenerator, graph_config, graph_responder, is_concept_prompt, is_relation_prompt, make_vault
from notecopilot.errors import ConfigError, DocumentIOError
from notecopilot.graph.builder import KnowledgeGraphBuilder, rank_relations
from notecopilot.graph.concepts import ConceptExtractor
from notecopilot.graph.relations import RelationAnalyzer
from notecopilot.models import DocumentRef, DocumentRelation
from notecopilot.vault.links import RELATED_SECTION_HEADING
from notecopilot.vault.store import VaultDocumentStore


def _builder(store, generator, config):
    return KnowledgeGraphBuilder(
        store,
        ConceptExtractor(generator, config),
        RelationAnalyzer(generator, config),
        config,
    )


def test_find_related_end_to_end():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = make_vault(tmpdir, {"A.md": "alpha\n", "B.md": "beta\n", "C.md": "gamma\n"})
        gen = FakeGenerator(graph_responder({("A", "B"): 0.8, ("A", "C"): 0.3}))
        builder = _builder(store, gen, graph_config(min_score=0.5, max_links=5))

        relations = builder.find_related(store.get("A.md"))

        assert [(r.source.name, r.target.name, r.similarity_score) for r in relations] == [("A", "B", 0.8)]
        assert relations[0].context == "A and B overlap"


def test_find_related_filters_sorts_and_caps():
    files = {"src.md": "source\n"}
    scores = {}
    for i, score in enumerate([0.55, 0.9, 0.2, 0.7, 0.95, 0.6, 0.49]):
        files[f"t{i}.md"] = f"target {i}\n"
        scores[("src", f"t{i}")] = score

    with tempfile.TemporaryDirectory() as tmpdir:
        store = make_vault(tmpdir, files)
        builder = _builder(store, FakeGenerator(graph_responder(scores)), graph_config(min_score=0.5, max_links=3))

        relations = builder.find_related(store.get("src.md"))

        got = [r.similarity_score for r in relations]
        assert got == [0.95, 0.9, 0.7]
        assert all(score >= 0.5 for score in got)


def test_find_related_ties_keep_enumeration_order():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = make_vault(tmpdir, {"A.md": "a\n", "B.md": "b\n", "C.md": "c\n", "D.md": "d\n"})
        scores = {("A", "B"): 0.7, ("A", "C"): 0.9, ("A", "D"): 0.7}
        builder = _builder(store, FakeGenerator(graph_responder(scores)), graph_config())

        relations = builder.find_related(store.get("A.md"))

        assert [r.target.name for r in relations] == ["C", "B", "D"]


def test_find_related_skips_empty_documents():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = make_vault(tmpdir, {"A.md": "a\n", "B.md": "   \n\n", "C.md": "c\n"})
        gen = FakeGenerator(graph_responder({("A", "B"): 1.0, ("A", "C"): 0.6}))
        builder = _builder(store, gen, graph_config())

        relations = builder.find_related(store.get("A.md"))

        assert [r.target.name for r in relations] == ["C"]
        assert not any("Target document: B" in p for p in gen.prompts)


def test_find_related_empty_source_returns_nothing():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = make_vault(tmpdir, {"A.md": "\n", "B.md": "b\n"})
        gen = FakeGenerator(graph_responder({}))
        builder = _builder(store, gen, graph_config())

        assert builder.find_related(store.get("A.md")) == []
        assert gen.prompts == []


def test_source_concept_failure_aborts_lookup():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = make_vault(tmpdir, {"A.md": "a\n", "B.md": "b\n", "C.md": "c\n"})
        gen = FakeGenerator(graph_responder({("A", "B"): 0.9}, fail_concepts={"a"}))
        builder = _builder(store, gen, graph_config())

        assert builder.find_related(store.get("A.md")) == []
        assert not any(is_relation_prompt(p) for p in gen.prompts)


def test_target_concept_failure_skips_only_that_candidate():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = make_vault(tmpdir, {"A.md": "a\n", "B.md": "b\n", "C.md": "c\n"})
        scores = {("A", "B"): 0.9, ("A", "C"): 0.8}
        builder = _builder(store, FakeGenerator(graph_responder(scores, fail_concepts={"b"})), graph_config())

        relations = builder.find_related(store.get("A.md"))

        assert [r.target.name for r in relations] == ["C"]


def test_unparseable_relation_is_dropped():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = make_vault(tmpdir, {"A.md": "a\n", "B.md": "b\n", "C.md": "c\n"})
        scores = {("A", "B"): 0.9, ("A", "C"): 0.8}
        gen = FakeGenerator(graph_responder(scores, fail_relations={("A", "B")}))
        builder = _builder(store, gen, graph_config())

        relations = builder.find_related(store.get("A.md"))

        assert [r.target.name for r in relations] == ["C"]


class FlakyStore(VaultDocumentStore):
    """Vault whose reads fail for chosen paths."""

    def __init__(self, vault_path, unreadable=()):
        super().__init__(vault_path)
        self.unreadable = set(unreadable)

    def read_body(self, ref):
        if ref.path in self.unreadable:
            raise DocumentIOError(ref.path, "permission denied")
        return super().read_body(ref)


def test_unreadable_candidate_is_skipped():
    with tempfile.TemporaryDirectory() as tmpdir:
        make_vault(tmpdir, {"A.md": "a\n", "B.md": "b\n", "C.md": "c\n"})
        store = FlakyStore(tmpdir, unreadable={"B.md"})
        scores = {("A", "B"): 0.9, ("A", "C"): 0.8}
        builder = _builder(store, FakeGenerator(graph_responder(scores)), graph_config())

        relations = builder.find_related(store.get("A.md"))

        assert [r.target.name for r in relations] == ["C"]


def test_unreadable_source_raises():
    with tempfile.TemporaryDirectory() as tmpdir:
        make_vault(tmpdir, {"A.md": "a\n", "B.md": "b\n"})
        store = FlakyStore(tmpdir, unreadable={"A.md"})
        builder = _builder(store, FakeGenerator(graph_responder({})), graph_config())

        with pytest.raises(DocumentIOError):
            builder.find_related(store.get("A.md"))


def test_zero_max_links_returns_nothing():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = make_vault(tmpdir, {"A.md": "a\n", "B.md": "b\n"})
        builder = _builder(store, FakeGenerator(graph_responder({("A", "B"): 0.9})), graph_config(max_links=0))

        assert builder.find_related(store.get("A.md")) == []


def test_rank_relations_is_stable():
    a, b, c = (DocumentRef(path=f"{n}.md", name=n) for n in "abc")
    relations = [
        DocumentRelation(a, b, 0.5),
        DocumentRelation(a, c, 0.5),
        DocumentRelation(b, c, 0.9),
    ]
    ranked = rank_relations(relations, 2)
    assert ranked == [relations[2], relations[0]]


def test_build_graph_covers_every_source_and_memoizes_concepts():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = make_vault(tmpdir, {"A.md": "a\n", "B.md": "b\n", "C.md": "c\n", "empty.md": ""})
        scores = {("A", "B"): 0.8, ("B", "A"): 0.6, ("C", "A"): 0.9, ("C", "B"): 0.1}
        gen = FakeGenerator(graph_responder(scores))
        builder = _builder(store, gen, graph_config())

        relations = builder.build_graph()

        assert [(r.source.name, r.target.name) for r in relations] == [("A", "B"), ("B", "A"), ("C", "A")]
        assert sum(1 for p in gen.prompts if is_concept_prompt(p)) == 3
        assert sum(1 for p in gen.prompts if is_relation_prompt(p)) == 6


def test_build_graph_reports_progress():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = make_vault(tmpdir, {"A.md": "a\n", "B.md": "b\n", "C.md": "\n"})
        builder = _builder(store, FakeGenerator(graph_responder({})), graph_config())
        seen = []

        builder.build_graph(progress=lambda done, total, source: seen.append((done, total, source.name)))

        assert seen == [(1, 2, "A"), (2, 2, "B")]


def test_build_graph_skips_failing_source():
    with tempfile.TemporaryDirectory() as tmpdir:
        make_vault(tmpdir, {"A.md": "a\n", "B.md": "b\n", "C.md": "c\n"})
        store = FlakyStore(tmpdir, unreadable={"B.md"})
        scores = {("A", "C"): 0.7, ("C", "A"): 0.7, ("A", "B"): 0.9}
        builder = _builder(store, FakeGenerator(graph_responder(scores)), graph_config())

        relations = builder.build_graph()

        assert [(r.source.name, r.target.name) for r in relations] == [("A", "C"), ("C", "A")]


def test_build_graph_auto_adds_links_once():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = make_vault(tmpdir, {"A.md": "a\n", "B.md": "b\n", "C.md": "c\n"})
        scores = {("A", "B"): 0.8, ("A", "C"): 0.6}
        builder = _builder(store, FakeGenerator(graph_responder(scores)), graph_config(auto_add_links=True))

        builder.build_graph()
        body = store.read_body(store.get("A.md"))

        assert [ref.name for ref in builder.linked_documents] == ["A"]
        assert body == (
            "a\n\n"
            f"{RELATED_SECTION_HEADING}\n"
            "- [[B]] - A and B overlap\n"
            "- [[C]] - A and C overlap\n"
        )
        assert store.read_body(store.get("B.md")) == "b\n"

        builder.build_graph()
        assert store.read_body(store.get("A.md")) == body
        assert builder.linked_documents == []


def test_build_graph_without_auto_links_leaves_documents_alone():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = make_vault(tmpdir, {"A.md": "a\n", "B.md": "b\n"})
        builder = _builder(store, FakeGenerator(graph_responder({("A", "B"): 0.9})), graph_config())

        relations = builder.build_graph()

        assert len(relations) == 1
        assert store.read_body(store.get("A.md")) == "a\n"


def test_build_graph_cancellation_returns_partial_results_without_links():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = make_vault(tmpdir, {"A.md": "a\n", "B.md": "b\n", "C.md": "c\n"})
        scores = {("A", "B"): 0.9, ("B", "A"): 0.9, ("C", "A"): 0.9}
        builder = _builder(store, FakeGenerator(graph_responder(scores)), graph_config(auto_add_links=True))
        cancel = threading.Event()

        relations = builder.build_graph(progress=lambda done, total, source: cancel.set(), cancel=cancel)

        assert [(r.source.name, r.target.name) for r in relations] == [("A", "B")]
        assert builder.linked_documents == []
        assert store.read_body(store.get("A.md")) == "a\n"


def test_cancel_stops_between_comparisons():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = make_vault(tmpdir, {"A.md": "a\n", "B.md": "b\n", "C.md": "c\n"})
        cancel = threading.Event()
        scores = {("A", "B"): 0.9, ("A", "C"): 0.95}
        responder = graph_responder(scores)

        def respond(prompt):
            if is_relation_prompt(prompt):
                cancel.set()
            return responder(prompt)

        gen = FakeGenerator(respond)
        builder = _builder(store, gen, graph_config())

        relations = builder.find_related(store.get("A.md"), cancel=cancel)

        assert [r.target.name for r in relations] == ["B"]
        assert sum(1 for p in gen.prompts if is_relation_prompt(p)) == 1


def test_build_graph_asks_for_failed_concepts_only_once():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = make_vault(tmpdir, {"A.md": "a\n", "B.md": "b\n", "C.md": "c\n"})
        scores = {("A", "C"): 0.7, ("C", "A"): 0.7}
        gen = FakeGenerator(graph_responder(scores, fail_concepts={"b"}))
        builder = _builder(store, gen, graph_config())

        relations = builder.build_graph()

        assert [(r.source.name, r.target.name) for r in relations] == [("A", "C"), ("C", "A")]
        assert sum(1 for p in gen.prompts if is_concept_prompt(p)) == 3
        assert sum(1 for p in gen.prompts if is_relation_prompt(p)) == 2


def test_invalid_graph_settings_raise_config_error():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = make_vault(tmpdir, {"A.md": "a\n", "B.md": "b\n"})
        gen = FakeGenerator(graph_responder({}))
        builder = _builder(store, gen, {"knowledge_graph": {"min_similarity_score": "high"}})

        with pytest.raises(ConfigError):
            builder.find_related(store.get("A.md"))
        with pytest.raises(ConfigError):
            builder.build_graph()
        assert gen.prompts == []
