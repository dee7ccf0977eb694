"""Tests for papergraph.graph — node/link graph from similarity results."""

import pytest


def _results(similarity_map):
    from papergraph.results import to_persisted

    return to_persisted(similarity_map)


class TestBuildGraph:
    def test_nodes_in_input_order(self, similarity_map):
        from papergraph.graph import build_graph

        graph = build_graph(_results(similarity_map), max_nodes=10)
        assert graph["nodes"] == [
            {"id": "a1", "label": "A"},
            {"id": "a2", "label": "B"},
            {"id": "a3", "label": "C"},
        ]

    def test_no_self_links(self, similarity_map):
        from papergraph.graph import build_graph

        graph = build_graph(_results(similarity_map), max_nodes=10)
        assert all(l["source"] != l["target"] for l in graph["links"])

    def test_dangling_links_dropped(self, similarity_map):
        from papergraph.graph import build_graph

        graph = build_graph(_results(similarity_map), max_nodes=10)
        node_ids = {n["id"] for n in graph["nodes"]}
        assert all(l["target"] in node_ids for l in graph["links"])
        assert "z9" not in {l["target"] for l in graph["links"]}

    def test_links_in_production_order(self, similarity_map):
        from papergraph.graph import build_graph

        graph = build_graph(_results(similarity_map), max_nodes=10)
        assert graph["links"] == [
            {"source": "a1", "target": "a3"},
            {"source": "a1", "target": "a2"},
            {"source": "a2", "target": "a1"},
            {"source": "a3", "target": "a1"},
            {"source": "a3", "target": "a2"},
        ]

    def test_truncates_to_max_nodes(self, similarity_map):
        from papergraph.graph import build_graph

        graph = build_graph(_results(similarity_map), max_nodes=2)
        assert [n["id"] for n in graph["nodes"]] == ["a1", "a2"]
        assert graph["links"] == [
            {"source": "a1", "target": "a2"},
            {"source": "a2", "target": "a1"},
        ]

    def test_duplicate_entries_make_one_node(self):
        from papergraph.graph import build_graph
        from papergraph.models import PaperRef, PersistedResult

        b = PaperRef("2", "B", "a2")
        a = PaperRef("1", "A", "a1")
        results = [
            PersistedResult("a1", "A", (b,), "1"),
            PersistedResult("a2", "B", (a,), "2"),
            PersistedResult("a1", "A (v2)", (b,), "1"),
        ]
        graph = build_graph(results, max_nodes=10)
        assert graph["nodes"] == [{"id": "a1", "label": "A"}, {"id": "a2", "label": "B"}]
        assert len(graph["links"]) == 3

    def test_empty_results(self):
        from papergraph.graph import build_graph

        assert build_graph([], max_nodes=5) == {"nodes": [], "links": []}

    def test_rejects_non_positive_max_nodes(self, similarity_map):
        from papergraph.graph import build_graph

        with pytest.raises(ValueError):
            build_graph(_results(similarity_map), max_nodes=0)


class TestGraphFromFile:
    def test_persist_load_build(self, tmp_path, similarity_map):
        from papergraph.graph import graph_from_file
        from papergraph.results import persist

        path = tmp_path / "results.json"
        persist(similarity_map, path)
        graph = graph_from_file(path, max_nodes=2)

        assert len(graph["nodes"]) == 2
        ids = {n["id"] for n in graph["nodes"]}
        for link in graph["links"]:
            assert link["source"] in ids
            assert link["target"] in ids

    def test_missing_file(self, tmp_path):
        from papergraph.errors import ResultsUnavailable
        from papergraph.graph import graph_from_file

        with pytest.raises(ResultsUnavailable):
            graph_from_file(tmp_path / "missing.json")
