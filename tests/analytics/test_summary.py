"""Tests for graph summaries."""

import pytest

from histograph.analytics import enrich_graph, summarize_graph


class TestSummarizeGraph:
    """Test summary statistics."""

    def test_raw_triangle(self, triangle_graph):
        summary = summarize_graph(triangle_graph)

        assert summary.node_count == 3
        assert summary.edge_count == 3
        assert summary.density == pytest.approx(1.0)
        assert summary.average_degree == pytest.approx(2.0)
        assert summary.component_count == 1
        assert summary.modularity is None
        assert summary.top_nodes == []

    def test_empty_graph(self, empty_graph):
        summary = summarize_graph(empty_graph)

        assert summary.node_count == 0
        assert summary.density == 0.0
        assert summary.average_degree == 0.0
        assert summary.component_count == 0

    def test_components_and_dangling(self, graph_factory):
        graph = graph_factory(["a", "b", "c"], [("a", "b"), ("c", "ghost")])
        summary = summarize_graph(graph)

        assert summary.edge_count == 1
        assert summary.component_count == 2

    def test_enriched_top_nodes(self, graph_factory):
        graph = graph_factory(
            ["a", "b", "c", "d"], [("a", "c"), ("b", "c"), ("d", "c")]
        )
        summary = summarize_graph(enrich_graph(graph), top_k=2)

        assert len(summary.top_nodes) == 2
        assert summary.top_nodes[0]["id"] == "c"
        assert summary.top_nodes[0]["type"] == "Person"
        assert summary.modularity is not None
        assert summary.global_balance == 1.0

    def test_to_dict(self, triangle_graph):
        data = summarize_graph(triangle_graph).to_dict()
        assert data["node_count"] == 3
        assert set(data) >= {"density", "average_degree", "component_count", "top_nodes"}
