"""Tests for the graph data models."""

import pytest
from pydantic import ValidationError

from histograph.models import (
    UNKNOWN_REGION,
    DuplicateCandidate,
    EdgeData,
    KnowledgeGraph,
    NodeData,
    NodeType,
    RegionalAnalysisResult,
    RegionalBridge,
)


class TestNodeData:
    """Test node validation."""

    def test_defaults(self):
        node = NodeData(id="dmowski_roman", label="Roman Dmowski", type="Person")

        assert node.region == UNKNOWN_REGION
        assert node.importance == 0.5
        assert node.has_known_region is False
        assert node.pagerank is None

    def test_type_case_insensitive(self):
        node = NodeData(id="onr", label="ONR", type="organization")
        assert node.type is NodeType.ORGANIZATION

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            NodeData(id="x", label="X", type="Place")

    def test_empty_region_becomes_unknown(self):
        assert NodeData(id="x", label="X", type="Event", region="  ").region == UNKNOWN_REGION

    @pytest.mark.parametrize("importance", [-0.1, 1.5])
    def test_importance_range(self, importance):
        with pytest.raises(ValidationError):
            NodeData(id="x", label="X", type="Person", importance=importance)

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError):
            NodeData(id="", label="X", type="Person")

    def test_camel_case_aliases(self):
        node = NodeData.model_validate(
            {"id": "x", "label": "X", "type": "Concept", "degreeCentrality": 0.5, "kCore": 3}
        )
        assert node.degree_centrality == 0.5
        assert node.to_dict()["kCore"] == 3


class TestEdgeData:
    """Test edge validation."""

    def test_self_loop(self):
        assert EdgeData(id="e", source="a", target="a").is_self_loop
        assert not EdgeData(id="e", source="a", target="b").is_self_loop

    def test_export_drops_none(self):
        data = EdgeData(id="e", source="a", target="b", label="założył").to_dict()
        assert data == {"id": "e", "source": "a", "target": "b", "label": "założył"}

    def test_is_balanced_alias(self):
        edge = EdgeData.model_validate({"id": "e", "source": "a", "target": "b", "isBalanced": False})
        assert edge.is_balanced is False


class TestKnowledgeGraph:
    """Test the graph container."""

    def test_duplicate_node_ids_rejected(self, node_factory):
        with pytest.raises(ValidationError):
            KnowledgeGraph(nodes=[node_factory("a"), node_factory("a")])

    def test_duplicate_edge_ids_rejected(self, node_factory, edge_factory):
        with pytest.raises(ValidationError):
            KnowledgeGraph(
                nodes=[node_factory("a"), node_factory("b")],
                edges=[edge_factory("a", "b", edge_id="e"), edge_factory("b", "a", edge_id="e")],
            )

    def test_lookup(self, triangle_graph):
        assert triangle_graph.node_ids == ["a", "b", "c"]
        assert triangle_graph.get_node("b").id == "b"
        assert triangle_graph.get_node("ghost") is None
        assert set(triangle_graph.node_index()) == {"a", "b", "c"}

    def test_export_shape(self, triangle_graph):
        export = triangle_graph.to_export_dict()

        assert export["nodes"][0] == {
            "data": {"id": "a", "label": "A", "type": "Person", "region": "Unknown", "importance": 0.5}
        }
        assert export["edges"][0]["data"]["source"] == "a"
        assert export["meta"] == {}

    def test_export_round_trip(self, triangle_graph):
        restored = KnowledgeGraph.from_export_dict(triangle_graph.to_export_dict())
        assert restored == triangle_graph

    def test_from_bare_records_with_relationship(self):
        graph = KnowledgeGraph.from_export_dict(
            {
                "nodes": [
                    {"id": "a", "label": "A", "type": "person"},
                    {"data": {"id": "b", "label": "B", "type": "event"}},
                ],
                "edges": [{"id": "e", "source": "a", "target": "b", "relationship": "uczestniczył"}],
                "meta": {"lastSaved": 10},
            }
        )

        assert graph.edges[0].label == "uczestniczył"
        assert graph.meta.last_saved == 10
        assert graph.get_node("b").type is NodeType.EVENT

    def test_missing_sections(self):
        graph = KnowledgeGraph.from_export_dict({})
        assert graph.nodes == []
        assert graph.edges == []


class TestResultModels:
    """Test candidate and regional result models."""

    def test_similarity_range(self, node_factory):
        with pytest.raises(ValidationError):
            DuplicateCandidate(node_a=node_factory("a"), node_b=node_factory("b"), similarity=1.2)

    def test_bridge_limit(self):
        bridges = [RegionalBridge(id=str(i), label=str(i), score=1.0) for i in range(6)]
        with pytest.raises(ValidationError):
            RegionalAnalysisResult(isolation_index=0.5, bridges=bridges)
