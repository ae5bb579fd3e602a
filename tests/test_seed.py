"""Tests for the bundled seed dataset."""

from histograph.analytics import RegionalAnalyzer, enrich_graph
from histograph.models import EdgeSign, NodeType
from histograph.seed import build_graph, load_seed_graph, load_seed_payload


class TestSeedDataset:
    """Test loading the National Democracy dataset."""

    def test_payload_shape(self):
        payload = load_seed_payload()
        assert len(payload["nodes"]) == 25
        assert len(payload["edges"]) == 23

    def test_graph_normalized(self):
        graph = load_seed_graph()

        dmowski = graph.get_node("dmowski_roman")
        assert dmowski.type is NodeType.PERSON
        assert dmowski.year is not None
        assert graph.edges[0].id == "edge_0_seyda_marian_kurier_poznanski"
        assert graph.edges[0].label == "redaktor naczelny"

    def test_every_edge_resolves(self):
        graph = load_seed_graph()
        ids = set(graph.node_ids)
        assert all(edge.source in ids and edge.target in ids for edge in graph.edges)

    def test_enriched_seed(self):
        enriched = enrich_graph(load_seed_graph())

        negative = [edge for edge in enriched.edges if edge.sign == EdgeSign.NEGATIVE]
        assert len(negative) == 3
        assert 0.0 <= enriched.meta.global_balance <= 1.0

    def test_regional_profile(self):
        result = RegionalAnalyzer().analyze(load_seed_graph())
        assert result.dominant_region == "Warszawa"
        assert 0 < len(result.bridges) <= 5


class TestBuildGraph:
    """Test building graphs from raw records."""

    def test_explicit_edge_ids_kept(self):
        graph = build_graph(
            {
                "nodes": [
                    {"id": "a", "label": "A", "type": "person"},
                    {"id": "b", "label": "B", "type": "event"},
                ],
                "edges": [
                    {"id": "custom", "source": "a", "target": "b"},
                    {"source": "b", "target": "a"},
                ],
            }
        )
        assert [edge.id for edge in graph.edges] == ["custom", "edge_1_b_a"]
        assert graph.meta.modularity is None
