"""Tests for expansion normalization and the expansion service."""

import json
import re
from unittest.mock import AsyncMock

import pytest

from histograph.errors import ExpansionError
from histograph.expansion import (
    ExpansionService,
    normalize_raw_edge,
    normalize_raw_node,
    parse_proposal_payload,
    summarize_for_expansion,
)
from histograph.models import UNKNOWN_REGION, NodeType


class TestNormalizeRawNode:
    """Test node record normalization."""

    def test_year_from_dates(self):
        node = normalize_raw_node(
            {"id": "dmowski", "label": "Roman Dmowski", "type": "person", "dates": "1864-1939"}
        )
        assert node.year == 1864
        assert node.type is NodeType.PERSON
        assert node.importance == 0.5
        assert node.region == UNKNOWN_REGION

    def test_year_field_fallback(self):
        node = normalize_raw_node(
            {"id": "x", "label": "X", "type": "Event", "dates": "ca. XIX w.", "year": "1905"}
        )
        assert node.year == 1905

    def test_no_year(self):
        assert normalize_raw_node({"id": "x", "label": "X", "type": "Concept"}).year is None

    def test_derived_fields_dropped(self):
        node = normalize_raw_node(
            {
                "id": "x", "label": "X", "type": "Concept",
                "pagerank": 0.9, "degreeCentrality": 1.0, "k_core": 4,
            }
        )
        assert node.pagerank is None
        assert node.degree_centrality is None
        assert node.k_core is None

    def test_invalid_record(self):
        with pytest.raises(ValueError):
            normalize_raw_node({"id": "x", "label": "X", "type": "Dragon"})
        with pytest.raises(ValueError):
            normalize_raw_node("not a dict")


class TestNormalizeRawEdge:
    """Test edge record normalization."""

    def test_relationship_becomes_label(self):
        edge = normalize_raw_edge(
            {"id": "e1", "source": "a", "target": "b", "relationship": "współzałożył"}
        )
        assert edge.label == "współzałożył"

    def test_id_generated(self):
        edge = normalize_raw_edge({"source": "a", "target": "b", "label": "knew"})
        assert re.fullmatch(r"edge_[0-9a-f]{32}", edge.id)
        assert edge.label == "knew"

    def test_balance_flag_stripped(self):
        edge = normalize_raw_edge({"id": "e", "source": "a", "target": "b", "isBalanced": False})
        assert edge.is_balanced is None

    def test_missing_endpoint(self):
        with pytest.raises(ValueError):
            normalize_raw_edge({"id": "e", "source": "a"})


class TestParseProposalPayload:
    """Test provider response decoding."""

    def test_dict_passthrough(self):
        payload = {"newNodes": []}
        assert parse_proposal_payload(payload) is payload

    def test_fenced_json(self):
        text = '```json\n{"thoughtProcess": "ok", "newNodes": []}\n```'
        assert parse_proposal_payload(text)["thoughtProcess"] == "ok"

    def test_plain_json(self):
        assert parse_proposal_payload('{"a": 1}') == {"a": 1}

    def test_invalid_json(self):
        with pytest.raises(ExpansionError, match="Invalid JSON"):
            parse_proposal_payload("I cannot help with that")

    def test_non_object(self):
        with pytest.raises(ExpansionError):
            parse_proposal_payload("[1, 2]")


class TestSummarizeForExpansion:
    """Test the provider context summary."""

    def test_counts_and_labels(self, triangle_graph):
        summary = summarize_for_expansion(triangle_graph)
        assert summary == "Graph has 3 nodes and 3 edges. Current nodes: A, B, C"

    def test_truncated(self, triangle_graph):
        assert summarize_for_expansion(triangle_graph, limit=2).endswith("A, B...")

    def test_empty(self, empty_graph):
        assert summarize_for_expansion(empty_graph) == "Graph has 0 nodes and 0 edges."


class TestExpansionService:
    """Test the expansion round trip."""

    @pytest.mark.asyncio
    async def test_expand(self, triangle_graph, mock_expansion_provider):
        mock_expansion_provider.propose.return_value = json.dumps(
            {
                "thoughtProcess": "Poznań cluster",
                "newNodes": [
                    {"id": "seyda", "label": "Marian Seyda", "type": "person", "dates": "1879-1967"}
                ],
                "newEdges": [{"source": "seyda", "target": "a", "relationship": "współpracował"}],
            }
        )

        proposal = await ExpansionService(mock_expansion_provider).expand(triangle_graph, "Poznań")

        assert proposal.query == "Poznań"
        assert proposal.thought_process == "Poznań cluster"
        assert proposal.nodes[0].year == 1879
        assert proposal.edges[0].label == "współpracował"

        summary, query = mock_expansion_provider.propose.await_args.args
        assert summary.startswith("Graph has 3 nodes")
        assert query == "Poznań"

    @pytest.mark.asyncio
    async def test_plain_keys_accepted(self, empty_graph, mock_expansion_provider):
        mock_expansion_provider.propose.return_value = {
            "nodes": [{"id": "x", "label": "X", "type": "Event"}],
            "edges": [],
        }
        proposal = await ExpansionService(mock_expansion_provider).expand(empty_graph, "q")
        assert [node.id for node in proposal.nodes] == ["x"]

    @pytest.mark.asyncio
    async def test_provider_failure(self, empty_graph):
        provider = AsyncMock()
        provider.propose = AsyncMock(side_effect=TimeoutError("slow"))

        with pytest.raises(ExpansionError) as exc_info:
            await ExpansionService(provider).expand(empty_graph, "Sanacja")

        assert exc_info.value.message == "expansion failed"
        assert exc_info.value.query == "Sanacja"
        assert isinstance(exc_info.value.cause, TimeoutError)

    @pytest.mark.asyncio
    async def test_invalid_json_response(self, empty_graph, mock_expansion_provider):
        mock_expansion_provider.propose.return_value = "not json"

        with pytest.raises(ExpansionError) as exc_info:
            await ExpansionService(mock_expansion_provider).expand(empty_graph, "q")
        assert exc_info.value.query == "q"

    @pytest.mark.asyncio
    async def test_invalid_record(self, empty_graph, mock_expansion_provider):
        mock_expansion_provider.propose.return_value = {
            "newNodes": [{"id": "x", "label": "X", "type": "Dragon"}]
        }
        with pytest.raises(ExpansionError):
            await ExpansionService(mock_expansion_provider).expand(empty_graph, "q")

    @pytest.mark.asyncio
    async def test_records_must_be_lists(self, empty_graph, mock_expansion_provider):
        mock_expansion_provider.propose.return_value = {"newNodes": {"id": "x"}}
        with pytest.raises(ExpansionError):
            await ExpansionService(mock_expansion_provider).expand(empty_graph, "q")
