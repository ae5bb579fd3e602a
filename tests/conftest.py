"""Shared fixtures for histograph tests."""

import pytest
from unittest.mock import AsyncMock
from typing import Any, Dict, List, Optional

from histograph.models import EdgeData, KnowledgeGraph, NodeData


def make_node(node_id: str, **fields: Any) -> NodeData:
    """Node with sensible defaults for tests."""
    data = {"id": node_id, "label": node_id.replace("_", " ").title(), "type": "Person"}
    data.update(fields)
    return NodeData(**data)


def make_edge(source: str, target: str, edge_id: Optional[str] = None, **fields: Any) -> EdgeData:
    return EdgeData(id=edge_id or f"{source}->{target}", source=source, target=target, **fields)


def make_graph(node_ids: List[str], pairs: List[tuple], **node_fields: Dict[str, Any]) -> KnowledgeGraph:
    """Graph from node ids and (source, target[, label]) tuples."""
    nodes = [make_node(node_id, **node_fields.get(node_id, {})) for node_id in node_ids]
    edges = []
    for i, pair in enumerate(pairs):
        label = pair[2] if len(pair) > 2 else ""
        edges.append(make_edge(pair[0], pair[1], edge_id=f"e{i}", label=label))
    return KnowledgeGraph(nodes=nodes, edges=edges)


@pytest.fixture
def node_factory():
    return make_node


@pytest.fixture
def edge_factory():
    return make_edge


@pytest.fixture
def graph_factory():
    return make_graph


@pytest.fixture
def empty_graph():
    return KnowledgeGraph()


@pytest.fixture
def triangle_graph():
    """Three mutually connected people."""
    return make_graph(["a", "b", "c"], [("a", "b"), ("b", "c"), ("c", "a")])


@pytest.fixture
def regional_graph():
    """Two regions joined by a single bridge edge."""
    return make_graph(
        ["seyda", "korfanty", "dmowski", "poplawski", "anon"],
        [
            ("seyda", "korfanty"),
            ("dmowski", "poplawski"),
            ("seyda", "dmowski"),
            ("anon", "dmowski"),
        ],
        seyda={"region": "Wielkopolska", "importance": 0.9},
        korfanty={"region": "Wielkopolska", "importance": 0.8},
        dmowski={"region": "Warszawa", "importance": 1.0},
        poplawski={"region": "Warszawa", "importance": 0.9},
    )


@pytest.fixture
def mock_embedding_provider():
    """Embedding provider returning the same vector for every text."""
    provider = AsyncMock()
    provider.embed = AsyncMock(return_value=[1.0, 0.0])
    return provider


@pytest.fixture
def mock_expansion_provider():
    provider = AsyncMock()
    provider.propose = AsyncMock(return_value={"newNodes": [], "newEdges": []})
    return provider


@pytest.fixture
def mock_snapshot_store():
    """Store that echoes saved graphs back as snapshots."""
    from histograph.interfaces import GraphSnapshot

    store = AsyncMock()
    store.load = AsyncMock(return_value=None)

    async def save(graph):
        stamped = graph.model_copy(
            update={"meta": graph.meta.model_copy(update={"last_saved": 1700000000000})}
        )
        return GraphSnapshot(graph=stamped, saved_at=1700000000000)

    store.save = AsyncMock(side_effect=save)
    return store
