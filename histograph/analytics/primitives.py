"""Adjacency and degree helpers shared by the analytics."""

from collections import Counter
from typing import Dict, List, Set

import networkx as nx

from ..models import EdgeData, KnowledgeGraph, NodeData


def valid_edges(nodes: List[NodeData], edges: List[EdgeData]) -> List[EdgeData]:
    """Edges whose source and target both exist in ``nodes``."""
    ids = {node.id for node in nodes}
    return [edge for edge in edges if edge.source in ids and edge.target in ids]


def undirected_adjacency(
    nodes: List[NodeData],
    edges: List[EdgeData]
) -> Dict[str, Set[str]]:
    """Neighbor sets ignoring edge direction.

    Every node is a key, isolated nodes map to an empty set. Dangling edges
    and self-loops contribute nothing.
    """
    adjacency: Dict[str, Set[str]] = {node.id: set() for node in nodes}
    for edge in edges:
        if edge.source not in adjacency or edge.target not in adjacency:
            continue
        if edge.is_self_loop:
            continue
        adjacency[edge.source].add(edge.target)
        adjacency[edge.target].add(edge.source)
    return adjacency


def directed_adjacency(
    nodes: List[NodeData],
    edges: List[EdgeData]
) -> Dict[str, Set[str]]:
    """Successor sets following edge direction."""
    adjacency: Dict[str, Set[str]] = {node.id: set() for node in nodes}
    for edge in edges:
        if edge.source not in adjacency or edge.target not in adjacency:
            continue
        if edge.is_self_loop:
            continue
        adjacency[edge.source].add(edge.target)
    return adjacency


def out_degrees(edges: List[EdgeData]) -> Counter:
    """Out-edge count per source id; absent ids count 0."""
    return Counter(edge.source for edge in edges)


def in_degrees(edges: List[EdgeData]) -> Counter:
    return Counter(edge.target for edge in edges)


def to_networkx(graph: KnowledgeGraph) -> nx.MultiDiGraph:
    """Build a networkx multigraph carrying node and edge attributes.

    Dangling edges are skipped. Parallel edges are kept, keyed by edge id.
    """
    g = nx.MultiDiGraph()
    for node in graph.nodes:
        g.add_node(node.id, **node.model_dump(exclude={"id"}, exclude_none=True, mode="json"))

    ids = set(g.nodes)
    for edge in graph.edges:
        if edge.source in ids and edge.target in ids:
            attrs = edge.model_dump(
                exclude={"id", "source", "target"}, exclude_none=True, mode="json"
            )
            g.add_edge(edge.source, edge.target, key=edge.id, **attrs)
    return g
