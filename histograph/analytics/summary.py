"""Compact statistics describing a graph."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import networkx as nx

from ..models import KnowledgeGraph
from .primitives import to_networkx, valid_edges


@dataclass
class GraphSummary:
    """Size, density and headline metrics of a graph."""
    node_count: int
    edge_count: int
    density: float
    average_degree: float
    component_count: int
    modularity: Optional[float] = None
    global_balance: Optional[float] = None
    top_nodes: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_count": self.node_count,
            "edge_count": self.edge_count,
            "density": self.density,
            "average_degree": self.average_degree,
            "component_count": self.component_count,
            "modularity": self.modularity,
            "global_balance": self.global_balance,
            "top_nodes": self.top_nodes,
        }


def summarize_graph(graph: KnowledgeGraph, top_k: int = 5) -> GraphSummary:
    """Summarize a graph.

    Args:
        graph: Graph to summarize, enriched or raw
        top_k: Number of highest-PageRank nodes to list

    Returns:
        GraphSummary; top_nodes is empty for a raw graph
    """
    n = len(graph.nodes)
    e = len(valid_edges(graph.nodes, graph.edges))

    density = 2 * e / (n * (n - 1)) if n >= 2 else 0.0
    average_degree = 2 * e / n if n > 0 else 0.0
    components = nx.number_weakly_connected_components(to_networkx(graph)) if n else 0

    ranked = sorted(
        (node for node in graph.nodes if node.pagerank is not None),
        key=lambda node: node.pagerank,
        reverse=True,
    )
    top_nodes = [
        {
            "id": node.id,
            "label": node.label,
            "type": node.type.value,
            "pagerank": node.pagerank,
            "community": node.community,
        }
        for node in ranked[:top_k]
    ]

    return GraphSummary(
        node_count=n,
        edge_count=e,
        density=density,
        average_degree=average_degree,
        component_count=components,
        modularity=graph.meta.modularity,
        global_balance=graph.meta.global_balance,
        top_nodes=top_nodes,
    )
