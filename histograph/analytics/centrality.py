"""Centrality metrics for knowledge graph nodes."""

import logging
import math
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from ..config import AnalyticsConfig
from ..models import EdgeData, KnowledgeGraph, NodeData
from .primitives import (
    directed_adjacency,
    in_degrees,
    out_degrees,
    undirected_adjacency,
    valid_edges,
)

logger = logging.getLogger(__name__)


@dataclass
class CentralityScores:
    """Per-node centrality mappings for one graph."""
    degree: Dict[str, float] = field(default_factory=dict)
    pagerank: Dict[str, float] = field(default_factory=dict)
    betweenness: Dict[str, float] = field(default_factory=dict)
    closeness: Dict[str, float] = field(default_factory=dict)
    eigenvector: Dict[str, float] = field(default_factory=dict)
    clustering: Dict[str, float] = field(default_factory=dict)
    k_core: Dict[str, int] = field(default_factory=dict)


class CentralityAnalyzer:
    """Computes the centrality suite used by enrichment.

    Every metric returns a mapping for each node in the graph. Empty graphs
    give empty mappings and isolated nodes score 0 (PageRank excepted).
    """

    def __init__(self, config: Optional[AnalyticsConfig] = None):
        self.config = config or AnalyticsConfig()

    def analyze(self, graph: KnowledgeGraph) -> CentralityScores:
        """Compute every centrality metric.

        Args:
            graph: Graph to analyze; dangling edges are ignored

        Returns:
            CentralityScores bundling all mappings
        """
        nodes = graph.nodes
        edges = valid_edges(nodes, graph.edges)

        degree = self.calculate_degree_centrality(nodes, edges)
        pagerank = self.calculate_pagerank(nodes, edges)

        scores = CentralityScores(
            degree=degree,
            pagerank=pagerank,
            betweenness=self.calculate_betweenness_centrality(nodes, edges),
            closeness=self.calculate_closeness_centrality(nodes, edges),
            # PageRank stands in for eigenvector centrality
            eigenvector=dict(pagerank),
            clustering=self.calculate_clustering(nodes, edges),
            k_core=self.calculate_k_core(degree),
        )

        logger.debug(f"Computed centrality for {len(nodes)} nodes, {len(edges)} edges")
        return scores

    def calculate_degree_centrality(
        self,
        nodes: List[NodeData],
        edges: List[EdgeData]
    ) -> Dict[str, float]:
        """Incident edge count normalized by the maximum degree."""
        edges = valid_edges(nodes, edges)
        outgoing = out_degrees(edges)
        incoming = in_degrees(edges)
        degree = {node.id: outgoing[node.id] + incoming[node.id] for node in nodes}

        max_degree = max(max(degree.values(), default=0), 1)
        return {node_id: count / max_degree for node_id, count in degree.items()}

    def calculate_pagerank(
        self,
        nodes: List[NodeData],
        edges: List[EdgeData]
    ) -> Dict[str, float]:
        """Power-iteration PageRank.

        Rank held by nodes without out-edges is spread evenly over all nodes
        each round, so the ranks always sum to 1.
        The textbook update instead drops terms for sources with no out-edges;
        that variant leaks rank and would not give a lone node a score of 1.0.
        """
        n = len(nodes)
        if n == 0:
            return {}

        damping = self.config.pagerank_damping
        ids = {node.id for node in nodes}
        edges = [e for e in edges if e.source in ids and e.target in ids]

        out_degree = out_degrees(edges)
        incoming = defaultdict(list)
        for edge in edges:
            incoming[edge.target].append(edge.source)

        ranks = {node.id: 1.0 / n for node in nodes}

        for _ in range(self.config.pagerank_iterations):
            dangling = sum(rank for node_id, rank in ranks.items() if out_degree[node_id] == 0)
            base = (1 - damping) / n + damping * dangling / n

            new_ranks = {}
            for node in nodes:
                incoming_sum = sum(
                    ranks[source] / out_degree[source] for source in incoming[node.id]
                )
                new_ranks[node.id] = base + damping * incoming_sum
            ranks = new_ranks

        return ranks

    def calculate_betweenness_centrality(
        self,
        nodes: List[NodeData],
        edges: List[EdgeData]
    ) -> Dict[str, float]:
        """Brandes betweenness over the directed graph.

        Normalized by ``(N-1)(N-2)``; graphs with fewer than three nodes
        score 0 everywhere.
        """
        node_ids = [node.id for node in nodes]
        n = len(node_ids)
        betweenness = {node_id: 0.0 for node_id in node_ids}
        if n < 3:
            return betweenness

        adjacency = directed_adjacency(nodes, edges)

        for source in node_ids:
            stack = []
            pred = defaultdict(list)
            sigma = defaultdict(int)
            sigma[source] = 1
            dist = {source: 0}
            queue = deque([source])

            while queue:
                v = queue.popleft()
                stack.append(v)

                for w in adjacency[v]:
                    if w not in dist:
                        dist[w] = dist[v] + 1
                        queue.append(w)

                    if dist[w] == dist[v] + 1:
                        sigma[w] += sigma[v]
                        pred[w].append(v)

            delta = defaultdict(float)
            while stack:
                w = stack.pop()
                for v in pred[w]:
                    delta[v] += (sigma[v] / sigma[w]) * (1 + delta[w])
                if w != source:
                    betweenness[w] += delta[w]

        norm = 1.0 / ((n - 1) * (n - 2))
        return {node_id: score * norm for node_id, score in betweenness.items()}

    def calculate_closeness_centrality(
        self,
        nodes: List[NodeData],
        edges: List[EdgeData]
    ) -> Dict[str, float]:
        """Inverse of the summed distance to every reachable node."""
        adjacency = directed_adjacency(nodes, edges)
        closeness = {}

        for node in nodes:
            distances = self._bfs_distances(node.id, adjacency)
            total_distance = sum(distances.values())
            closeness[node.id] = 1.0 / total_distance if total_distance > 0 else 0.0

        return closeness

    def calculate_clustering(
        self,
        nodes: List[NodeData],
        edges: List[EdgeData]
    ) -> Dict[str, float]:
        """Local clustering coefficient over the undirected view."""
        adjacency = undirected_adjacency(nodes, edges)
        clustering = {}

        for node_id, neighbors in adjacency.items():
            k = len(neighbors)
            if k < 2:
                clustering[node_id] = 0.0
                continue

            neighbor_list = list(neighbors)
            links = 0
            for i, u in enumerate(neighbor_list):
                for w in neighbor_list[i + 1:]:
                    if w in adjacency[u]:
                        links += 1
            clustering[node_id] = 2.0 * links / (k * (k - 1))

        return clustering

    def calculate_k_core(self, degree: Dict[str, float]) -> Dict[str, int]:
        """Coarse core estimate: ``floor(degree_centrality * 10)``."""
        return {node_id: math.floor(score * 10) for node_id, score in degree.items()}

    def _bfs_distances(self, source: str, adjacency: Dict[str, Set[str]]) -> Dict[str, int]:
        """Hop distances from source to every other reachable node."""
        distances = {source: 0}
        queue = deque([source])

        while queue:
            node = queue.popleft()
            for neighbor in adjacency[node]:
                if neighbor not in distances:
                    distances[neighbor] = distances[node] + 1
                    queue.append(neighbor)

        del distances[source]
        return distances
