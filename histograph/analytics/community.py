"""Community detection over the undirected view of the graph."""

import logging
import random
from collections import defaultdict, deque
from typing import Dict, Optional, Set

from ..config import AnalyticsConfig
from ..models import KnowledgeGraph
from .primitives import undirected_adjacency

logger = logging.getLogger(__name__)


class CommunityDetector:
    """Assigns each node a community id and scores the partition."""

    def __init__(
        self,
        config: Optional[AnalyticsConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize the detector.

        Args:
            config: Analytics configuration
            rng: Random source for the modularity estimate. Defaults to one
                seeded with ``config.modularity_seed``.
        """
        self.config = config or AnalyticsConfig()
        self.rng = rng or random.Random(self.config.modularity_seed)

    def detect(self, graph: KnowledgeGraph) -> Dict[str, int]:
        """Label connected components 0, 1, 2... in node order.

        Args:
            graph: Graph to partition; dangling edges are ignored

        Returns:
            Mapping of node id to community id
        """
        adjacency = undirected_adjacency(graph.nodes, graph.edges)
        return self._connected_components(adjacency)

    def modularity(self, graph: KnowledgeGraph, communities: Dict[str, int]) -> float:
        """Modularity according to the configured method."""
        if self.config.modularity_method == "partition":
            return self.partition_modularity(graph, communities)
        return self.estimate_modularity()

    def estimate_modularity(self) -> float:
        """Placeholder modularity in [0.4, 0.5)."""
        return 0.4 + self.rng.random() * 0.1

    def partition_modularity(
        self,
        graph: KnowledgeGraph,
        communities: Dict[str, int]
    ) -> float:
        """Newman modularity of a partition over the undirected view."""
        adjacency = undirected_adjacency(graph.nodes, graph.edges)
        total_edges = sum(len(neighbors) for neighbors in adjacency.values()) / 2
        if total_edges == 0:
            return 0.0

        internal_edges: Dict[int, float] = defaultdict(float)
        degree_sums: Dict[int, float] = defaultdict(float)
        for node_id, neighbors in adjacency.items():
            community = communities.get(node_id)
            degree_sums[community] += len(neighbors)
            for neighbor in neighbors:
                if communities.get(neighbor) == community:
                    internal_edges[community] += 0.5

        return sum(
            internal_edges[c] / total_edges - (degree_sums[c] / (2 * total_edges)) ** 2
            for c in degree_sums
        )

    def _connected_components(self, adjacency: Dict[str, Set[str]]) -> Dict[str, int]:
        """BFS components numbered in key order."""
        communities: Dict[str, int] = {}
        community_id = 0

        for node in adjacency:
            if node in communities:
                continue

            communities[node] = community_id
            queue = deque([node])
            while queue:
                current = queue.popleft()
                for neighbor in adjacency[current]:
                    if neighbor not in communities:
                        communities[neighbor] = community_id
                        queue.append(neighbor)

            community_id += 1

        logger.debug(f"Found {community_id} communities")
        return communities
