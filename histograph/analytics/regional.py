"""Regional assortativity and cross-region bridge nodes."""

import logging
from collections import Counter
from typing import Dict

from ..models import (
    UNKNOWN_REGION,
    KnowledgeGraph,
    NodeData,
    RegionalAnalysisResult,
    RegionalBridge,
)
from .primitives import valid_edges

logger = logging.getLogger(__name__)

MAX_BRIDGES = 5


class RegionalAnalyzer:
    """Measures how strongly edges stay within a region."""

    def __init__(self, max_bridges: int = MAX_BRIDGES):
        self.max_bridges = max_bridges

    def analyze(self, graph: KnowledgeGraph) -> RegionalAnalysisResult:
        """Compute the isolation index, top bridges and dominant region.

        Only nodes with a known region take part. Bridges are ranked by
        score descending, ties keep node order.

        Args:
            graph: Graph to analyze

        Returns:
            RegionalAnalysisResult
        """
        index = graph.node_index()
        edges = valid_edges(graph.nodes, graph.edges)

        same_region = 0
        total = 0
        for edge in edges:
            source = index[edge.source]
            target = index[edge.target]
            if source.has_known_region and target.has_known_region:
                total += 1
                if source.region == target.region:
                    same_region += 1

        isolation_index = same_region / total if total > 0 else 0.0

        scores = self._bridge_scores(graph, index)
        ranked = sorted(
            (node for node in graph.nodes if node.id in scores),
            key=lambda node: scores[node.id],
            reverse=True,
        )
        bridges = [
            RegionalBridge(id=node.id, label=node.label or node.id, score=scores[node.id])
            for node in ranked[:self.max_bridges]
        ]

        result = RegionalAnalysisResult(
            isolation_index=isolation_index,
            bridges=bridges,
            dominant_region=self.dominant_region(graph),
        )
        logger.debug(
            f"Regional analysis: isolation={isolation_index:.3f}, "
            f"{len(bridges)} bridges, dominant={result.dominant_region}"
        )
        return result

    def dominant_region(self, graph: KnowledgeGraph) -> str:
        """Most common known region; ties go to the first seen."""
        counts = Counter(node.region for node in graph.nodes if node.has_known_region)
        if not counts:
            return UNKNOWN_REGION
        # Counter preserves insertion order, so max() keeps the first seen on ties
        return max(counts, key=lambda region: counts[region])

    def _bridge_scores(
        self,
        graph: KnowledgeGraph,
        index: Dict[str, NodeData]
    ) -> Dict[str, float]:
        """Cross-region incident edge count times importance."""
        cross_counts = {node.id: 0 for node in graph.nodes if node.has_known_region}

        for edge in valid_edges(graph.nodes, graph.edges):
            source = index[edge.source]
            target = index[edge.target]
            if not (source.has_known_region and target.has_known_region):
                continue
            if source.region == target.region:
                continue
            cross_counts[source.id] += 1
            cross_counts[target.id] += 1

        return {
            node_id: count * index[node_id].importance
            for node_id, count in cross_counts.items()
        }
