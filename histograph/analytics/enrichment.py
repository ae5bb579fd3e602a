"""Recomputes every derived node, edge and graph metric."""

import logging
from typing import Optional

from ..config import AnalyticsConfig
from ..logging_config import Timer, log_performance
from ..models import KnowledgeGraph
from .balance import TriadicBalanceAnalyzer
from .centrality import CentralityAnalyzer
from .community import CommunityDetector
from .primitives import valid_edges

logger = logging.getLogger(__name__)


class GraphEnricher:
    """Turns a raw graph into a fully annotated one.

    Enrichment is the only way derived fields are set. It never fails on
    well-typed input and never mutates the graph it is given.
    """

    def __init__(
        self,
        config: Optional[AnalyticsConfig] = None,
        centrality: Optional[CentralityAnalyzer] = None,
        communities: Optional[CommunityDetector] = None,
        balance: Optional[TriadicBalanceAnalyzer] = None,
    ):
        self.config = config or AnalyticsConfig()
        self.centrality = centrality or CentralityAnalyzer(self.config)
        self.communities = communities or CommunityDetector(self.config)
        self.balance = balance or TriadicBalanceAnalyzer(self.config)

    def enrich(self, graph: KnowledgeGraph) -> KnowledgeGraph:
        """Annotate a graph with centrality, communities, signs and balance.

        Args:
            graph: Raw or previously enriched graph

        Returns:
            A new KnowledgeGraph; edges with a missing endpoint are dropped
        """
        with Timer() as timer:
            edges = valid_edges(graph.nodes, graph.edges)
            dropped = len(graph.edges) - len(edges)
            if dropped:
                logger.info(f"Dropped {dropped} edges with missing endpoints")

            working = KnowledgeGraph(nodes=graph.nodes, edges=edges, meta=graph.meta)

            scores = self.centrality.analyze(working)
            communities = self.communities.detect(working)

            signed_edges = self.balance.assign_signs(edges)
            report = self.balance.evaluate(graph.nodes, signed_edges)

            nodes = [
                node.model_copy(
                    update={
                        "degree_centrality": scores.degree[node.id],
                        "pagerank": scores.pagerank[node.id],
                        "betweenness": scores.betweenness[node.id],
                        "closeness": scores.closeness[node.id],
                        "eigenvector": scores.eigenvector[node.id],
                        "clustering": scores.clustering[node.id],
                        "community": communities[node.id],
                        "k_core": scores.k_core[node.id],
                    }
                )
                for node in graph.nodes
            ]

            enriched_edges = [
                edge.model_copy(
                    update={"is_balanced": edge.id not in report.unbalanced_edge_ids}
                )
                for edge in signed_edges
            ]

            meta = graph.meta.model_copy(
                update={
                    "modularity": self.communities.modularity(working, communities),
                    "global_balance": report.global_balance,
                }
            )

            enriched = KnowledgeGraph(nodes=nodes, edges=enriched_edges, meta=meta)

        log_performance(
            __name__,
            "enrich",
            timer.duration_ms,
            node_count=len(nodes),
            edge_count=len(enriched_edges),
            triangles=report.total_triangles,
        )
        return enriched


def enrich_graph(
    graph: KnowledgeGraph,
    config: Optional[AnalyticsConfig] = None
) -> KnowledgeGraph:
    """Enrich a graph with a default-configured GraphEnricher."""
    return GraphEnricher(config).enrich(graph)
