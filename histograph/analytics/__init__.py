"""Deterministic graph analytics."""

from .balance import BalanceReport, TriadicBalanceAnalyzer
from .centrality import CentralityAnalyzer, CentralityScores
from .community import CommunityDetector
from .enrichment import GraphEnricher, enrich_graph
from .regional import RegionalAnalyzer
from .similarity import cosine_similarity, edit_distance, lexical_similarity
from .summary import GraphSummary, summarize_graph

__all__ = [
    "BalanceReport",
    "TriadicBalanceAnalyzer",
    "CentralityAnalyzer",
    "CentralityScores",
    "CommunityDetector",
    "GraphEnricher",
    "enrich_graph",
    "RegionalAnalyzer",
    "cosine_similarity",
    "edit_distance",
    "lexical_similarity",
    "GraphSummary",
    "summarize_graph",
]
