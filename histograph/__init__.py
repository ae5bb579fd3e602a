"""Histograph: analytics, enrichment and deduplication for historical knowledge graphs."""

__version__ = "0.1.0"

from .analytics import (
    CentralityAnalyzer,
    CommunityDetector,
    GraphEnricher,
    RegionalAnalyzer,
    TriadicBalanceAnalyzer,
    enrich_graph,
    summarize_graph,
)
from .config import ConfigManager, HistographConfig
from .deduplication import DuplicateDetector, MergeExecutor
from .errors import (
    BaseGraphError,
    ConfigurationError,
    EmbeddingError,
    ExpansionError,
    GraphValidationError,
    SnapshotError,
)
from .expansion import ExpansionService
from .interfaces import GraphSnapshot, IEmbeddingProvider, IExpansionProvider, ISnapshotStore
from .models import (
    DuplicateCandidate,
    EdgeData,
    GraphMeta,
    KnowledgeGraph,
    NodeData,
    NodeType,
    RegionalAnalysisResult,
)
from .session import GraphSession
from .storage import JsonSnapshotStore

__all__ = [
    "CentralityAnalyzer",
    "CommunityDetector",
    "GraphEnricher",
    "RegionalAnalyzer",
    "TriadicBalanceAnalyzer",
    "enrich_graph",
    "summarize_graph",
    "ConfigManager",
    "HistographConfig",
    "DuplicateDetector",
    "MergeExecutor",
    "BaseGraphError",
    "ConfigurationError",
    "EmbeddingError",
    "ExpansionError",
    "GraphValidationError",
    "SnapshotError",
    "ExpansionService",
    "GraphSnapshot",
    "IEmbeddingProvider",
    "IExpansionProvider",
    "ISnapshotStore",
    "DuplicateCandidate",
    "EdgeData",
    "GraphMeta",
    "KnowledgeGraph",
    "NodeData",
    "NodeType",
    "RegionalAnalysisResult",
    "GraphSession",
    "JsonSnapshotStore",
]
