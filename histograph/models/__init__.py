"""Graph data models."""

from .graph import (
    DERIVED_NODE_FIELDS,
    UNKNOWN_REGION,
    Certainty,
    DuplicateCandidate,
    EdgeData,
    EdgeSign,
    GraphMeta,
    KnowledgeGraph,
    NodeData,
    NodeType,
    RegionalAnalysisResult,
    RegionalBridge,
)

__all__ = [
    "DERIVED_NODE_FIELDS",
    "UNKNOWN_REGION",
    "Certainty",
    "DuplicateCandidate",
    "EdgeData",
    "EdgeSign",
    "GraphMeta",
    "KnowledgeGraph",
    "NodeData",
    "NodeType",
    "RegionalAnalysisResult",
    "RegionalBridge",
]
