"""Duplicate detection and merge resolution."""

from .detector import DuplicateDetector, embedding_text
from .embedding_cache import EmbeddingCache
from .merge_proposals import MergeExecutor, MergeProposal, MergeResult

__all__ = [
    "DuplicateDetector",
    "embedding_text",
    "EmbeddingCache",
    "MergeExecutor",
    "MergeProposal",
    "MergeResult",
]
