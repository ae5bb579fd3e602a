"""
Duplicate Detection

Finds pairs of same-type nodes that probably describe the same historical
entity, either by label spelling or by embedding similarity.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from ..analytics.similarity import cosine_similarity, lexical_similarity
from ..config import DeduplicationConfig
from ..errors import EmbeddingError
from ..interfaces import IEmbeddingProvider
from ..models import DuplicateCandidate, KnowledgeGraph, NodeData
from .embedding_cache import EmbeddingCache

logger = logging.getLogger(__name__)

LEXICAL_REASON = "String similarity"


class DuplicateDetector:
    """
    Lexical and semantic duplicate detection.

    The lexical scan compares every same-type pair, so it is quadratic in
    the node count. The semantic scan only looks at the first
    ``semantic_node_limit`` nodes to bound embedding calls.
    """

    def __init__(
        self,
        config: Optional[DeduplicationConfig] = None,
        embedding_provider: Optional[IEmbeddingProvider] = None,
        cache: Optional[EmbeddingCache] = None,
    ):
        """Initialize the detector.

        Args:
            config: Thresholds and embedding settings
            embedding_provider: Collaborator used by detect_semantic
            cache: Embedding cache; one is created per detector by default
        """
        self.config = config or DeduplicationConfig()
        self.embedding_provider = embedding_provider
        self.cache = cache or EmbeddingCache(self.config.embedding_cache_size)

        self.stats = {
            "lexical_runs": 0,
            "semantic_runs": 0,
            "embedding_calls": 0,
            "failed_embeddings": 0,
            "candidates_found": 0,
        }

    def detect_lexical(
        self,
        graph: KnowledgeGraph,
        threshold: Optional[float] = None
    ) -> List[DuplicateCandidate]:
        """Compare labels of every same-type node pair.

        Args:
            graph: Graph to scan
            threshold: Minimum similarity; defaults to the configured 0.7

        Returns:
            Candidates sorted by similarity, highest first
        """
        threshold = self.config.lexical_threshold if threshold is None else threshold
        nodes = graph.nodes
        candidates = []

        for i, node_a in enumerate(nodes):
            for node_b in nodes[i + 1:]:
                if node_a.type != node_b.type:
                    continue
                similarity = lexical_similarity(node_a.label, node_b.label)
                if similarity >= threshold:
                    candidates.append(
                        DuplicateCandidate(
                            node_a=node_a,
                            node_b=node_b,
                            similarity=similarity,
                            reason=LEXICAL_REASON,
                        )
                    )

        self.stats["lexical_runs"] += 1
        self.stats["candidates_found"] += len(candidates)
        logger.info(f"🔍 Lexical scan found {len(candidates)} candidates among {len(nodes)} nodes")
        return _ranked(candidates)

    async def detect_semantic(
        self,
        graph: KnowledgeGraph,
        threshold: Optional[float] = None,
        provider: Optional[IEmbeddingProvider] = None,
    ) -> List[DuplicateCandidate]:
        """Compare embeddings of same-type pairs among the leading nodes.

        Nodes whose embedding fails, times out or comes back empty are left
        out of the comparison.

        Args:
            graph: Graph to scan
            threshold: Minimum cosine similarity; defaults to 0.88
            provider: Overrides the detector's embedding provider

        Returns:
            Candidates sorted by similarity, highest first

        Raises:
            EmbeddingError: If no embedding provider is available
        """
        provider = provider or self.embedding_provider
        if provider is None:
            raise EmbeddingError("No embedding provider configured")

        threshold = self.config.semantic_threshold if threshold is None else threshold
        nodes = graph.nodes[:self.config.semantic_node_limit]

        vectors: Dict[str, List[float]] = {}
        for node in nodes:
            vector = await self._embedding_for(node, provider)
            if vector:
                vectors[node.id] = vector

        candidates = []
        for i, node_a in enumerate(nodes):
            if node_a.id not in vectors:
                continue
            for node_b in nodes[i + 1:]:
                if node_a.type != node_b.type or node_b.id not in vectors:
                    continue
                if node_a.id == node_b.id:
                    continue
                similarity = cosine_similarity(vectors[node_a.id], vectors[node_b.id])
                if similarity >= threshold:
                    candidates.append(
                        DuplicateCandidate(
                            node_a=node_a,
                            node_b=node_b,
                            similarity=similarity,
                            reason=f"Semantic match: {similarity * 100:.1f}%",
                        )
                    )

        self.stats["semantic_runs"] += 1
        self.stats["candidates_found"] += len(candidates)
        logger.info(
            f"🧠 Semantic scan found {len(candidates)} candidates "
            f"({len(vectors)}/{len(nodes)} nodes embedded)"
        )
        return _ranked(candidates)

    async def _embedding_for(
        self,
        node: NodeData,
        provider: IEmbeddingProvider
    ) -> List[float]:
        """Cached embedding for a node; empty when the provider fails."""
        text = embedding_text(node)

        cached = await self.cache.get(text)
        if cached is not None:
            return cached

        self.stats["embedding_calls"] += 1
        try:
            call = provider.embed(text)
            if self.config.embedding_timeout is not None:
                vector = await asyncio.wait_for(call, timeout=self.config.embedding_timeout)
            else:
                vector = await call
            # Providers may hand back ndarrays or other sequences
            vector = [float(x) for x in (vector if vector is not None else [])]
        except Exception as e:
            self.stats["failed_embeddings"] += 1
            logger.warning(f"Embedding failed for node {node.id}: {e}")
            return []

        if not vector:
            self.stats["failed_embeddings"] += 1
            logger.warning(f"Empty embedding for node {node.id}")
            return []

        await self.cache.set(text, vector)
        return vector

    def get_statistics(self) -> Dict[str, int]:
        return {**self.stats, "cached_embeddings": len(self.cache)}


def embedding_text(node: NodeData) -> str:
    """Text embedded for a node: ``"{label}: {description}"``."""
    return f"{node.label}: {node.description or ''}"


def _ranked(candidates: List[DuplicateCandidate]) -> List[DuplicateCandidate]:
    return sorted(candidates, key=lambda c: c.similarity, reverse=True)
