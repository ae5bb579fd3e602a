"""Tests for lexical and semantic duplicate detection."""

import asyncio
from unittest.mock import AsyncMock

import numpy as np
import pytest

from histograph.config import DeduplicationConfig
from histograph.deduplication import DuplicateDetector, EmbeddingCache, embedding_text
from histograph.errors import EmbeddingError
from histograph.models import KnowledgeGraph


@pytest.fixture
def people(node_factory):
    return KnowledgeGraph(
        nodes=[
            node_factory("dmowski", label="Roman Dmowski", description="Ideolog"),
            node_factory("dmowsky", label="Roman Dmowsky"),
            node_factory("dmowski_org", label="Roman Dmowski", type="Organization"),
            node_factory("balicki", label="Zygmunt Balicki"),
        ]
    )


def vector_provider(vectors):
    """AsyncMock embedding provider keyed by node label."""

    async def embed(text):
        label = text.split(":")[0]
        result = vectors[label]
        if isinstance(result, Exception):
            raise result
        return result

    provider = AsyncMock()
    provider.embed = AsyncMock(side_effect=embed)
    return provider


class TestLexicalDetection:
    """Test label-based candidates."""

    def test_same_type_pairs_only(self, people):
        candidates = DuplicateDetector().detect_lexical(people)

        assert len(candidates) == 1
        candidate = candidates[0]
        assert {candidate.node_a.id, candidate.node_b.id} == {"dmowski", "dmowsky"}
        assert candidate.similarity == pytest.approx(1 - 1 / 13)
        assert candidate.reason == "String similarity"

    def test_threshold_override(self, people):
        detector = DuplicateDetector()
        assert detector.detect_lexical(people, threshold=1.0) == []
        assert len(detector.detect_lexical(people, threshold=0.0)) == 3

    def test_sorted_descending(self, node_factory):
        graph = KnowledgeGraph(
            nodes=[
                node_factory("a", label="Jan Popławski"),
                node_factory("b", label="Jan Poplawski"),
                node_factory("c", label="Jan Popławski"),
            ]
        )
        candidates = DuplicateDetector().detect_lexical(graph)
        scores = [c.similarity for c in candidates]

        assert scores == sorted(scores, reverse=True)
        assert scores[0] == 1.0

    def test_statistics(self, people):
        detector = DuplicateDetector()
        detector.detect_lexical(people)

        stats = detector.get_statistics()
        assert stats["lexical_runs"] == 1
        assert stats["candidates_found"] == 1


class TestSemanticDetection:
    """Test embedding-based candidates."""

    @pytest.mark.asyncio
    async def test_similar_embeddings_match(self, people):
        provider = vector_provider(
            {
                "Roman Dmowski": [1.0, 0.0],
                "Roman Dmowsky": [0.99, 0.05],
                "Zygmunt Balicki": [0.0, 1.0],
            }
        )
        candidates = await DuplicateDetector(embedding_provider=provider).detect_semantic(people)

        assert len(candidates) == 1
        assert {candidates[0].node_a.id, candidates[0].node_b.id} == {"dmowski", "dmowsky"}
        assert candidates[0].reason.startswith("Semantic match: ")
        assert candidates[0].reason.endswith("%")

    @pytest.mark.asyncio
    async def test_no_provider(self, people):
        with pytest.raises(EmbeddingError):
            await DuplicateDetector().detect_semantic(people)

    @pytest.mark.asyncio
    async def test_provider_argument_overrides(self, people, mock_embedding_provider):
        detector = DuplicateDetector()
        candidates = await detector.detect_semantic(people, provider=mock_embedding_provider)

        # identical vectors: every same-type pair matches
        assert len(candidates) == 3
        assert all(c.similarity == pytest.approx(1.0) for c in candidates)

    @pytest.mark.asyncio
    async def test_failed_embeddings_excluded(self, people):
        provider = vector_provider(
            {
                "Roman Dmowski": [1.0, 0.0],
                "Roman Dmowsky": RuntimeError("quota exceeded"),
                "Zygmunt Balicki": [],
            }
        )
        detector = DuplicateDetector(embedding_provider=provider)
        candidates = await detector.detect_semantic(people, threshold=0.0)

        assert candidates == []
        stats = detector.get_statistics()
        assert stats["failed_embeddings"] == 2
        assert stats["cached_embeddings"] == 2

    @pytest.mark.asyncio
    async def test_embeddings_cached(self, people, mock_embedding_provider):
        detector = DuplicateDetector(embedding_provider=mock_embedding_provider)
        await detector.detect_semantic(people)
        await detector.detect_semantic(people)

        assert mock_embedding_provider.embed.await_count == 4
        assert detector.get_statistics()["embedding_calls"] == 4

    @pytest.mark.asyncio
    async def test_node_limit(self, people, mock_embedding_provider):
        detector = DuplicateDetector(
            DeduplicationConfig(semantic_node_limit=2),
            embedding_provider=mock_embedding_provider,
        )
        candidates = await detector.detect_semantic(people)

        assert mock_embedding_provider.embed.await_count == 2
        assert len(candidates) == 1

    @pytest.mark.asyncio
    async def test_timeout(self, people):
        async def slow(text):
            await asyncio.sleep(1)
            return [1.0]

        provider = AsyncMock()
        provider.embed = AsyncMock(side_effect=slow)
        detector = DuplicateDetector(
            DeduplicationConfig(embedding_timeout=0.01), embedding_provider=provider
        )

        assert await detector.detect_semantic(people, threshold=0.0) == []
        assert detector.get_statistics()["failed_embeddings"] == 4

    @pytest.mark.asyncio
    async def test_ndarray_embeddings(self, people):
        provider = vector_provider(
            {
                "Roman Dmowski": np.array([1.0, 0.0]),
                "Roman Dmowsky": np.array([0.99, 0.05]),
                "Zygmunt Balicki": np.array([0.0, 1.0]),
            }
        )
        detector = DuplicateDetector(embedding_provider=provider)
        candidates = await detector.detect_semantic(people)

        assert len(candidates) == 1
        assert {candidates[0].node_a.id, candidates[0].node_b.id} == {"dmowski", "dmowsky"}
        assert detector.get_statistics()["failed_embeddings"] == 0

    @pytest.mark.asyncio
    async def test_non_numeric_embeddings_excluded(self, people):
        provider = vector_provider(
            {
                "Roman Dmowski": [1.0, 0.0],
                "Roman Dmowsky": ["not", "a", "vector"],
                "Zygmunt Balicki": 42,
            }
        )
        detector = DuplicateDetector(embedding_provider=provider)
        candidates = await detector.detect_semantic(people, threshold=0.0)

        # only the two "Roman Dmowski" nodes embed, and they differ in type
        assert candidates == []
        assert detector.get_statistics()["failed_embeddings"] == 2


class TestEmbeddingText:
    """Test the embedded text format."""

    def test_with_description(self, node_factory):
        node = node_factory("x", label="Liga Narodowa", description="Tajna organizacja")
        assert embedding_text(node) == "Liga Narodowa: Tajna organizacja"

    def test_without_description(self, node_factory):
        assert embedding_text(node_factory("x", label="ONR")) == "ONR: "


class TestEmbeddingCache:
    """Test the embedding cache."""

    @pytest.mark.asyncio
    async def test_get_and_set(self):
        cache = EmbeddingCache()
        assert await cache.get("a") is None

        await cache.set("a", [1.0])
        assert await cache.get("a") == [1.0]
        assert cache.hits == 1
        assert cache.misses == 1
        assert "a" in cache

    @pytest.mark.asyncio
    async def test_lru_eviction(self):
        cache = EmbeddingCache(max_size=2)
        await cache.set("a", [1.0])
        await cache.set("b", [2.0])
        await cache.get("a")
        await cache.set("c", [3.0])

        assert len(cache) == 2
        assert "b" not in cache
        assert "a" in cache

    @pytest.mark.asyncio
    async def test_unbounded_by_default(self):
        cache = EmbeddingCache()
        for i in range(100):
            await cache.set(str(i), [float(i)])
        assert len(cache) == 100

    @pytest.mark.asyncio
    async def test_clear(self):
        cache = EmbeddingCache()
        await cache.set("a", [1.0])
        await cache.clear()
        assert len(cache) == 0
