"""Text-keyed cache for embedding vectors."""

import asyncio
from collections import OrderedDict
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)


class EmbeddingCache:
    """In-memory embedding cache keyed by the exact embedded text.

    Unbounded unless ``max_size`` is given, in which case the least
    recently used entry is evicted first.
    """

    def __init__(self, max_size: Optional[int] = None):
        self.max_size = max_size
        self.cache: "OrderedDict[str, List[float]]" = OrderedDict()
        self._lock = asyncio.Lock()
        self.hits = 0
        self.misses = 0

    async def get(self, text: str) -> Optional[List[float]]:
        """Get a cached vector."""
        async with self._lock:
            if text not in self.cache:
                self.misses += 1
                return None

            self.cache.move_to_end(text)
            self.hits += 1
            return self.cache[text]

    async def set(self, text: str, vector: List[float]) -> None:
        """Cache a vector, evicting the LRU entry when full."""
        async with self._lock:
            self.cache[text] = vector
            self.cache.move_to_end(text)

            if self.max_size is not None and len(self.cache) > self.max_size:
                evicted, _ = self.cache.popitem(last=False)
                logger.debug(f"Evicted embedding for {evicted[:40]!r}")

    async def clear(self) -> None:
        async with self._lock:
            self.cache.clear()

    def __len__(self) -> int:
        return len(self.cache)

    def __contains__(self, text: str) -> bool:
        return text in self.cache
