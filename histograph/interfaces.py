"""Interfaces for the collaborators the graph engine depends on."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Any, List, Optional, Union

from .models import KnowledgeGraph


@dataclass
class GraphSnapshot:
    """A persisted graph and the time it was saved (epoch ms)."""
    graph: KnowledgeGraph
    saved_at: int


class IEmbeddingProvider(ABC):
    """Interface for text embedding providers."""

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """Embed text into a vector. Returns an empty list on failure."""
        pass


class IExpansionProvider(ABC):
    """Interface for providers that propose new nodes and edges."""

    @abstractmethod
    async def propose(
        self,
        graph_summary: str,
        query: str
    ) -> Union[Dict[str, Any], str]:
        """Propose graph additions for a query.

        Returns either a parsed payload or JSON text, which may be wrapped
        in a markdown code fence.
        """
        pass


class ISnapshotStore(ABC):
    """Interface for graph snapshot persistence."""

    @abstractmethod
    async def save(self, graph: KnowledgeGraph) -> GraphSnapshot:
        """Persist the graph as the current snapshot."""
        pass

    @abstractmethod
    async def load(self) -> Optional[GraphSnapshot]:
        """Load the current snapshot, or None if there is none."""
        pass
