"""Mutation lifecycle for the current knowledge graph."""

import asyncio
import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from .analytics.enrichment import GraphEnricher
from .analytics.regional import RegionalAnalyzer
from .analytics.summary import GraphSummary, summarize_graph
from .audit import AuditLogger
from .config import HistographConfig
from .deduplication.detector import DuplicateDetector
from .deduplication.merge_proposals import MergeExecutor, MergeResult
from .errors import ErrorHandler, GraphValidationError
from .expansion import ExpansionProposal, ExpansionService, normalize_raw_edge, normalize_raw_node
from .interfaces import IEmbeddingProvider, IExpansionProvider, ISnapshotStore
from .models import (
    DERIVED_NODE_FIELDS,
    DuplicateCandidate,
    EdgeData,
    KnowledgeGraph,
    NodeData,
    RegionalAnalysisResult,
)
from .seed import load_seed_graph

logger = logging.getLogger(__name__)


class GraphSession:
    """Owns the current graph and applies every change to it.

    Each mutation runs under a lock, builds a new graph, re-enriches it as
    a whole and persists it when a store is configured. The current graph
    is only ever replaced, never edited in place.
    """

    def __init__(
        self,
        store: Optional[ISnapshotStore] = None,
        config: Optional[HistographConfig] = None,
        enricher: Optional[GraphEnricher] = None,
        audit: Optional[AuditLogger] = None,
        detector: Optional[DuplicateDetector] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self.store = store
        self.config = config or HistographConfig()
        self.enricher = enricher or GraphEnricher(self.config.analytics)
        self.audit = audit or AuditLogger()
        self.detector = detector or DuplicateDetector(self.config.deduplication)
        self.error_handler = error_handler or ErrorHandler(self.audit)
        self.merge_executor = MergeExecutor()
        self.regional = RegionalAnalyzer()

        self._graph = KnowledgeGraph()
        self._lock = asyncio.Lock()

    @property
    def graph(self) -> KnowledgeGraph:
        return self._graph

    async def initialize(self, seed: Optional[KnowledgeGraph] = None) -> KnowledgeGraph:
        """Load the last snapshot, or start from the seed dataset.

        Args:
            seed: Graph used when there is no snapshot; defaults to the
                bundled dataset

        Returns:
            The current graph
        """
        async with self._lock:
            if self.store:
                with self.error_handler.error_context(operation="load_snapshot"):
                    try:
                        snapshot = await self.store.load()
                    except Exception as e:
                        self.audit.log_snapshot("load", self._store_location(), 0, 0, error=str(e))
                        self.error_handler.handle_error(e)
                if snapshot:
                    self.audit.log_snapshot(
                        "load",
                        self._store_location(),
                        len(snapshot.graph.nodes),
                        len(snapshot.graph.edges),
                    )
                    self._graph = snapshot.graph
                    logger.info(
                        f"Restored snapshot with {len(snapshot.graph.nodes)} nodes "
                        f"(saved at {snapshot.saved_at})"
                    )
                    return self._graph

            seed_graph = seed if seed is not None else load_seed_graph()
            await self._commit(seed_graph, "initialize", seed_graph.node_ids)
            logger.info(f"Initialized graph from seed with {len(seed_graph.nodes)} nodes")
            return self._graph

    async def add_nodes_and_edges(
        self,
        raw_nodes: Iterable[Dict[str, Any]],
        raw_edges: Iterable[Dict[str, Any]],
    ) -> KnowledgeGraph:
        """Normalize and add raw records; nodes with existing ids are skipped.

        Raises:
            GraphValidationError: If a record cannot be normalized
        """
        try:
            nodes = [normalize_raw_node(raw) for raw in raw_nodes]
            edges = [normalize_raw_edge(raw) for raw in raw_edges]
        except (ValidationError, ValueError, TypeError) as e:
            raise GraphValidationError(f"Invalid record: {e}") from e

        return await self.add(nodes, edges)

    async def add(self, nodes: List[NodeData], edges: List[EdgeData]) -> KnowledgeGraph:
        """Add already validated nodes and edges.

        Nodes whose id already exists are skipped. Edges whose id is taken
        get a fresh ``edge_<hex>`` id.
        """
        async with self._lock:
            existing = set(self._graph.node_ids)
            new_nodes = []
            for node in nodes:
                if node.id in existing:
                    logger.debug(f"Skipping existing node {node.id}")
                    continue
                existing.add(node.id)
                new_nodes.append(node)

            edge_ids = {edge.id for edge in self._graph.edges}
            new_edges = []
            for edge in edges:
                if edge.id in edge_ids:
                    fresh_id = f"edge_{uuid.uuid4().hex}"
                    logger.debug(f"Edge id {edge.id} already in use, renamed to {fresh_id}")
                    edge = edge.model_copy(update={"id": fresh_id})
                edge_ids.add(edge.id)
                new_edges.append(edge)

            graph = KnowledgeGraph(
                nodes=[*self._graph.nodes, *new_nodes],
                edges=[*self._graph.edges, *new_edges],
                meta=self._graph.meta,
            )
            await self._commit(
                graph,
                "add",
                [node.id for node in new_nodes],
                details={"edges_added": len(new_edges), "nodes_skipped": len(nodes) - len(new_nodes)},
            )
            return self._graph

    async def update_node(self, node_id: str, **changes: Any) -> NodeData:
        """Edit descriptive fields of a node.

        Raises:
            GraphValidationError: If the node is unknown, a change touches
                ``id`` or a derived metric, or the result is invalid
        """
        forbidden = set(changes) & (DERIVED_NODE_FIELDS | {"id"})
        if forbidden:
            raise GraphValidationError(
                f"Cannot update derived or identifying fields: {sorted(forbidden)}",
                field=sorted(forbidden)[0],
            )
        unknown = set(changes) - set(NodeData.model_fields)
        if unknown:
            raise GraphValidationError(f"Unknown node fields: {sorted(unknown)}", field=sorted(unknown)[0])

        async with self._lock:
            node = self._require_node(node_id)
            try:
                updated = NodeData.model_validate({**node.model_dump(), **changes})
            except ValidationError as e:
                raise GraphValidationError(f"Invalid update for {node_id}: {e}", value=changes) from e

            nodes = [updated if n.id == node_id else n for n in self._graph.nodes]
            graph = KnowledgeGraph(nodes=nodes, edges=self._graph.edges, meta=self._graph.meta)
            await self._commit(graph, "update", [node_id], details={"fields": sorted(changes)})
            return self._graph.get_node(node_id)

    async def remove_node(self, node_id: str) -> KnowledgeGraph:
        """Remove a node and every edge touching it."""
        async with self._lock:
            self._require_node(node_id)
            await self._commit(self._without({node_id}), "delete", [node_id])
            return self._graph

    async def bulk_delete(self, node_ids: Iterable[str]) -> KnowledgeGraph:
        """Remove several nodes and their edges. Unknown ids are ignored."""
        ids = set(node_ids)
        async with self._lock:
            present = [node_id for node_id in self._graph.node_ids if node_id in ids]
            if not present:
                return self._graph
            await self._commit(self._without(set(present)), "bulk_delete", present)
            return self._graph

    async def merge_nodes(self, keep_id: str, drop_id: str) -> MergeResult:
        """Fold ``drop_id`` into ``keep_id`` and re-enrich."""
        async with self._lock:
            result = self.merge_executor.merge(self._graph, keep_id, drop_id)
            await self._commit(
                result.graph,
                "merge",
                [keep_id, drop_id],
                details={
                    "reassigned_edges": result.reassigned_edges,
                    "removed_self_loops": result.removed_self_loops,
                },
            )
            result.graph = self._graph
            return result

    async def merge_candidate(self, candidate: DuplicateCandidate) -> MergeResult:
        """Accept a duplicate candidate, keeping the better-described node."""
        proposal = self.merge_executor.create_proposal(candidate)
        result = await self.merge_nodes(proposal.keep_id, proposal.drop_id)
        proposal.status = "executed"
        return result

    def regional_analysis(self) -> RegionalAnalysisResult:
        return self.regional.analyze(self._graph)

    def lexical_duplicates(self, threshold: Optional[float] = None) -> List[DuplicateCandidate]:
        return self.detector.detect_lexical(self._graph, threshold)

    async def semantic_duplicates(
        self,
        provider: Optional[IEmbeddingProvider] = None,
        threshold: Optional[float] = None,
    ) -> List[DuplicateCandidate]:
        return await self.detector.detect_semantic(self._graph, threshold, provider)

    def summary(self, top_k: int = 5) -> GraphSummary:
        return summarize_graph(self._graph, top_k)

    async def expand(
        self,
        query: str,
        provider: IExpansionProvider,
        apply: bool = True,
    ) -> ExpansionProposal:
        """Ask a provider for additions and, by default, apply them.

        Raises:
            ExpansionError: If the provider fails or proposes invalid records
        """
        with self.error_handler.error_context(operation="expand", request_data={"query": query}):
            try:
                proposal = await ExpansionService(provider).expand(self._graph, query)
            except Exception as e:
                self.error_handler.handle_error(e)

        if apply:
            await self.add(proposal.nodes, proposal.edges)
        return proposal

    def export(self) -> Dict[str, Any]:
        """Current graph in the export shape."""
        return self._graph.to_export_dict()

    def _require_node(self, node_id: str) -> NodeData:
        node = self._graph.get_node(node_id)
        if node is None:
            raise GraphValidationError(f"Unknown node id: {node_id}", field="node_id", value=node_id)
        return node

    def _store_location(self) -> str:
        return str(getattr(self.store, "path", type(self.store).__name__))

    def _without(self, node_ids: set) -> KnowledgeGraph:
        return KnowledgeGraph(
            nodes=[n for n in self._graph.nodes if n.id not in node_ids],
            edges=[
                e for e in self._graph.edges
                if e.source not in node_ids and e.target not in node_ids
            ],
            meta=self._graph.meta,
        )

    async def _commit(
        self,
        graph: KnowledgeGraph,
        operation: str,
        node_ids: List[str],
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Enrich, persist and publish a new current graph. Caller holds the lock."""
        enriched = self.enricher.enrich(graph)

        if self.store:
            with self.error_handler.error_context(operation="save_snapshot"):
                try:
                    snapshot = await self.store.save(enriched)
                except Exception as e:
                    self.audit.log_snapshot(
                        "save",
                        self._store_location(),
                        len(enriched.nodes),
                        len(enriched.edges),
                        error=str(e),
                    )
                    self.error_handler.handle_error(e)
            self.audit.log_snapshot(
                "save", self._store_location(), len(enriched.nodes), len(enriched.edges)
            )
            enriched = snapshot.graph

        self._graph = enriched
        self.audit.log_graph_mutation(
            operation,
            node_ids,
            node_count=len(enriched.nodes),
            edge_count=len(enriched.edges),
            details=details,
        )
