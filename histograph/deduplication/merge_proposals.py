"""
Merge Proposals and Execution

Turns duplicate candidates into merge proposals and folds one node into
another, rewiring its edges.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List
from dataclasses import dataclass, field

from ..errors import GraphValidationError
from ..models import DuplicateCandidate, KnowledgeGraph

logger = logging.getLogger(__name__)


@dataclass
class MergeProposal:
    """A proposal to fold one node into another."""
    keep_id: str
    drop_id: str
    similarity: float = 0.0
    reason: str = ""
    proposal_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.now)
    status: str = "pending"  # pending, executed, failed


@dataclass
class MergeResult:
    """Result of a merge operation."""
    graph: KnowledgeGraph
    kept_id: str
    dropped_id: str
    reassigned_edges: int = 0
    removed_self_loops: List[str] = field(default_factory=list)


class MergeExecutor:
    """Creates and executes node merges."""

    def __init__(self):
        self.stats = {
            "total_proposals": 0,
            "successful_merges": 0,
            "failed_merges": 0,
            "removed_self_loops": 0,
        }

    def create_proposal(self, candidate: DuplicateCandidate) -> MergeProposal:
        """Decide which node of a candidate pair survives.

        The node with the longer description is kept; ties keep ``node_a``.
        """
        node_a, node_b = candidate.node_a, candidate.node_b
        if len(node_b.description or "") > len(node_a.description or ""):
            keep, drop = node_b, node_a
        else:
            keep, drop = node_a, node_b

        proposal = MergeProposal(
            keep_id=keep.id,
            drop_id=drop.id,
            similarity=candidate.similarity,
            reason=candidate.reason,
        )
        self.stats["total_proposals"] += 1

        logger.info(f"📝 Created merge proposal {proposal.proposal_id}")
        logger.debug(f"   Keep: {keep.id}, drop: {drop.id} ({candidate.reason})")
        return proposal

    def execute_proposal(self, graph: KnowledgeGraph, proposal: MergeProposal) -> MergeResult:
        """Execute a proposal, recording its outcome on the proposal."""
        try:
            result = self.merge(graph, proposal.keep_id, proposal.drop_id)
        except GraphValidationError:
            proposal.status = "failed"
            raise
        proposal.status = "executed"
        return result

    def merge(self, graph: KnowledgeGraph, keep_id: str, drop_id: str) -> MergeResult:
        """Fold ``drop_id`` into ``keep_id``.

        Every edge endpoint referencing the dropped node is moved to the
        kept node and the dropped node is removed. No self-loop survives
        the merge. The input graph is not modified.

        Args:
            graph: Graph containing both nodes
            keep_id: Id of the surviving node
            drop_id: Id of the node to remove

        Returns:
            MergeResult holding the new (unenriched) graph

        Raises:
            GraphValidationError: If either id is unknown or both are equal
        """
        logger.info(f"🔄 Merging {drop_id} into {keep_id}")

        if keep_id == drop_id:
            self.stats["failed_merges"] += 1
            raise GraphValidationError("Cannot merge a node into itself", field="drop_id", value=drop_id)

        ids = set(graph.node_ids)
        for name, node_id in (("keep_id", keep_id), ("drop_id", drop_id)):
            if node_id not in ids:
                self.stats["failed_merges"] += 1
                raise GraphValidationError(f"Unknown node id: {node_id}", field=name, value=node_id)

        edges = []
        reassigned = 0
        removed = []
        for edge in graph.edges:
            updates: Dict[str, Any] = {}
            if edge.source == drop_id:
                updates["source"] = keep_id
            if edge.target == drop_id:
                updates["target"] = keep_id

            if updates:
                reassigned += 1
                edge = edge.model_copy(update=updates)

            if edge.is_self_loop:
                removed.append(edge.id)
                continue
            edges.append(edge)

        nodes = [node for node in graph.nodes if node.id != drop_id]
        merged = KnowledgeGraph(nodes=nodes, edges=edges, meta=graph.meta)

        self.stats["successful_merges"] += 1
        self.stats["removed_self_loops"] += len(removed)
        logger.info(
            f"✅ Merged {drop_id} into {keep_id}: {reassigned} edges reassigned, "
            f"{len(removed)} self-loops removed"
        )

        return MergeResult(
            graph=merged,
            kept_id=keep_id,
            dropped_id=drop_id,
            reassigned_edges=reassigned,
            removed_self_loops=removed,
        )

    def get_statistics(self) -> Dict[str, Any]:
        """Get merge statistics."""
        total = self.stats["successful_merges"] + self.stats["failed_merges"]
        success_rate = (self.stats["successful_merges"] / max(total, 1)) * 100
        return {**self.stats, "success_rate": success_rate}
