"""Edge sign inference and structural (triadic) balance."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from ..config import AnalyticsConfig
from ..models import Certainty, EdgeData, EdgeSign, NodeData

logger = logging.getLogger(__name__)

# Lower-case fragments marking an adversarial relationship (English and Polish)
NEGATIVE_KEYWORDS = (
    "conflict", "rival", "anti", "against", "enemy", "opponent", "fight",
    "konflikt", "rywal", "przeciw", "wro",
)


@dataclass
class BalanceReport:
    """Outcome of a triadic balance pass."""
    global_balance: float = 1.0
    total_triangles: int = 0
    balanced_triangles: int = 0
    unbalanced_edge_ids: Set[str] = field(default_factory=set)
    nodes_considered: int = 0
    truncated: bool = False


class TriadicBalanceAnalyzer:
    """Signs edges and measures how many signed triangles are balanced.

    A triangle is balanced when the product of its three edge signs is
    positive (+++ or +--).
    """

    def __init__(self, config: Optional[AnalyticsConfig] = None):
        self.config = config or AnalyticsConfig()

    def infer_sign(self, label: Optional[str]) -> EdgeSign:
        """Sign implied by a relationship label."""
        text = (label or "").lower()
        if any(keyword in text for keyword in NEGATIVE_KEYWORDS):
            return EdgeSign.NEGATIVE
        return EdgeSign.POSITIVE

    def assign_signs(self, edges: List[EdgeData]) -> List[EdgeData]:
        """Fill in missing sign and certainty.

        Existing values are kept. Returns new edge objects; the input is
        not modified.
        """
        processed = []
        for edge in edges:
            updates = {}
            if edge.sign is None:
                updates["sign"] = self.infer_sign(edge.label)
            if edge.certainty is None:
                updates["certainty"] = Certainty.CONFIRMED
            processed.append(edge.model_copy(update=updates) if updates else edge.model_copy())
        return processed

    def evaluate(self, nodes: List[NodeData], edges: List[EdgeData]) -> BalanceReport:
        """Count balanced triangles among the first ``balance_node_cap`` nodes.

        Args:
            nodes: Graph nodes, in order
            edges: Signed edges; missing signs count as positive

        Returns:
            BalanceReport with the global balance and unbalanced edge ids
        """
        cap = self.config.balance_node_cap
        considered = nodes[:cap]
        truncated = len(nodes) > cap
        if truncated:
            logger.warning(
                f"Triadic balance limited to the first {cap} of {len(nodes)} nodes"
            )

        order = {node.id: index for index, node in enumerate(considered)}
        signs, pair_edges = self._sign_matrix(edges, order)

        total = 0
        balanced = 0
        unbalanced_edges: Set[str] = set()

        for u in considered:
            u_idx = order[u.id]
            u_neighbors = signs.get(u.id, {})
            for v, uv in u_neighbors.items():
                v_idx = order[v]
                if v_idx <= u_idx:
                    continue
                v_neighbors = signs[v]
                for w, vw in v_neighbors.items():
                    if order[w] <= v_idx or w not in u_neighbors:
                        continue
                    total += 1
                    if uv * vw * u_neighbors[w] > 0:
                        balanced += 1
                    else:
                        for pair in (_pair(u.id, v), _pair(v, w), _pair(u.id, w)):
                            unbalanced_edges.update(pair_edges[pair])

        global_balance = balanced / total if total > 0 else 1.0
        logger.debug(f"Triadic balance: {balanced}/{total} triangles balanced")

        return BalanceReport(
            global_balance=global_balance,
            total_triangles=total,
            balanced_triangles=balanced,
            unbalanced_edge_ids=unbalanced_edges,
            nodes_considered=len(considered),
            truncated=truncated,
        )

    def _sign_matrix(
        self,
        edges: List[EdgeData],
        order: Dict[str, int]
    ) -> Tuple[Dict[str, Dict[str, int]], Dict[Tuple[str, str], List[str]]]:
        """Symmetric +1/-1 matrix; the last edge between a pair wins."""
        signs: Dict[str, Dict[str, int]] = defaultdict(dict)
        pair_edges: Dict[Tuple[str, str], List[str]] = defaultdict(list)

        for edge in edges:
            if edge.source not in order or edge.target not in order or edge.is_self_loop:
                continue
            value = -1 if edge.sign == EdgeSign.NEGATIVE else 1
            signs[edge.source][edge.target] = value
            signs[edge.target][edge.source] = value
            pair_edges[_pair(edge.source, edge.target)].append(edge.id)

        return signs, pair_edges


def _pair(a: str, b: str) -> Tuple[str, str]:
    return (a, b) if a <= b else (b, a)
