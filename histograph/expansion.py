"""Graph expansion through an external proposal provider."""

import json
import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .errors import ExpansionError
from .interfaces import IExpansionProvider
from .models import DERIVED_NODE_FIELDS, EdgeData, KnowledgeGraph, NodeData

logger = logging.getLogger(__name__)

DEFAULT_IMPORTANCE = 0.5
SUMMARY_LABEL_LIMIT = 30

_FENCE_START = re.compile(r"^\s*```(?:json)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"\s*```\s*$")
_YEAR = re.compile(r"\d{4}")

# camelCase keys accepted for derived fields, all discarded
_DERIVED_ALIASES = {
    "degreeCentrality", "pagerank", "betweenness", "closeness",
    "eigenvector", "clustering", "community", "kCore",
}


@dataclass
class ExpansionProposal:
    """Nodes and edges proposed for a query, already normalized."""
    query: str
    thought_process: str = ""
    nodes: List[NodeData] = field(default_factory=list)
    edges: List[EdgeData] = field(default_factory=list)


def summarize_for_expansion(graph: KnowledgeGraph, limit: int = SUMMARY_LABEL_LIMIT) -> str:
    """Short text context for the provider: counts plus leading labels."""
    labels = [node.label for node in graph.nodes[:limit]]
    summary = f"Graph has {len(graph.nodes)} nodes and {len(graph.edges)} edges."
    if labels:
        more = "..." if len(graph.nodes) > limit else ""
        summary += f" Current nodes: {', '.join(labels)}{more}"
    return summary


def normalize_raw_node(raw: Dict[str, Any]) -> NodeData:
    """Build a node from a loosely shaped record.

    The year is taken from the first four-digit number in ``dates``, then
    from ``year``. Importance defaults to 0.5 and region to Unknown.
    Derived metrics are discarded.

    Raises:
        ValueError: If the record is not a valid node
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Node record must be an object, got {type(raw).__name__}")

    record = {
        key: value
        for key, value in raw.items()
        if key not in DERIVED_NODE_FIELDS and key not in _DERIVED_ALIASES
    }

    year = None
    dates = record.get("dates")
    if isinstance(dates, str):
        match = _YEAR.search(dates)
        if match:
            year = int(match.group())
    if year is None and record.get("year") is not None:
        year = int(record["year"])
    record["year"] = year

    if record.get("importance") is None:
        record["importance"] = DEFAULT_IMPORTANCE

    return NodeData.model_validate(record)


def normalize_raw_edge(raw: Dict[str, Any]) -> EdgeData:
    """Build an edge from a loosely shaped record.

    The label comes from ``relationship`` or ``label``. Missing ids are
    generated as ``edge_<hex>``.

    Raises:
        ValueError: If the record is not a valid edge
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Edge record must be an object, got {type(raw).__name__}")

    record = {key: value for key, value in raw.items() if key not in ("isBalanced", "is_balanced")}
    record["label"] = record.pop("relationship", None) or record.get("label") or ""
    if not record.get("id"):
        record["id"] = f"edge_{uuid.uuid4().hex}"

    return EdgeData.model_validate(record)


def parse_proposal_payload(response: Any) -> Dict[str, Any]:
    """Decode a provider response, stripping a markdown code fence.

    Raises:
        ExpansionError: If the response is not a JSON object
    """
    if isinstance(response, dict):
        return response

    if not isinstance(response, str):
        raise ExpansionError(f"Unexpected response type: {type(response).__name__}")

    text = _FENCE_END.sub("", _FENCE_START.sub("", response))
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExpansionError("Invalid JSON from expansion provider", cause=e) from e

    if not isinstance(payload, dict):
        raise ExpansionError("Expansion payload must be a JSON object")
    return payload


class ExpansionService:
    """Asks a provider for additions and validates what comes back."""

    def __init__(self, provider: IExpansionProvider, summary_limit: int = SUMMARY_LABEL_LIMIT):
        self.provider = provider
        self.summary_limit = summary_limit

    async def expand(self, graph: KnowledgeGraph, query: str) -> ExpansionProposal:
        """Request and normalize a proposal for ``query``.

        Args:
            graph: Current graph, summarized for the provider
            query: Free-text expansion request

        Returns:
            ExpansionProposal with validated nodes and edges

        Raises:
            ExpansionError: If the provider fails or its proposal is invalid
        """
        summary = summarize_for_expansion(graph, self.summary_limit)
        logger.info(f"Requesting expansion for {query!r}")

        try:
            response = await self.provider.propose(summary, query)
        except ExpansionError:
            raise
        except Exception as e:
            logger.error(f"Expansion provider failed: {e}")
            raise ExpansionError("expansion failed", query=query, cause=e) from e

        try:
            payload = parse_proposal_payload(response)
        except ExpansionError as e:
            e.query = query
            raise

        raw_nodes = _records(payload, "newNodes", "nodes")
        raw_edges = _records(payload, "newEdges", "edges")

        try:
            nodes = [normalize_raw_node(raw) for raw in raw_nodes]
            edges = [normalize_raw_edge(raw) for raw in raw_edges]
        except (ValidationError, ValueError, TypeError) as e:
            raise ExpansionError(f"Invalid expansion record: {e}", query=query, cause=e) from e

        proposal = ExpansionProposal(
            query=query,
            thought_process=str(payload.get("thoughtProcess") or payload.get("thought_process") or ""),
            nodes=nodes,
            edges=edges,
        )
        logger.info(f"Expansion proposed {len(nodes)} nodes and {len(edges)} edges")
        return proposal


def _records(payload: Dict[str, Any], *keys: str) -> List[Any]:
    for key in keys:
        value: Optional[Any] = payload.get(key)
        if value is not None:
            if not isinstance(value, list):
                raise ExpansionError(f"'{key}' must be a list")
            return value
    return []
