"""Bundled historical dataset used to initialize an empty store."""

import json
import logging
from importlib import resources
from typing import Any, Dict

from .expansion import normalize_raw_edge, normalize_raw_node
from .models import KnowledgeGraph

logger = logging.getLogger(__name__)

SEED_RESOURCE = "seed_graph.json"


def load_seed_payload() -> Dict[str, Any]:
    """Raw seed records as shipped with the package."""
    text = resources.files("histograph.data").joinpath(SEED_RESOURCE).read_text(encoding="utf-8")
    return json.loads(text)


def build_graph(payload: Dict[str, Any]) -> KnowledgeGraph:
    """Turn raw node/edge records into an unenriched graph.

    Edge ids are ``edge_<index>_<source>_<target>``.
    """
    nodes = [normalize_raw_node(raw) for raw in payload.get("nodes", [])]
    edges = [
        normalize_raw_edge({**raw, "id": raw.get("id") or f"edge_{i}_{raw['source']}_{raw['target']}"})
        for i, raw in enumerate(payload.get("edges", []))
    ]
    return KnowledgeGraph(nodes=nodes, edges=edges)


def load_seed_graph() -> KnowledgeGraph:
    """The National Democracy dataset: Poznań cluster and Warsaw core."""
    graph = build_graph(load_seed_payload())
    logger.debug(f"Loaded seed graph with {len(graph.nodes)} nodes, {len(graph.edges)} edges")
    return graph
