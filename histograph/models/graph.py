"""Pydantic models for the historical knowledge graph."""

from typing import Any, Dict, List, Optional
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


UNKNOWN_REGION = "Unknown"

# Fields computed by the enrichment pipeline; never supplied by callers
DERIVED_NODE_FIELDS = frozenset(
    {
        "degree_centrality",
        "pagerank",
        "betweenness",
        "closeness",
        "eigenvector",
        "clustering",
        "community",
        "k_core",
    }
)


class NodeType(str, Enum):
    """Kinds of historical entities."""

    PERSON = "Person"
    ORGANIZATION = "Organization"
    EVENT = "Event"
    CONCEPT = "Concept"
    PUBLICATION = "Publication"

    @classmethod
    def parse(cls, value: Any) -> "NodeType":
        """Parse a node type case-insensitively."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        raise ValueError(f"Unknown node type: {value!r}")


class EdgeSign(str, Enum):
    """Relationship sign used for structural balance."""

    POSITIVE = "positive"
    NEGATIVE = "negative"


class Certainty(str, Enum):
    """How well attested a fact is."""

    CONFIRMED = "confirmed"
    DISPUTED = "disputed"
    ALLEGED = "alleged"


class GraphModel(BaseModel):
    """Base model: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase export representation."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class NodeData(GraphModel):
    """A historical entity plus its derived metrics."""

    id: str = Field(min_length=1)
    label: str
    type: NodeType
    region: str = UNKNOWN_REGION
    importance: float = Field(default=0.5, ge=0.0, le=1.0)
    year: Optional[int] = None
    description: Optional[str] = None
    dates: Optional[str] = None
    sources: Optional[List[str]] = None
    certainty: Optional[Certainty] = None

    # Derived metrics
    degree_centrality: Optional[float] = None
    pagerank: Optional[float] = None
    betweenness: Optional[float] = None
    closeness: Optional[float] = None
    eigenvector: Optional[float] = None
    clustering: Optional[float] = None
    community: Optional[int] = None
    k_core: Optional[int] = None

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, v):
        return NodeType.parse(v)

    @field_validator("region", mode="before")
    @classmethod
    def default_region(cls, v):
        if v is None or not str(v).strip():
            return UNKNOWN_REGION
        return v

    @property
    def has_known_region(self) -> bool:
        return self.region != UNKNOWN_REGION


class EdgeData(GraphModel):
    """A relationship between two entities."""

    id: str = Field(min_length=1)
    source: str
    target: str
    label: str = ""
    dates: Optional[str] = None
    weight: Optional[float] = None
    sign: Optional[EdgeSign] = None
    certainty: Optional[Certainty] = None
    is_balanced: Optional[bool] = None

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target


class GraphMeta(GraphModel):
    """Graph-wide metrics."""

    modularity: Optional[float] = None
    global_balance: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    last_saved: Optional[int] = None


class KnowledgeGraph(GraphModel):
    """Nodes, edges and graph-wide metrics."""

    nodes: List[NodeData] = Field(default_factory=list)
    edges: List[EdgeData] = Field(default_factory=list)
    meta: GraphMeta = Field(default_factory=GraphMeta)

    @model_validator(mode="after")
    def check_unique_node_ids(self):
        seen = set()
        for node in self.nodes:
            if node.id in seen:
                raise ValueError(f"Duplicate node id: {node.id}")
            seen.add(node.id)
        return self

    @model_validator(mode="after")
    def check_unique_edge_ids(self):
        seen = set()
        for edge in self.edges:
            if edge.id in seen:
                raise ValueError(f"Duplicate edge id: {edge.id}")
            seen.add(edge.id)
        return self

    @property
    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def get_node(self, node_id: str) -> Optional[NodeData]:
        """Get a node by id."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def node_index(self) -> Dict[str, NodeData]:
        """Map node ids to nodes."""
        return {node.id: node for node in self.nodes}

    def to_export_dict(self) -> Dict[str, Any]:
        """Convert to the export shape: nodes/edges wrapped in ``data``."""
        return {
            "nodes": [{"data": node.to_dict()} for node in self.nodes],
            "edges": [{"data": edge.to_dict()} for edge in self.edges],
            "meta": self.meta.to_dict(),
        }

    @classmethod
    def from_export_dict(cls, payload: Dict[str, Any]) -> "KnowledgeGraph":
        """Create a graph from the export shape.

        Records may be wrapped in ``data`` or bare. Edges may carry their
        label under ``relationship``.
        """
        nodes = [_unwrap(item) for item in payload.get("nodes") or []]
        edges = []
        for item in payload.get("edges") or []:
            record = dict(_unwrap(item))
            if "label" not in record and "relationship" in record:
                record["label"] = record.pop("relationship")
            edges.append(record)

        return cls(nodes=nodes, edges=edges, meta=payload.get("meta") or {})


def _unwrap(item: Any) -> Dict[str, Any]:
    if isinstance(item, dict) and isinstance(item.get("data"), dict):
        return item["data"]
    return item


class DuplicateCandidate(GraphModel):
    """Two nodes that may describe the same entity."""

    node_a: NodeData
    node_b: NodeData
    similarity: float = Field(ge=0.0, le=1.0)
    reason: str = ""


class RegionalBridge(GraphModel):
    """A node connecting different regions."""

    id: str
    label: str
    score: float


class RegionalAnalysisResult(GraphModel):
    """Region assortativity and the strongest cross-region bridges."""

    isolation_index: float = Field(ge=0.0, le=1.0)
    bridges: List[RegionalBridge] = Field(default_factory=list, max_length=5)
    dominant_region: str = UNKNOWN_REGION
