"""
Read-only graph accessor over a specification snapshot.

Builds O(1) lookup indexes once per snapshot:
- node_id -> Node
- node_id -> incoming / outgoing edges (in input order)
- label -> node ids (exact, non-empty labels)

Nothing here mutates the snapshot; a SpecGraph lives for one analysis run.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional

from .models import BaseNode, CanvasState, Edge, Project, Screen

UNKNOWN_LABEL = "Unknown"


class ReferenceMatch(str, Enum):
    """How a component reference resolved."""
    ID = "id"
    LABEL = "label"


@dataclass(frozen=True)
class ReferenceResolution:
    reference: str
    matched_by: Optional[ReferenceMatch]
    node_ids: tuple[str, ...] = ()

    @property
    def resolved(self) -> bool:
        return self.matched_by is not None


class SpecGraph:
    """Indexed view over nodes, edges and screens."""

    def __init__(
        self,
        nodes: Iterable[BaseNode],
        edges: Iterable[Edge],
        screens: Optional[Iterable[Screen]] = None,
    ):
        self._nodes: tuple[BaseNode, ...] = tuple(nodes)
        self._edges: tuple[Edge, ...] = tuple(edges)
        self._screens: tuple[Screen, ...] = tuple(screens or ())

        self._node_index: dict[str, BaseNode] = {}
        self._incoming: dict[str, list[Edge]] = {}
        self._outgoing: dict[str, list[Edge]] = {}
        self._label_index: dict[str, list[str]] = {}
        self._build_indexes()

    @classmethod
    def from_canvas(cls, canvas: CanvasState) -> "SpecGraph":
        return cls(canvas.nodes, canvas.edges, canvas.screens)

    @classmethod
    def from_project(cls, project: Project) -> "SpecGraph":
        return cls.from_canvas(project.canvas_state)

    # --- Index Management ---

    def _build_indexes(self):
        for node in self._nodes:
            # First occurrence wins if ids collide
            self._node_index.setdefault(node.id, node)
            if node.label:
                self._label_index.setdefault(node.label, []).append(node.id)

        for edge in self._edges:
            self._outgoing.setdefault(edge.source, []).append(edge)
            self._incoming.setdefault(edge.target, []).append(edge)

    # --- Collections ---

    @property
    def nodes(self) -> tuple[BaseNode, ...]:
        return self._nodes

    @property
    def edges(self) -> tuple[Edge, ...]:
        return self._edges

    @property
    def screens(self) -> tuple[Screen, ...]:
        return self._screens

    def nodes_of_kind(self, kind: str) -> Iterator[BaseNode]:
        """Nodes of a kind, in input order."""
        for node in self._nodes:
            if node.type == kind:
                yield node

    # --- Lookups ---

    def get_node(self, node_id: str) -> Optional[BaseNode]:
        return self._node_index.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._node_index

    def has_label(self, label: str) -> bool:
        return label in self._label_index

    def label_of(self, node_id: str) -> str:
        node = self._node_index.get(node_id)
        if node is None:
            return UNKNOWN_LABEL
        return node.display_label

    def kind_of(self, node_id: str) -> Optional[str]:
        node = self._node_index.get(node_id)
        return node.type if node is not None else None

    def incoming(self, node_id: str) -> list[Edge]:
        return list(self._incoming.get(node_id, ()))

    def outgoing(self, node_id: str) -> list[Edge]:
        return list(self._outgoing.get(node_id, ()))

    def incident(self, node_id: str) -> list[Edge]:
        """Edges touching a node in either direction (self-loops once)."""
        seen: set[int] = set()
        result: list[Edge] = []
        for edge in self._outgoing.get(node_id, []) + self._incoming.get(node_id, []):
            if id(edge) not in seen:
                seen.add(id(edge))
                result.append(edge)
        return result

    def source_kind(self, edge: Edge) -> Optional[str]:
        """Kind of the edge's source node, None when it does not resolve."""
        return self.kind_of(edge.source)

    def resolve_reference(self, reference: str) -> ReferenceResolution:
        """
        Resolve a component reference.

        References may name a node by id or by label. The id index is
        consulted first, then the (case-sensitive, exact) label index.
        """
        if reference in self._node_index:
            return ReferenceResolution(reference, ReferenceMatch.ID, (reference,))
        if reference in self._label_index:
            return ReferenceResolution(reference, ReferenceMatch.LABEL, tuple(self._label_index[reference]))
        return ReferenceResolution(reference, None)

    def connected_node_ids(self) -> set[str]:
        """Ids appearing as an endpoint of any edge."""
        connected: set[str] = set()
        for edge in self._edges:
            connected.add(edge.source)
            connected.add(edge.target)
        return connected
