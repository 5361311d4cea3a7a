"""
Editor Session

The collaborator around the core: owns the canonical snapshot, applies
structural gestures (add node, connect, delete, auto layout) and exposes
the derived validity.
"""

from __future__ import annotations
from typing import Iterable, Optional
import logging
import random
import uuid

from .config import LayoutConfig
from .ir import Edge, Graph, Node, NodeData, Position, XYPosition
from .layout import get_layouted_elements
from .validator import validate_dag

logger = logging.getLogger(__name__)

RANDOM_SPREAD = 250.0


class ConnectionRejected(ValueError):
    """A connect gesture that would produce an invalid edge."""


class NodeIdGenerator:
    """Sequential ids ``node_0``, ``node_1``, ... owned by one session."""

    def __init__(self, prefix: str = "node_", start: int = 0):
        self.prefix = prefix
        self._next = start

    def __call__(self) -> str:
        nid = f"{self.prefix}{self._next}"
        self._next += 1
        return nid


class UuidNodeIdGenerator:
    def __init__(self, prefix: str = "node_"):
        self.prefix = prefix

    def __call__(self) -> str:
        return f"{self.prefix}{uuid.uuid4().hex[:8]}"


class GraphEditor:
    """
    Holds the current snapshot and replaces it on every structural change.

    Example usage:
        editor = GraphEditor()
        a = editor.add_node("extract")
        b = editor.add_node("load")
        editor.connect(a.id, b.id)
        editor.auto_layout()
        print(editor.is_valid)   # True
    """

    def __init__(
        self,
        id_generator=None,
        rng: Optional[random.Random] = None,
        layout_config: Optional[LayoutConfig] = None,
        graph: Optional[Graph] = None,
    ):
        self.id_generator = id_generator or NodeIdGenerator()
        self.rng = rng or random.Random()
        self.layout_config = layout_config or LayoutConfig()
        self._graph = graph.model_copy(deep=True) if graph is not None else Graph()

    @property
    def nodes(self):
        return [n.model_copy(deep=True) for n in self._graph.nodes]

    @property
    def edges(self):
        return [e.model_copy(deep=True) for e in self._graph.edges]

    @property
    def is_valid(self) -> bool:
        return validate_dag(self._graph.nodes, self._graph.edges)

    def snapshot(self) -> Graph:
        return self._graph.model_copy(deep=True)

    def preview(self) -> str:
        return self._graph.to_json()

    def add_node(self, label: str, position: Optional[XYPosition] = None) -> Node:
        if not label:
            raise ValueError("Node label must not be empty.")
        if position is None:
            position = XYPosition(
                x=self.rng.random() * RANDOM_SPREAD,
                y=self.rng.random() * RANDOM_SPREAD,
            )
        node = Node(
            id=self.id_generator(),
            data=NodeData(label=label),
            position=position.model_copy(),
            source_position=Position.RIGHT,
            target_position=Position.LEFT,
        )
        if node.id in self._graph.node_ids():
            raise ValueError(f"Id generator produced an existing node id '{node.id}'.")
        self._graph = self._graph.model_copy(update={"nodes": self._graph.nodes + [node]})
        logger.debug("Added node %s (%r)", node.id, label)
        return node.model_copy(deep=True)

    def connect(
        self,
        source: str,
        target: str,
        source_handle: Optional[str] = None,
        target_handle: Optional[str] = None,
    ) -> Optional[Edge]:
        """
        Connect two nodes with a directed edge.

        Returns:
            The new edge, or None when the pair is already connected. Edge
            identity is the (source, target) pair, so a second connection
            between the same nodes is ignored whatever its handles.

        Raises:
            ConnectionRejected: Missing endpoint, self loop, or an edge that
                does not run from a right face to a left face
        """
        if not source or not target or source == target:
            raise ConnectionRejected(f"Cannot connect '{source}' to '{target}'.")

        node_map = self._graph.node_map()
        source_node = node_map.get(source)
        target_node = node_map.get(target)
        if source_node is None or target_node is None:
            raise ConnectionRejected(f"Edge {source}->{target} references missing node(s).")

        if source_node.source_position != Position.RIGHT or target_node.target_position != Position.LEFT:
            raise ConnectionRejected("Invalid edge: must go from RIGHT to LEFT.")

        for e in self._graph.edges:
            if (e.source, e.target) == (source, target):
                logger.debug("Ignoring duplicate connection %s->%s", source, target)
                return None

        edge = Edge.between(source, target, source_handle=source_handle, target_handle=target_handle)
        self._graph = self._graph.model_copy(update={"edges": self._graph.edges + [edge]})
        logger.debug("Connected %s->%s", source, target)
        return edge.model_copy(deep=True)

    def delete(self, node_ids: Iterable[str] = (), edge_ids: Iterable[str] = ()) -> None:
        """Remove nodes (with every edge touching them) and edges."""
        doomed_nodes = set(node_ids)
        doomed_edges = set(edge_ids)
        nodes = [n for n in self._graph.nodes if n.id not in doomed_nodes]
        edges = [
            e for e in self._graph.edges
            if e.id not in doomed_edges
            and e.source not in doomed_nodes
            and e.target not in doomed_nodes
        ]
        self._graph = self._graph.model_copy(update={"nodes": nodes, "edges": edges})

    def auto_layout(self) -> Graph:
        laid_out = get_layouted_elements(self._graph.nodes, self._graph.edges, self.layout_config)
        self._graph = self._graph.model_copy(update={"nodes": laid_out.nodes, "edges": laid_out.edges})
        return self.snapshot()
