from __future__ import annotations
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator


class Position(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"


class XYPosition(BaseModel):
    x: float = 0.0
    y: float = 0.0


class NodeData(BaseModel):
    model_config = ConfigDict(extra="allow")

    label: str = ""


def edge_id(source: str, target: str) -> str:
    return f"{source}-{target}"


class Node(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    data: NodeData = Field(default_factory=NodeData)
    position: XYPosition = Field(default_factory=XYPosition)
    # every node is left-in, right-out
    source_position: Position = Field(Position.RIGHT, alias="sourcePosition")
    target_position: Position = Field(Position.LEFT, alias="targetPosition")
    style: Dict[str, Any] = Field(default_factory=dict)

    @property
    def label(self) -> str:
        return self.data.label


class Edge(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    source: str
    target: str
    source_handle: Optional[str] = Field(None, alias="sourceHandle")
    target_handle: Optional[str] = Field(None, alias="targetHandle")
    type: str = "default"

    @model_validator(mode="after")
    def _no_self_loop(self) -> "Edge":
        if self.source == self.target:
            raise ValueError(f"Edge '{self.id}' connects node '{self.source}' to itself.")
        return self

    @classmethod
    def between(cls, source: str, target: str, **kwargs: Any) -> "Edge":
        return cls(id=edge_id(source, target), source=source, target=target, **kwargs)


class Graph(BaseModel):
    model_config = ConfigDict(extra="allow")

    nodes: List[Node] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)

    def node_map(self) -> Dict[str, Node]:
        return {n.id: n for n in self.nodes}

    def node_ids(self) -> Set[str]:
        return {n.id for n in self.nodes}

    def incident_node_ids(self) -> Set[str]:
        """Ids touched by at least one edge whose both endpoints exist."""
        ids = self.node_ids()
        touched: Set[str] = set()
        for e in self.edges:
            if e.source in ids and e.target in ids:
                touched.add(e.source)
                touched.add(e.target)
        return touched

    def dangling_edges(self) -> List[Edge]:
        ids = self.node_ids()
        return [e for e in self.edges if e.source not in ids or e.target not in ids]

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)

    @classmethod
    def from_file(cls, path: Path) -> "Graph":
        # JSON snapshots parse as YAML too
        data = yaml.safe_load(Path(path).read_text()) or {}
        return cls.model_validate(data)
