"""Data structures for the kustomization dependency graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from kustomap.models.manifest import ManifestNode


class EdgeKind(StrEnum):
    """Which kustomization field produced an edge."""

    RESOURCE = "resource"  # `resources` and the deprecated `bases`
    COMPONENT = "component"


@dataclass(frozen=True)
class DependencyEdge:
    """A typed edge between two manifest nodes.

    Points from the REFERENCED node (``source_node_id``) to the REFERENCING
    node (``target_node_id``): "source is used by target".
    """

    id: str
    source_node_id: str
    target_node_id: str
    kind: EdgeKind
    label: str

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "source": self.source_node_id,
            "target": self.target_node_id,
            "kind": self.kind.value,
            "label": self.label,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DependencyEdge:
        return cls(
            id=str(data["id"]),
            source_node_id=str(data["source"]),
            target_node_id=str(data["target"]),
            kind=EdgeKind(data["kind"]),
            label=str(data.get("label", "")),
        )


@dataclass(frozen=True)
class GraphIntegrityWarning:
    """An edge endpoint that does not name any node of the graph."""

    edge_id: str
    endpoint: str  # "source" or "target"
    node_id: str

    def __str__(self) -> str:
        return f"edge {self.edge_id} has unknown {self.endpoint} node {self.node_id}"


@dataclass(frozen=True)
class DependencyGraph:
    """Nodes keyed by id (discovery order), edges in build order."""

    nodes: dict[str, ManifestNode] = field(default_factory=dict)
    edges: tuple[DependencyEdge, ...] = ()
    root_path: str = ""
    integrity_warnings: tuple[GraphIntegrityWarning, ...] = ()

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to plain JSON-compatible data for renderers."""
        return {
            "root_path": self.root_path,
            "nodes": [node.to_dict() for node in self.nodes.values()],
            "edges": [edge.to_dict() for edge in self.edges],
            "integrity_warnings": [str(w) for w in self.integrity_warnings],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DependencyGraph:
        """Rebuild a graph exported with :meth:`to_dict`.

        Integrity warnings are not carried over; they are a property of the
        build that produced the export.
        """
        nodes = [ManifestNode.from_dict(n) for n in data.get("nodes", [])]
        return cls(
            nodes={n.id: n for n in nodes},
            edges=tuple(DependencyEdge.from_dict(e) for e in data.get("edges", [])),
            root_path=str(data.get("root_path", "")),
        )
