"""Dependency graph construction from discovered kustomizations.

For every node, each entry of ``resources``, ``bases`` (deprecated) and
``components`` is resolved to another node of the same scan:

* remote references (``http://``/``https://``) match a node whose remote
  source URL is equal once both sides are normalized to ``?ref=`` only;
* local references are resolved lexically against the node's display path.

Matches emit an edge from the REFERENCED node to the REFERENCING node.
Unresolved references only log a warning: they usually point at plain
resources outside the scan scope.
"""

from __future__ import annotations

import itertools
from collections.abc import Iterable, Sequence
from typing import Any

from kustomap.graph.models import DependencyEdge, DependencyGraph, EdgeKind, GraphIntegrityWarning
from kustomap.graph.paths import (
    is_plain_yaml_file,
    is_remote_reference,
    normalize_node_path,
    normalize_remote_url,
    remote_label,
    resolve_relative,
)
from kustomap.models.manifest import ManifestNode
from kustomap.observability.logging import get_logger

_log = get_logger("graph.builder")

# (field, edge kind, skip plain yaml files)
_REFERENCE_FIELDS: tuple[tuple[str, EdgeKind, bool], ...] = (
    ("resources", EdgeKind.RESOURCE, True),
    ("bases", EdgeKind.RESOURCE, True),
    ("components", EdgeKind.COMPONENT, False),
)


def _reference_list(node: ManifestNode, field_name: str) -> list[str]:
    """Return the string entries of a reference field, ignoring bad shapes."""
    raw: Any = node.document.get(field_name)
    if raw is None:
        return []
    if not isinstance(raw, list):
        _log.warning(
            "reference_field_not_a_list",
            node_id=node.id,
            path=node.path,
            field=field_name,
            value_type=type(raw).__name__,
        )
        return []
    refs: list[str] = []
    for item in raw:
        if isinstance(item, str):
            refs.append(item)
        else:
            _log.warning(
                "reference_entry_not_a_string",
                node_id=node.id,
                path=node.path,
                field=field_name,
                value_type=type(item).__name__,
            )
    return refs


class _NodeIndex:
    """Lookup tables for both reference styles, first node wins on ties."""

    def __init__(self, nodes: Sequence[ManifestNode]) -> None:
        self.by_path: dict[str, ManifestNode] = {}
        self.by_remote_url: dict[str, ManifestNode] = {}
        for node in nodes:
            self.by_path.setdefault(normalize_node_path(node.path), node)
            if node.remote_source_url:
                self.by_remote_url.setdefault(normalize_remote_url(node.remote_source_url), node)

    def known_remote_urls(self) -> list[str]:
        return list(self.by_remote_url)


class DependencyGraphBuilder:
    """Builds :class:`DependencyGraph` values.

    Edge ids come from a counter owned by the builder, so ids stay unique
    across every graph one builder produces.
    """

    def __init__(self) -> None:
        self._edge_ids = itertools.count()

    def build(self, nodes: Iterable[ManifestNode]) -> DependencyGraph:
        ordered = list(nodes)
        node_map: dict[str, ManifestNode] = {}
        for node in ordered:
            if node.id in node_map:
                _log.error("duplicate_node_id", node_id=node.id, path=node.path)
                continue
            node_map[node.id] = node

        index = _NodeIndex(ordered)
        edges: list[DependencyEdge] = []
        for node in ordered:
            edges.extend(self._edges_for(node, index))

        integrity = validate_edges(node_map, edges)
        graph = DependencyGraph(
            nodes=node_map,
            edges=tuple(edges),
            root_path=ordered[0].path if ordered else "",
            integrity_warnings=tuple(integrity),
        )
        _log.info(
            "dependency_graph_built",
            nodes=graph.node_count,
            edges=graph.edge_count,
            integrity_warnings=len(integrity),
        )
        return graph

    def _edges_for(self, node: ManifestNode, index: _NodeIndex) -> list[DependencyEdge]:
        edges: list[DependencyEdge] = []
        for field_name, kind, skip_plain_files in _REFERENCE_FIELDS:
            for reference in _reference_list(node, field_name):
                if skip_plain_files and is_plain_yaml_file(reference):
                    _log.debug("plain_resource_skipped", node_id=node.id, reference=reference)
                    continue
                referenced = self._resolve(node, reference, index)
                if referenced is None:
                    continue
                edges.append(
                    DependencyEdge(
                        id=f"edge-{next(self._edge_ids)}",
                        source_node_id=referenced.id,
                        target_node_id=node.id,
                        kind=kind,
                        label=remote_label(reference) if is_remote_reference(reference) else reference,
                    )
                )
        return edges

    def _resolve(self, node: ManifestNode, reference: str, index: _NodeIndex) -> ManifestNode | None:
        if is_remote_reference(reference):
            normalized = normalize_remote_url(reference)
            found = index.by_remote_url.get(normalized)
            if found is None:
                _log.warning(
                    "remote_reference_unresolved",
                    node_id=node.id,
                    path=node.path,
                    reference=reference,
                    normalized=normalized,
                    known_remote_urls=index.known_remote_urls(),
                )
            return found

        resolved = resolve_relative(node.path, reference)
        found = index.by_path.get(normalize_node_path(resolved))
        if found is None:
            _log.warning(
                "local_reference_unresolved",
                node_id=node.id,
                path=node.path,
                reference=reference,
                resolved=resolved,
            )
        return found


def validate_edges(
    nodes: dict[str, ManifestNode],
    edges: Iterable[DependencyEdge],
) -> list[GraphIntegrityWarning]:
    """Report every edge endpoint missing from *nodes*; never raises."""
    warnings: list[GraphIntegrityWarning] = []
    for edge in edges:
        for endpoint, node_id in (("source", edge.source_node_id), ("target", edge.target_node_id)):
            if node_id not in nodes:
                warning = GraphIntegrityWarning(edge_id=edge.id, endpoint=endpoint, node_id=node_id)
                warnings.append(warning)
                _log.error(
                    "graph_integrity_warning",
                    edge_id=edge.id,
                    endpoint=endpoint,
                    node_id=node_id,
                    known_node_ids=list(nodes),
                )
    return warnings
