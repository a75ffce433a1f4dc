"""Cycle reporting over a built dependency graph.

Cycles are surfaced as warnings only. Overlay repositories sometimes carry
unintended cross references, and the operator wants to see them rather than
have the scan blocked.
"""

from __future__ import annotations

from collections.abc import Iterator

from kustomap.graph.models import DependencyGraph
from kustomap.observability.logging import get_logger

_log = get_logger("graph.cycles")


def _adjacency(graph: DependencyGraph) -> dict[str, list[str]]:
    """Outgoing neighbours per node, in edge order; dangling edges dropped."""
    adjacency: dict[str, list[str]] = {node_id: [] for node_id in graph.nodes}
    for edge in graph.edges:
        if edge.source_node_id in graph.nodes and edge.target_node_id in graph.nodes:
            adjacency[edge.source_node_id].append(edge.target_node_id)
    return adjacency


def detect_cycles(graph: DependencyGraph) -> list[list[str]]:
    """Return every cycle found by depth-first traversal.

    Each cycle is the slice of the current DFS path from the first
    occurrence of the re-entered node through the node that closed it.
    Uses an explicit stack so deep graphs cannot exhaust the interpreter's
    recursion limit.
    """
    adjacency = _adjacency(graph)
    visited: set[str] = set()
    on_stack: set[str] = set()
    cycles: list[list[str]] = []

    for start in graph.nodes:
        if start in visited:
            continue

        path: list[str] = [start]
        visited.add(start)
        on_stack.add(start)
        stack: list[tuple[str, Iterator[str]]] = [(start, iter(adjacency[start]))]

        while stack:
            node_id, neighbours = stack[-1]
            for child in neighbours:
                if child not in visited:
                    visited.add(child)
                    on_stack.add(child)
                    path.append(child)
                    stack.append((child, iter(adjacency[child])))
                    break
                if child in on_stack:
                    cycles.append(path[path.index(child) :])
            else:
                stack.pop()
                on_stack.discard(node_id)
                path.pop()

    for cycle in cycles:
        _log.warning("dependency_cycle_detected", cycle=cycle, length=len(cycle))
    return cycles
