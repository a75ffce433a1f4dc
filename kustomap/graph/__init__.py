"""Kustomization dependency graph.

Builds a directed graph between discovered kustomizations from their
``resources``, ``bases`` and ``components`` fields, and reports cycles.
Edges point from the referenced kustomization to the one that uses it.
"""

from kustomap.graph.builder import DependencyGraphBuilder, validate_edges
from kustomap.graph.cycles import detect_cycles
from kustomap.graph.models import DependencyEdge, DependencyGraph, EdgeKind, GraphIntegrityWarning

__all__ = [
    "DependencyEdge",
    "DependencyGraph",
    "DependencyGraphBuilder",
    "EdgeKind",
    "GraphIntegrityWarning",
    "detect_cycles",
    "validate_edges",
]
