"""Tests for reference path helpers, graph building and cycle detection."""

from __future__ import annotations

from typing import Any

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from kustomap.graph import (
    DependencyEdge,
    DependencyGraph,
    DependencyGraphBuilder,
    EdgeKind,
    detect_cycles,
    validate_edges,
)
from kustomap.graph.paths import (
    is_plain_yaml_file,
    is_remote_reference,
    normalize_node_path,
    normalize_remote_url,
    remote_label,
    resolve_relative,
)
from kustomap.models.manifest import ManifestNode, NodeKind

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _node(
    node_id: str,
    path: str,
    document: dict[str, Any] | None = None,
    remote_source_url: str | None = None,
) -> ManifestNode:
    return ManifestNode(
        id=node_id,
        path=path,
        kind=NodeKind.BASE,
        document=document or {},
        is_remote=remote_source_url is not None,
        remote_source_url=remote_source_url,
    )


def _edge(edge_id: str, source: str, target: str) -> DependencyEdge:
    return DependencyEdge(id=edge_id, source_node_id=source, target_node_id=target, kind=EdgeKind.RESOURCE, label="")


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


class TestPaths:
    @pytest.mark.parametrize(
        ("base", "reference", "expected"),
        [
            ("overlays/prod", "../../base", "base"),
            ("overlays/prod", "../base", "overlays/base"),
            ("overlays/prod", "./patches", "overlays/prod/patches"),
            (".", "base", "base"),
            (".", "../../outside", "outside"),
            ("a/b", "..", "a"),
            ("a", "..", "."),
            ("a/b", "./c//d/", "a/b/c/d"),
        ],
    )
    def test_resolve_relative(self, base: str, reference: str, expected: str) -> None:
        """Resolution is lexical and never climbs above the root."""
        assert resolve_relative(base, reference) == expected

    def test_normalize_node_path(self) -> None:
        """One leading ./ and trailing slashes are stripped."""
        assert normalize_node_path("./base/") == "base"
        assert normalize_node_path("base") == "base"

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://gitlab.com/g/p/base?ref_type=heads&ref=main", "https://gitlab.com/g/p/base?ref=main"),
            ("https://gitlab.com/g/p/base?ref=main", "https://gitlab.com/g/p/base?ref=main"),
            ("https://github.com/a/r/base?timeout=90s&ref=v1.2", "https://github.com/a/r/base?ref=v1.2"),
            ("https://github.com/a/r/base?timeout=90s", "https://github.com/a/r/base"),
            ("https://github.com/a/r/base", "https://github.com/a/r/base"),
        ],
    )
    def test_normalize_remote_url(self, url: str, expected: str) -> None:
        """Only the ref parameter survives normalization."""
        assert normalize_remote_url(url) == expected

    def test_remote_label(self) -> None:
        """Labels are the last path segment without the query."""
        assert remote_label("https://github.com/a/r/apps/base?ref=main") == "base"
        assert remote_label("https://github.com/a/r/apps/base/?ref=main") == "base"

    def test_reference_kinds(self) -> None:
        """URL prefixes mark remote references; plain yaml files are recognised."""
        assert is_remote_reference("https://github.com/a/r")
        assert not is_remote_reference("../base")
        assert is_plain_yaml_file("deployment.yaml")
        assert is_plain_yaml_file("svc.YML")
        assert not is_plain_yaml_file("../base/kustomization.yaml")
        assert not is_plain_yaml_file("../base")


_segment = st.text(alphabet="abcdefghij-_", min_size=1, max_size=6)


class TestPathProperties:
    @given(base=st.lists(_segment, max_size=5), ups=st.integers(min_value=0, max_value=8))
    @settings(max_examples=200)
    def test_parent_references_pop_segments(self, base: list[str], ups: int) -> None:
        """Each .. removes one segment, stopping at the root."""
        reference = "/".join([".."] * ups) if ups else "."
        expected = "/".join(base[: max(0, len(base) - ups)]) or "."
        assert resolve_relative("/".join(base) or ".", reference) == expected

    @given(st.lists(_segment, min_size=1, max_size=5))
    def test_resolution_is_idempotent(self, segments: list[str]) -> None:
        """Resolving an already-resolved path against the root changes nothing."""
        resolved = resolve_relative(".", "/".join(segments))
        assert resolve_relative(".", resolved) == resolved

    @given(ref=_segment)
    def test_ref_type_is_dropped(self, ref: str) -> None:
        """Any extra parameter ahead of ref is removed."""
        url = f"https://gitlab.com/g/p/base?ref_type=heads&ref={ref}"
        assert normalize_remote_url(url) == f"https://gitlab.com/g/p/base?ref={ref}"


# ---------------------------------------------------------------------------
# Graph builder
# ---------------------------------------------------------------------------


class TestGraphBuilder:
    def test_edge_points_from_referenced_to_referencing(self) -> None:
        """An overlay using a base yields source=base, target=overlay."""
        base = _node("node-0", "base")
        overlay = _node("node-1", "overlay", {"resources": ["../base"]})
        graph = DependencyGraphBuilder().build([base, overlay])

        assert graph.edge_count == 1
        edge = graph.edges[0]
        assert edge.source_node_id == base.id
        assert edge.target_node_id == overlay.id
        assert edge.kind is EdgeKind.RESOURCE
        assert edge.label == "../base"

    def test_bases_and_components_fields(self) -> None:
        """bases yields resource edges and components yields component edges."""
        nodes = [
            _node("node-0", "base"),
            _node("node-1", "components/logging"),
            _node("node-2", "overlays/prod", {"bases": ["../../base"], "components": ["../../components/logging"]}),
        ]
        graph = DependencyGraphBuilder().build(nodes)
        kinds = {(e.source_node_id, e.kind) for e in graph.edges}
        assert kinds == {("node-0", EdgeKind.RESOURCE), ("node-1", EdgeKind.COMPONENT)}
        assert all(e.target_node_id == "node-2" for e in graph.edges)

    def test_plain_yaml_resources_are_skipped(self) -> None:
        """deployment.yaml style resources never become edges."""
        nodes = [
            _node("node-0", "base", {"resources": ["deployment.yaml", "service.yml"]}),
            _node("node-1", "base/deployment.yaml"),
        ]
        assert DependencyGraphBuilder().build(nodes).edge_count == 0

    def test_unresolved_local_reference(self) -> None:
        """A reference to a directory outside the scan produces no edge."""
        nodes = [_node("node-0", "overlay", {"resources": ["../../elsewhere"]})]
        assert DependencyGraphBuilder().build(nodes).edge_count == 0

    def test_remote_reference_normalized_match(self) -> None:
        """ref_type is ignored when matching a remote reference to a node."""
        base = _node("node-0", "base", remote_source_url="https://gitlab.com/g/p/base?ref=main")
        overlay = _node(
            "node-1",
            "overlay",
            {"resources": ["https://gitlab.com/g/p/base?ref_type=heads&ref=main"]},
            remote_source_url="https://gitlab.com/g/p/overlay?ref=main",
        )
        graph = DependencyGraphBuilder().build([base, overlay])
        assert graph.edge_count == 1
        assert graph.edges[0].source_node_id == "node-0"
        assert graph.edges[0].target_node_id == "node-1"
        assert graph.edges[0].label == "base"

    def test_remote_reference_different_ref_does_not_match(self) -> None:
        """A different ref is a different node."""
        base = _node("node-0", "base", remote_source_url="https://gitlab.com/g/p/base?ref=main")
        overlay = _node("node-1", "overlay", {"resources": ["https://gitlab.com/g/p/base?ref=v2"]})
        assert DependencyGraphBuilder().build([base, overlay]).edge_count == 0

    def test_malformed_reference_fields_ignored(self) -> None:
        """Non-list fields and non-string entries are skipped."""
        nodes = [
            _node("node-0", "base"),
            _node("node-1", "overlay", {"resources": "../base", "components": [42, "../base"]}),
        ]
        graph = DependencyGraphBuilder().build(nodes)
        assert [(e.source_node_id, e.kind) for e in graph.edges] == [("node-0", EdgeKind.COMPONENT)]

    def test_root_path_and_edge_ids(self) -> None:
        """rootPath is the first node's path; edge ids keep counting across builds."""
        builder = DependencyGraphBuilder()
        nodes = [_node("node-0", "base"), _node("node-1", "overlay", {"resources": ["../base"]})]
        first = builder.build(nodes)
        second = builder.build(nodes)
        assert first.root_path == "base"
        assert first.edges[0].id != second.edges[0].id
        assert first.integrity_warnings == ()

    def test_validate_edges_reports_dangling(self) -> None:
        """Unknown endpoints are reported, not raised."""
        nodes = {"node-0": _node("node-0", "base")}
        warnings = validate_edges(nodes, [_edge("edge-9", "node-0", "node-7")])
        assert len(warnings) == 1
        assert warnings[0].endpoint == "target"
        assert warnings[0].node_id == "node-7"

    def test_graph_dict_round_trip(self) -> None:
        """A graph survives to_dict/from_dict."""
        nodes = [_node("node-0", "base"), _node("node-1", "overlay", {"resources": ["../base"]})]
        graph = DependencyGraphBuilder().build(nodes)
        restored = DependencyGraph.from_dict(graph.to_dict())
        assert restored.nodes == graph.nodes
        assert restored.edges == graph.edges


# ---------------------------------------------------------------------------
# Cycle detection
# ---------------------------------------------------------------------------


def _graph(node_ids: list[str], edges: list[tuple[str, str]]) -> DependencyGraph:
    return DependencyGraph(
        nodes={n: _node(n, n) for n in node_ids},
        edges=tuple(_edge(f"edge-{i}", s, t) for i, (s, t) in enumerate(edges)),
    )


class TestCycles:
    def test_three_node_cycle(self) -> None:
        """A -> B -> C -> A is reported exactly once, without a repeated node."""
        graph = _graph(["A", "B", "C"], [("A", "B"), ("B", "C"), ("C", "A")])
        assert detect_cycles(graph) == [["A", "B", "C"]]

    def test_acyclic(self) -> None:
        """A diamond has no cycles."""
        graph = _graph(["A", "B", "C", "D"], [("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")])
        assert detect_cycles(graph) == []

    def test_self_reference(self) -> None:
        """A node referencing itself is a one-node cycle."""
        assert detect_cycles(_graph(["A"], [("A", "A")])) == [["A"]]

    def test_cycle_slice_excludes_lead_in(self) -> None:
        """Nodes leading into a cycle are not part of it."""
        graph = _graph(["X", "A", "B"], [("X", "A"), ("A", "B"), ("B", "A")])
        assert detect_cycles(graph) == [["A", "B"]]

    def test_dangling_edges_ignored(self) -> None:
        """Edges with unknown endpoints are left out of traversal."""
        graph = _graph(["A"], [("A", "ghost"), ("ghost", "A")])
        assert detect_cycles(graph) == []

    def test_deep_chain_does_not_recurse(self) -> None:
        """A long chain closing on itself is handled without recursion limits."""
        ids = [f"n{i}" for i in range(5000)]
        edges = [(ids[i], ids[i + 1]) for i in range(len(ids) - 1)] + [(ids[-1], ids[0])]
        cycles = detect_cycles(_graph(ids, edges))
        assert len(cycles) == 1
        assert len(cycles[0]) == 5000

    def test_local_scan_cycle_between_overlays(self) -> None:
        """Mutual references between built nodes form one cycle."""
        nodes = [
            _node("node-0", "a", {"resources": ["../b"]}),
            _node("node-1", "b", {"resources": ["../a"]}),
        ]
        graph = DependencyGraphBuilder().build(nodes)
        assert detect_cycles(graph) == [["node-0", "node-1"]]
