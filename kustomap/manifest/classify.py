"""Path-based kustomization role heuristic.

The role is guessed from directory naming conventions, not declared by the
manifest, so unconventional layouts can be misclassified. Rules are evaluated
in order over the lowercased display path; the first match wins and
unmatched paths are bases.
"""

from __future__ import annotations

from collections.abc import Callable

from kustomap.models.manifest import NodeKind

_OVERLAY_MARKERS = ("/overlay", "/overlays", "/env", "/envs", "prod", "dev", "staging")
_COMPONENT_MARKERS = ("/component", "/components")

CLASSIFICATION_RULES: tuple[tuple[Callable[[str], bool], NodeKind], ...] = (
    (lambda p: "/base" in p or p == "base" or p.endswith("/bases"), NodeKind.BASE),
    (lambda p: any(marker in p for marker in _OVERLAY_MARKERS), NodeKind.OVERLAY),
    (lambda p: any(marker in p for marker in _COMPONENT_MARKERS), NodeKind.COMPONENT),
)


def classify_path(path: str, default: NodeKind = NodeKind.BASE) -> NodeKind:
    lowered = path.lower()
    for predicate, kind in CLASSIFICATION_RULES:
        if predicate(lowered):
            return kind
    return default
