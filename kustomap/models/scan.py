"""Scan result data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from kustomap.graph.models import DependencyGraph
from kustomap.models.manifest import SkippedManifest
from kustomap.models.source import RepositoryCoordinate


@dataclass(frozen=True)
class ScanResult:
    """Everything a scan hands to renderers: graph, cycles and warnings.

    ``source`` is None for local scans. ``possibly_incomplete`` is set when
    the provider truncated the listing.
    """

    graph: DependencyGraph
    cycles: list[list[str]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    skipped: list[SkippedManifest] = field(default_factory=list)
    source: RepositoryCoordinate | None = None
    possibly_incomplete: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source.to_dict() if self.source is not None else None,
            "graph": self.graph.to_dict(),
            "cycles": self.cycles,
            "warnings": self.warnings,
            "skipped": [{"path": s.path, "reason": s.reason} for s in self.skipped],
            "possibly_incomplete": self.possibly_incomplete,
        }
