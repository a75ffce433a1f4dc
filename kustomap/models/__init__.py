"""Core data structures for kustomap.

``ScanResult`` lives in ``kustomap.models.scan`` and is not re-exported here:
it depends on ``kustomap.graph``, which itself imports these models.
"""

from kustomap.models.config import KustomapConfig
from kustomap.models.manifest import (
    MANIFEST_FILENAMES,
    LocalManifest,
    ManifestNode,
    NodeKind,
    SkippedManifest,
)
from kustomap.models.source import (
    Confidence,
    ProviderKind,
    RepositoryCoordinate,
    ResolvedSource,
    TreeEntry,
    TreeListing,
)

__all__ = [
    "MANIFEST_FILENAMES",
    "Confidence",
    "KustomapConfig",
    "LocalManifest",
    "ManifestNode",
    "NodeKind",
    "ProviderKind",
    "RepositoryCoordinate",
    "ResolvedSource",
    "SkippedManifest",
    "TreeEntry",
    "TreeListing",
]
