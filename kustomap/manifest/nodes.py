"""Turn raw kustomization text into classified graph nodes."""

from __future__ import annotations

import itertools

from kustomap.manifest.classify import classify_path
from kustomap.manifest.parser import parse_manifest
from kustomap.models.manifest import ManifestNode
from kustomap.models.source import RepositoryCoordinate


class NodeBuilder:
    """Parses, classifies and numbers manifest nodes.

    Ids are ``node-<n>`` from a counter owned by the builder; they are
    assigned in call order and never reused by the same builder.
    """

    def __init__(self) -> None:
        self._ids = itertools.count()

    def build(
        self,
        text: str,
        display_path: str,
        remote_source_url: str | None = None,
    ) -> ManifestNode:
        """Build a node for the manifest at *display_path*.

        Raises:
            InvalidManifest: if *text* is not a kustomization mapping. No id
                is consumed in that case.
        """
        document = parse_manifest(text, display_path)
        return ManifestNode(
            id=f"node-{next(self._ids)}",
            path=display_path,
            kind=classify_path(display_path),
            document=document,
            is_remote=remote_source_url is not None,
            remote_source_url=remote_source_url,
        )


def remote_source_url(coordinate: RepositoryCoordinate, directory: str) -> str:
    """Canonical remote reference for a kustomization directory.

    Matches the ``https://<host>/<project>/<dir>?ref=<branch>`` form used in
    kustomize remote ``resources`` entries.
    """
    base = f"https://{coordinate.host}/{coordinate.project_path}"
    directory = directory.strip("/")
    if directory:
        base = f"{base}/{directory}"
    return f"{base}?ref={coordinate.branch}"
