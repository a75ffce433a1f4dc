"""Find kustomization files in a repository listing."""

from __future__ import annotations

from collections.abc import Iterable

from kustomap.models.manifest import MANIFEST_FILENAMES
from kustomap.models.source import TreeEntry
from kustomap.observability.logging import get_logger

_log = get_logger("manifest.locator")


def is_manifest_path(path: str) -> bool:
    return path.rsplit("/", 1)[-1] in MANIFEST_FILENAMES


def find_manifest_paths(entries: Iterable[TreeEntry], scope: str = "") -> list[str]:
    """Return blob paths of kustomization files, in listing order.

    With a *scope*, only the manifest directly in the scope directory or in
    any directory nested under it is kept.
    """
    scope = scope.strip("/")
    found: list[str] = []
    for entry in entries:
        if not entry.is_blob or not is_manifest_path(entry.path):
            continue
        if scope and not entry.path.startswith(scope + "/"):
            continue
        found.append(entry.path)

    _log.info("manifests_located", scope=scope or ".", count=len(found))
    return found


def manifest_directory(manifest_path: str) -> str:
    """Directory part of a manifest path, ``""`` for the repository root."""
    return manifest_path.rsplit("/", 1)[0] if "/" in manifest_path else ""


def display_path(manifest_path: str, scope: str = "") -> str:
    """Directory of *manifest_path* relative to *scope*, ``"."`` for the scope root."""
    directory = manifest_directory(manifest_path)
    scope = scope.strip("/")
    if scope:
        if directory == scope:
            return "."
        if directory.startswith(scope + "/"):
            directory = directory[len(scope) + 1 :]
    return directory or "."
