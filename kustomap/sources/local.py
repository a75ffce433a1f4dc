"""Local directory enumeration.

Walks a directory tree with an explicit worklist, so deeply nested trees
cannot hit the recursion limit, and returns one :class:`LocalManifest` per
directory that holds a kustomization. Hidden directories and
``node_modules`` are never entered.
"""

from __future__ import annotations

from pathlib import Path

from kustomap.models.manifest import MANIFEST_FILENAMES, LocalManifest
from kustomap.observability.logging import get_logger

_log = get_logger("sources.local")

IGNORED_DIRECTORIES = frozenset({"node_modules"})


def _is_ignored(name: str) -> bool:
    return name.startswith(".") or name in IGNORED_DIRECTORIES


def walk_manifests(root: Path | str) -> list[LocalManifest]:
    """Collect kustomizations under *root* in depth-first pre-order.

    Sibling directories are visited in name order. ``kustomization.yaml`` is
    preferred over ``kustomization.yml`` when a directory has both. Display
    paths are relative to *root*, with ``"."`` for *root* itself.

    Raises:
        NotADirectoryError: if *root* is not a directory.
    """
    root = Path(root)
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")

    results: list[LocalManifest] = []
    worklist: list[tuple[Path, str]] = [(root, "")]

    while worklist:
        directory, relative = worklist.pop()
        try:
            children = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as exc:
            _log.warning("directory_unreadable", path=relative or ".", error=str(exc))
            continue

        for filename in MANIFEST_FILENAMES:
            candidate = directory / filename
            if candidate.is_file():
                try:
                    content = candidate.read_text(encoding="utf-8")
                except (OSError, UnicodeDecodeError) as exc:
                    _log.warning("manifest_unreadable", path=relative or ".", error=str(exc))
                    break
                results.append(LocalManifest(path=relative or ".", content=content))
                break

        subdirectories = [c for c in children if c.is_dir() and not _is_ignored(c.name)]
        # reversed so the alphabetically first child is popped next
        for child in reversed(subdirectories):
            child_relative = f"{relative}/{child.name}" if relative else child.name
            worklist.append((child, child_relative))

    _log.info("local_walk_complete", root=str(root), manifests=len(results))
    return results
