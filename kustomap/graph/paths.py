"""Pure string helpers for matching kustomization references.

Resolution is lexical: nothing here touches the filesystem, so a ``..`` never
walks through a real directory and the same reference always resolves the
same way for local and remote scans.
"""

from __future__ import annotations

import re

_REMOTE_PREFIXES = ("http://", "https://")
_REF_PARAM = re.compile(r"(?:^|&)ref=([^&#]+)")
_PLAIN_YAML_SUFFIXES = (".yaml", ".yml")
_MANIFEST_SUFFIXES = ("kustomization.yaml", "kustomization.yml")


def is_remote_reference(reference: str) -> bool:
    return reference.startswith(_REMOTE_PREFIXES)


def is_plain_yaml_file(reference: str) -> bool:
    """True for resource files such as ``deployment.yaml``.

    Such references name plain Kubernetes objects rather than another
    kustomization, so they never become graph edges.
    """
    lower = reference.lower()
    return lower.endswith(_PLAIN_YAML_SUFFIXES) and not lower.endswith(_MANIFEST_SUFFIXES)


def normalize_node_path(path: str) -> str:
    """Strip one leading ``./`` and any trailing ``/``."""
    if path.startswith("./"):
        path = path[2:]
    return path.rstrip("/")


def resolve_relative(base: str, reference: str) -> str:
    """Resolve *reference* against the directory *base*.

    ``..`` pops the last accumulated segment (never past the root), ``.`` and
    empty segments are no-ops. Returns ``"."`` for the root.
    """
    clean_base = normalize_node_path(base)
    clean_ref = normalize_node_path(reference)

    parts: list[str] = []
    if clean_base not in ("", "."):
        parts = [p for p in clean_base.split("/") if p not in ("", ".")]

    for part in clean_ref.split("/"):
        if part == "..":
            if parts:
                parts.pop()
        elif part not in (".", ""):
            parts.append(part)

    return "/".join(parts) or "."


def normalize_remote_url(url: str) -> str:
    """Drop every query parameter except ``ref``.

    ``https://host/p?ref_type=heads&ref=main`` and ``https://host/p?ref=main``
    both normalize to ``https://host/p?ref=main``.
    """
    base, _, query = url.partition("?")
    if query:
        match = _REF_PARAM.search(query)
        if match:
            return f"{base}?ref={match.group(1)}"
    return base


def remote_label(reference: str) -> str:
    """Final path segment of a remote reference, query stripped."""
    last = reference.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]
    return last or "remote"
