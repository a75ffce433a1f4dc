"""Kustomization text decoding."""

from __future__ import annotations

from typing import Any

import yaml

from kustomap.errors import InvalidManifest


def parse_manifest(text: str, path: str = "<memory>") -> dict[str, Any]:
    """Decode *text* into a kustomization mapping.

    Raises:
        InvalidManifest: on a YAML syntax error, or when the document is not a
            mapping (a scalar, a list, or an empty file).
    """
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise InvalidManifest(path, f"YAML syntax error: {exc}") from exc

    if not isinstance(document, dict):
        kind = "empty document" if document is None else type(document).__name__
        raise InvalidManifest(path, f"expected a mapping at the top level, got {kind}")
    return document
