"""Manifest node data structures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

MANIFEST_FILENAMES = ("kustomization.yaml", "kustomization.yml")


class NodeKind(StrEnum):
    """Role of a kustomization in a layered repository (path heuristic)."""

    BASE = "base"
    OVERLAY = "overlay"
    COMPONENT = "component"


@dataclass(frozen=True)
class ManifestNode:
    """One discovered kustomization.

    ``path`` is the display path relative to the scanned root or sub-path
    (``"."`` for the root itself), never the provider's absolute path.
    """

    id: str
    path: str
    kind: NodeKind
    document: dict[str, Any]
    is_remote: bool = False
    remote_source_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "path": self.path,
            "kind": self.kind.value,
            "document": self.document,
            "is_remote": self.is_remote,
            "remote_source_url": self.remote_source_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ManifestNode:
        return cls(
            id=str(data["id"]),
            path=str(data["path"]),
            kind=NodeKind(data["kind"]),
            document=dict(data.get("document") or {}),
            is_remote=bool(data.get("is_remote", False)),
            remote_source_url=data.get("remote_source_url"),
        )


@dataclass(frozen=True)
class LocalManifest:
    """Raw text of one kustomization found on local disk."""

    path: str  # display path of the containing directory
    content: str


@dataclass(frozen=True)
class SkippedManifest:
    """A manifest that was discovered but contributed no node."""

    path: str
    reason: str
