"""Remote source data structures: coordinates and tree listings."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class ProviderKind(StrEnum):
    """Supported Git hosting providers."""

    GITHUB = "github"
    GITLAB = "gitlab"


class Confidence(StrEnum):
    """How the branch/sub-path split of a URL was established."""

    CONFIRMED = "confirmed"  # provider confirmed the branch exists
    LOW = "low"  # fallback, nothing was confirmed


@dataclass(frozen=True)
class RepositoryCoordinate:
    """A fully resolved scan scope on a hosting provider.

    ``owner`` is the GitLab namespace (which may contain ``/`` for nested
    groups) or the GitHub account. ``sub_path`` is empty or a slash-joined
    relative path without leading or trailing slash.
    """

    provider: ProviderKind
    host: str
    owner: str
    project: str
    branch: str
    sub_path: str = ""

    @property
    def project_path(self) -> str:
        """Return ``owner/project``, or just the project without an owner."""
        return f"{self.owner}/{self.project}" if self.owner else self.project

    def cache_key(self, path: str) -> tuple[str, str, str, str, str]:
        """Return the content-cache key for *path* within this coordinate."""
        return (self.host, self.owner, self.project, self.branch, path)

    def to_dict(self) -> dict[str, str]:
        return {
            "provider": self.provider.value,
            "host": self.host,
            "owner": self.owner,
            "project": self.project,
            "branch": self.branch,
            "sub_path": self.sub_path,
        }


@dataclass(frozen=True)
class ResolvedSource:
    """Result of resolving a repository URL."""

    coordinate: RepositoryCoordinate
    confidence: Confidence
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class TreeEntry:
    """One entry of a recursive repository listing."""

    path: str
    type: str  # "blob" or "tree"

    @property
    def is_blob(self) -> bool:
        return self.type == "blob"


@dataclass
class TreeListing:
    """Recursive listing of a branch, possibly incomplete."""

    entries: list[TreeEntry] = field(default_factory=list)
    truncated: bool = False  # provider truncated the listing or page cap hit

    def scoped(self, sub_path: str) -> TreeListing:
        """Return the entries equal to or nested under *sub_path*."""
        if not sub_path:
            return self
        prefix = sub_path if sub_path.endswith("/") else sub_path + "/"
        bare = sub_path.rstrip("/")
        kept = [e for e in self.entries if e.path == bare or e.path.startswith(prefix)]
        return TreeListing(entries=kept, truncated=self.truncated)
