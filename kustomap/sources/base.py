"""Provider client interface.

Every hosting provider exposes the same four operations to the resolver.
Implementations translate provider-specific responses into
:class:`TreeListing` and plain text and let ``kustomap.errors`` exceptions
propagate.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from kustomap.models.source import ProviderKind, RepositoryCoordinate, TreeListing
from kustomap.sources.url import ParsedSource


class ProviderClient(ABC):
    """Abstract base class for hosting-provider API clients."""

    @property
    @abstractmethod
    def kind(self) -> ProviderKind:
        """Provider served by this client."""

    @abstractmethod
    async def default_branch(self, source: ParsedSource) -> str | None:
        """Return the repository's default branch, or None if unknown."""

    @abstractmethod
    async def branch_exists(self, source: ParsedSource, branch: str) -> bool:
        """Return True if *branch* exists, False on a 404.

        Raises:
            ProviderRequestError: any other client error.
            TransientProviderError: retries exhausted.
            RateLimitExceeded: quota exhausted.
        """

    @abstractmethod
    async def list_tree(self, coordinate: RepositoryCoordinate) -> TreeListing:
        """Return the full recursive listing of ``coordinate.branch``.

        The listing is not scoped to ``coordinate.sub_path``.
        """

    @abstractmethod
    async def fetch_raw(self, coordinate: RepositoryCoordinate, path: str) -> str:
        """Return the raw text of the file at repository path *path*."""

    @abstractmethod
    async def aclose(self) -> None:
        """Release network resources."""
