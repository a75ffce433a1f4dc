"""Exception taxonomy for kustomap scans.

Whole-scan failures (``InvalidSourceUrl``, ``BranchNotFound``,
``RateLimitExceeded``, ``NoManifestsFound``) propagate to the caller.
Per-file failures (``InvalidManifest`` and provider errors raised while
fetching a single manifest) are caught by the scanner, logged, and only drop
that file from the graph.
"""

from __future__ import annotations

from datetime import datetime


class KustomapError(Exception):
    """Base class for every kustomap error."""


class InvalidSourceUrl(KustomapError):
    """The URL does not match any supported hosting-provider shape."""

    def __init__(self, url: str, reason: str = "") -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"Unsupported repository URL {url!r}{detail}. Expected "
            "https://github.com/<owner>/<repo>/tree/<branch>/<path> or "
            "https://<gitlab-host>/<namespace>/<project>/-/tree/<branch>/<path>"
        )
        self.url = url


class ProviderRequestError(KustomapError):
    """The provider rejected a request with a non-retryable client error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BranchNotFound(ProviderRequestError):
    """The provider does not know the branch the scan was resolved to."""

    def __init__(self, branch: str, project: str) -> None:
        super().__init__(f"Branch {branch!r} not found in {project}", status_code=404)
        self.branch = branch
        self.project = project


class TransientProviderError(KustomapError):
    """Server or transport failure that persisted through every retry."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitExceeded(KustomapError):
    """The provider reported an exhausted request quota."""

    def __init__(self, provider: str, reset_at: datetime | None = None) -> None:
        when = reset_at.isoformat() if reset_at is not None else "an unknown time"
        super().__init__(f"{provider} rate limit exceeded; quota resets at {when}")
        self.provider = provider
        self.reset_at = reset_at


class InvalidManifest(KustomapError):
    """A kustomization file could not be decoded into a mapping."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Invalid kustomization at {path}: {reason}")
        self.path = path
        self.reason = reason


class NoManifestsFound(KustomapError):
    """No kustomization file was found anywhere in the scan scope."""

    def __init__(self, scope: str, detail: str = "") -> None:
        message = f"No kustomization.yaml found in {scope or 'the repository root'}"
        super().__init__(f"{message} ({detail})" if detail else message)
        self.scope = scope
