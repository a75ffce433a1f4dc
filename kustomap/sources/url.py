"""Repository URL parsing.

Only the deterministic part of a URL is interpreted here: provider, host,
owner/namespace and project. Whatever follows ``/tree/`` or ``/blob/`` is
kept as an opaque ``branch_and_path`` remainder because branch names may
contain ``/``; :mod:`kustomap.sources.disambiguator` splits it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import unquote, urlsplit

from kustomap.errors import InvalidSourceUrl
from kustomap.models.manifest import MANIFEST_FILENAMES
from kustomap.models.source import ProviderKind

_GITHUB_HOSTS = {"github.com", "www.github.com"}

_RE_GITHUB_TREE = re.compile(r"^/([^/]+)/([^/]+?)(?:\.git)?/(tree|blob)/(.+)$")
_RE_GITHUB_BARE = re.compile(r"^/([^/]+)/([^/]+?)(?:\.git)?$")
_RE_GITLAB_TREE = re.compile(r"^/(.+?)/-/(tree|blob)/(.+)$")
_RE_GITLAB_BARE = re.compile(r"^/([^/]+(?:/[^/]+)+)$")


@dataclass(frozen=True)
class ParsedSource:
    """Deterministic part of a repository URL.

    ``branch_and_path`` is empty for bare repository URLs, which then scan the
    provider's default branch from the repository root.
    """

    provider: ProviderKind
    host: str
    owner: str
    project: str
    branch_and_path: str = ""

    @property
    def project_path(self) -> str:
        return f"{self.owner}/{self.project}" if self.owner else self.project

    @property
    def segments(self) -> list[str]:
        return [s for s in self.branch_and_path.split("/") if s]


def detect_provider(url: str) -> ProviderKind | None:
    parts = urlsplit(url)
    host = (parts.hostname or "").lower()
    if host in _GITHUB_HOSTS:
        return ProviderKind.GITHUB
    if host == "gitlab.com" or "/-/tree/" in parts.path or "/-/blob/" in parts.path:
        return ProviderKind.GITLAB
    return None


def _remainder(kind: str, raw: str) -> str:
    segments = [unquote(s) for s in raw.split("/") if s]
    # a blob URL names a file; scan the directory holding it
    if kind == "blob" and len(segments) > 1 and segments[-1] in MANIFEST_FILENAMES:
        segments = segments[:-1]
    return "/".join(segments)


def parse_source_url(url: str) -> ParsedSource:
    """Parse a GitHub or GitLab URL.

    Raises:
        InvalidSourceUrl: if the URL matches neither provider's shape.
    """
    cleaned = url.strip()
    if not cleaned.startswith(("http://", "https://")):
        raise InvalidSourceUrl(url, "only http(s) URLs are supported")

    provider = detect_provider(cleaned)
    if provider is None:
        raise InvalidSourceUrl(url, "unknown hosting provider")

    parts = urlsplit(cleaned)
    host = (parts.hostname or "").lower()
    if parts.port:
        host = f"{host}:{parts.port}"
    path = parts.path.rstrip("/")

    if provider is ProviderKind.GITHUB:
        match = _RE_GITHUB_TREE.match(path)
        if match:
            owner, repo, kind, rest = match.groups()
            return ParsedSource(provider, host, owner, repo, _remainder(kind, rest))
        match = _RE_GITHUB_BARE.match(path)
        if match:
            owner, repo = match.groups()
            return ParsedSource(provider, host, owner, repo)
        raise InvalidSourceUrl(url, "GitHub URLs must name an owner and a repository")

    match = _RE_GITLAB_TREE.match(path)
    if match:
        project_path, kind, rest = match.groups()
        project_path = project_path.removesuffix(".git")
        remainder = _remainder(kind, rest)
    else:
        match = _RE_GITLAB_BARE.match(path)
        if not match:
            raise InvalidSourceUrl(url, "GitLab URLs must name a namespace and a project")
        project_path = match.group(1).removesuffix(".git")
        remainder = ""

    namespace, _, project = project_path.rpartition("/")
    return ParsedSource(provider, host, namespace, project, remainder)
