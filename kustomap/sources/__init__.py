"""Manifest sources: remote Git hosting providers and local directories.

Submodules:
    url            -- Repository URL parsing (provider, owner, project).
    disambiguator  -- Longest-first branch/sub-path split by API probing.
    http           -- Retry, backoff and rate-limit handling over httpx.
    github, gitlab -- Provider API clients.
    cache          -- Content cache with shared in-flight fetches.
    resolver       -- RemoteResolver tying the above together.
    local          -- Worklist directory walk for local scans.
"""

from kustomap.sources.base import ProviderClient
from kustomap.sources.cache import ContentCache
from kustomap.sources.disambiguator import BranchPathDisambiguator, Confirmed, Exhausted, Probing
from kustomap.sources.github import GitHubClient
from kustomap.sources.gitlab import GitLabClient
from kustomap.sources.http import ProviderHttpClient
from kustomap.sources.local import walk_manifests
from kustomap.sources.resolver import RemoteResolver
from kustomap.sources.url import ParsedSource, detect_provider, parse_source_url

__all__ = [
    "BranchPathDisambiguator",
    "Confirmed",
    "ContentCache",
    "Exhausted",
    "GitHubClient",
    "GitLabClient",
    "ParsedSource",
    "Probing",
    "ProviderClient",
    "ProviderHttpClient",
    "RemoteResolver",
    "detect_provider",
    "parse_source_url",
    "walk_manifests",
]
