"""Remote source resolution: URL -> coordinate -> listing -> file text.

:class:`RemoteResolver` owns the provider clients, the shared
``httpx.AsyncClient`` they use, and the content cache. One resolver serves
one interactive session; the cache lives exactly as long as the resolver.
"""

from __future__ import annotations

from collections.abc import Mapping

import httpx

from kustomap.errors import ProviderRequestError, TransientProviderError
from kustomap.models.config import KustomapConfig
from kustomap.models.source import Confidence, ProviderKind, RepositoryCoordinate, ResolvedSource, TreeListing
from kustomap.observability.logging import get_logger
from kustomap.sources.base import ProviderClient
from kustomap.sources.cache import ContentCache
from kustomap.sources.disambiguator import BranchPathDisambiguator, Confirmed
from kustomap.sources.github import GitHubClient
from kustomap.sources.gitlab import GitLabClient
from kustomap.sources.url import ParsedSource, parse_source_url

_log = get_logger("sources.resolver")


class RemoteResolver:
    """Resolves repository URLs and fetches listings and manifest text.

    Args:
        config:    Full configuration (provider endpoints, tokens, retries).
        providers: Optional provider clients keyed by kind, mainly for tests.
                   When omitted, GitHub and GitLab clients are built over
                   one shared ``httpx.AsyncClient`` owned by the resolver.
        cache:     Optional content cache; a fresh one by default.
    """

    def __init__(
        self,
        config: KustomapConfig,
        providers: Mapping[ProviderKind, ProviderClient] | None = None,
        cache: ContentCache | None = None,
    ) -> None:
        self._config = config
        self._client: httpx.AsyncClient | None = None
        if providers is None:
            self._client = httpx.AsyncClient(follow_redirects=True)
            providers = {
                ProviderKind.GITHUB: GitHubClient(config.github, config.http, client=self._client),
                ProviderKind.GITLAB: GitLabClient(config.gitlab, config.http, client=self._client),
            }
        self._providers = dict(providers)
        self._cache = cache if cache is not None else ContentCache()

    @property
    def cache(self) -> ContentCache:
        return self._cache

    def provider_for(self, kind: ProviderKind) -> ProviderClient:
        try:
            return self._providers[kind]
        except KeyError:
            raise ValueError(f"No client configured for provider {kind}") from None

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def resolve(self, url: str) -> ResolvedSource:
        """Turn *url* into a coordinate with a confirmed or fallback branch.

        Raises:
            InvalidSourceUrl: the URL matches no provider shape.
            RateLimitExceeded: quota exhausted while probing.
        """
        parsed = parse_source_url(url)
        provider = self.provider_for(parsed.provider)

        if not parsed.segments:
            return await self._resolve_default_branch(parsed, provider)

        disambiguator = BranchPathDisambiguator(parsed.segments)

        async def probe(branch: str) -> bool:
            try:
                return await provider.branch_exists(parsed, branch)
            except (ProviderRequestError, TransientProviderError) as exc:
                _log.warning("branch_probe_failed", branch=branch, error=str(exc))
                return False

        outcome = await disambiguator.run(probe)
        coordinate = self._coordinate(parsed, outcome.branch, outcome.sub_path)
        if isinstance(outcome, Confirmed):
            _log.info(
                "source_resolved",
                provider=parsed.provider.value,
                project=parsed.project_path,
                branch=coordinate.branch,
                sub_path=coordinate.sub_path or ".",
            )
            return ResolvedSource(coordinate=coordinate, confidence=Confidence.CONFIRMED)

        warning = (
            f"Could not confirm any branch of {parsed.project_path} in "
            f"{parsed.branch_and_path!r}; assuming the whole remainder is the branch"
        )
        return ResolvedSource(coordinate=coordinate, confidence=Confidence.LOW, warnings=(warning,))

    async def _resolve_default_branch(self, parsed: ParsedSource, provider: ProviderClient) -> ResolvedSource:
        branch = await provider.default_branch(parsed)
        if branch:
            return ResolvedSource(
                coordinate=self._coordinate(parsed, branch, ""),
                confidence=Confidence.CONFIRMED,
            )

        fallback = self._config.scan.default_branch
        _log.warning("default_branch_unknown", project=parsed.project_path, fallback=fallback)
        warning = f"Could not read the default branch of {parsed.project_path}; assuming {fallback!r}"
        return ResolvedSource(
            coordinate=self._coordinate(parsed, fallback, ""),
            confidence=Confidence.LOW,
            warnings=(warning,),
        )

    @staticmethod
    def _coordinate(parsed: ParsedSource, branch: str, sub_path: str) -> RepositoryCoordinate:
        return RepositoryCoordinate(
            provider=parsed.provider,
            host=parsed.host,
            owner=parsed.owner,
            project=parsed.project,
            branch=branch,
            sub_path=sub_path.strip("/"),
        )

    # ------------------------------------------------------------------
    # Listing and content
    # ------------------------------------------------------------------

    async def fetch_tree(self, coordinate: RepositoryCoordinate) -> TreeListing:
        """Return the recursive listing, scoped to ``coordinate.sub_path``."""
        listing = await self.provider_for(coordinate.provider).list_tree(coordinate)
        scoped = listing.scoped(coordinate.sub_path)
        if scoped.truncated:
            _log.warning(
                "tree_possibly_incomplete",
                project=coordinate.project_path,
                branch=coordinate.branch,
            )
        return scoped

    async def fetch_content(self, coordinate: RepositoryCoordinate, path: str) -> str:
        """Return the raw text of *path*; cache hits make no network call."""
        provider = self.provider_for(coordinate.provider)
        return await self._cache.get_or_fetch(
            coordinate.cache_key(path),
            lambda: provider.fetch_raw(coordinate, path),
        )

    def clear_cache(self) -> None:
        self._cache.clear()

    async def aclose(self) -> None:
        """Close provider clients and the shared HTTP client."""
        for provider in self._providers.values():
            await provider.aclose()
        if self._client is not None:
            await self._client.aclose()
