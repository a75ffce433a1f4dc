"""GitHub REST API client.

Tree listing is two-step: resolve the branch head to a commit sha, then fetch
the recursive tree of that commit. File contents come from the raw content
host, which bypasses the REST API quota.
"""

from __future__ import annotations

from urllib.parse import quote

import httpx

from kustomap.errors import BranchNotFound, ProviderRequestError, TransientProviderError
from kustomap.models.config import GitHubConfig, HttpConfig
from kustomap.models.source import ProviderKind, RepositoryCoordinate, TreeEntry, TreeListing
from kustomap.observability.logging import get_logger
from kustomap.sources.base import ProviderClient
from kustomap.sources.http import GITHUB_RATE_LIMIT, ProviderHttpClient
from kustomap.sources.url import ParsedSource

_log = get_logger("sources.github")


def _auth_headers(token: str) -> dict[str, str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


class GitHubClient(ProviderClient):
    """GitHub implementation of :class:`ProviderClient`."""

    def __init__(
        self,
        config: GitHubConfig,
        http_config: HttpConfig,
        client: httpx.AsyncClient | None = None,
        http: ProviderHttpClient | None = None,
    ) -> None:
        self._api_url = config.api_url.rstrip("/")
        self._raw_url = config.raw_url.rstrip("/")
        self._http = http or ProviderHttpClient(
            "github",
            http_config,
            rate_limit=GITHUB_RATE_LIMIT,
            headers=_auth_headers(config.token),
            client=client,
        )

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.GITHUB

    def _repo_url(self, owner: str, project: str) -> str:
        return f"{self._api_url}/repos/{quote(owner, safe='')}/{quote(project, safe='')}"

    async def default_branch(self, source: ParsedSource) -> str | None:
        url = self._repo_url(source.owner, source.project)
        try:
            data = await self._http.get_json(url)
        except (ProviderRequestError, TransientProviderError) as exc:
            _log.warning("default_branch_lookup_failed", repo=source.project_path, error=str(exc))
            return None
        branch = data.get("default_branch") if isinstance(data, dict) else None
        return str(branch) if branch else None

    async def branch_exists(self, source: ParsedSource, branch: str) -> bool:
        url = f"{self._repo_url(source.owner, source.project)}/branches/{quote(branch, safe='')}"
        response = await self._http.get(url)
        if response.status_code == 404:
            return False
        self._http.ensure_success(response, url)
        return True

    async def list_tree(self, coordinate: RepositoryCoordinate) -> TreeListing:
        repo_url = self._repo_url(coordinate.owner, coordinate.project)

        ref_url = f"{repo_url}/git/ref/heads/{quote(coordinate.branch, safe='/')}"
        response = await self._http.get(ref_url)
        if response.status_code == 404:
            raise BranchNotFound(coordinate.branch, coordinate.project_path)
        self._http.ensure_success(response, ref_url)
        ref = response.json()
        sha = ref.get("object", {}).get("sha") if isinstance(ref, dict) else None
        if not sha:
            raise ProviderRequestError(
                f"github returned no commit sha for branch {coordinate.branch!r} of {coordinate.project_path}"
            )

        tree_url = f"{repo_url}/git/trees/{sha}"
        data = await self._http.get_json(tree_url, params={"recursive": "1"})
        entries = [
            TreeEntry(path=str(item["path"]), type=str(item.get("type", "")))
            for item in data.get("tree", [])
            if isinstance(item, dict) and "path" in item
        ]
        truncated = bool(data.get("truncated", False))
        _log.info(
            "github_tree_listed",
            repo=coordinate.project_path,
            branch=coordinate.branch,
            sha=sha,
            entries=len(entries),
            truncated=truncated,
        )
        return TreeListing(entries=entries, truncated=truncated)

    async def fetch_raw(self, coordinate: RepositoryCoordinate, path: str) -> str:
        url = (
            f"{self._raw_url}/{quote(coordinate.owner, safe='')}/{quote(coordinate.project, safe='')}"
            f"/{quote(coordinate.branch, safe='/')}/{quote(path, safe='/')}"
        )
        response = self._http.ensure_success(await self._http.get(url), url)
        return response.text

    async def aclose(self) -> None:
        await self._http.aclose()
