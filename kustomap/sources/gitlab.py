"""GitLab REST API (v4) client.

Works against gitlab.com and self-hosted instances: the API lives under
``https://<host>/api/v4`` and projects are addressed by their URL-encoded
``namespace/project`` path. The recursive tree listing is one call per page;
pages are followed through ``X-Next-Page`` up to ``GitLabConfig.max_pages``.
"""

from __future__ import annotations

from urllib.parse import quote

import httpx

from kustomap.errors import BranchNotFound, ProviderRequestError, TransientProviderError
from kustomap.models.config import GitLabConfig, HttpConfig
from kustomap.models.source import ProviderKind, RepositoryCoordinate, TreeEntry, TreeListing
from kustomap.observability.logging import get_logger
from kustomap.sources.base import ProviderClient
from kustomap.sources.http import GITLAB_RATE_LIMIT, ProviderHttpClient
from kustomap.sources.url import ParsedSource

_log = get_logger("sources.gitlab")

_PER_PAGE = "100"


def _auth_headers(token: str) -> dict[str, str]:
    headers = {"Accept": "application/json"}
    if token:
        headers["PRIVATE-TOKEN"] = token
    return headers


class GitLabClient(ProviderClient):
    """GitLab implementation of :class:`ProviderClient`."""

    def __init__(
        self,
        config: GitLabConfig,
        http_config: HttpConfig,
        client: httpx.AsyncClient | None = None,
        http: ProviderHttpClient | None = None,
    ) -> None:
        self._max_pages = max(1, config.max_pages)
        self._http = http or ProviderHttpClient(
            "gitlab",
            http_config,
            rate_limit=GITLAB_RATE_LIMIT,
            headers=_auth_headers(config.token),
            client=client,
        )

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.GITLAB

    @staticmethod
    def _project_url(host: str, project_path: str) -> str:
        return f"https://{host}/api/v4/projects/{quote(project_path, safe='')}"

    async def default_branch(self, source: ParsedSource) -> str | None:
        url = self._project_url(source.host, source.project_path)
        try:
            data = await self._http.get_json(url)
        except (ProviderRequestError, TransientProviderError) as exc:
            _log.warning("default_branch_lookup_failed", project=source.project_path, error=str(exc))
            return None
        branch = data.get("default_branch") if isinstance(data, dict) else None
        return str(branch) if branch else None

    async def branch_exists(self, source: ParsedSource, branch: str) -> bool:
        url = (
            f"{self._project_url(source.host, source.project_path)}"
            f"/repository/branches/{quote(branch, safe='')}"
        )
        response = await self._http.get(url)
        if response.status_code == 404:
            return False
        self._http.ensure_success(response, url)
        return True

    async def list_tree(self, coordinate: RepositoryCoordinate) -> TreeListing:
        url = f"{self._project_url(coordinate.host, coordinate.project_path)}/repository/tree"
        entries: list[TreeEntry] = []
        truncated = False
        page = "1"
        pages_read = 0

        while page:
            if pages_read >= self._max_pages:
                truncated = True
                _log.warning(
                    "gitlab_tree_page_limit_reached",
                    project=coordinate.project_path,
                    max_pages=self._max_pages,
                    next_page=page,
                )
                break

            response = await self._http.get(
                url,
                params={
                    "ref": coordinate.branch,
                    "recursive": "true",
                    "per_page": _PER_PAGE,
                    "page": page,
                },
            )
            if response.status_code == 404:
                raise BranchNotFound(coordinate.branch, coordinate.project_path)
            self._http.ensure_success(response, url)

            for item in response.json():
                if isinstance(item, dict) and "path" in item:
                    entries.append(TreeEntry(path=str(item["path"]), type=str(item.get("type", ""))))
            pages_read += 1
            page = response.headers.get("X-Next-Page", "").strip()

        _log.info(
            "gitlab_tree_listed",
            project=coordinate.project_path,
            branch=coordinate.branch,
            pages=pages_read,
            entries=len(entries),
            truncated=truncated,
        )
        return TreeListing(entries=entries, truncated=truncated)

    async def fetch_raw(self, coordinate: RepositoryCoordinate, path: str) -> str:
        url = (
            f"{self._project_url(coordinate.host, coordinate.project_path)}"
            f"/repository/files/{quote(path, safe='')}/raw"
        )
        response = await self._http.get(url, params={"ref": coordinate.branch})
        return self._http.ensure_success(response, url).text

    async def aclose(self) -> None:
        await self._http.aclose()
