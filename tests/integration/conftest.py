"""Shared fixtures for kustomap integration tests.

Provides a fake GitHub and a fake GitLab served through
``httpx.MockTransport`` so scans run through the real provider clients,
retry policy, cache and scanner without touching the network.
"""

from __future__ import annotations

from collections.abc import Callable
from urllib.parse import unquote

import httpx
import pytest

from kustomap.models.config import GitHubConfig, GitLabConfig, HttpConfig, KustomapConfig
from kustomap.models.source import ProviderKind
from kustomap.scanner import KustomizationScanner
from kustomap.sources.github import GitHubClient
from kustomap.sources.gitlab import GitLabClient
from kustomap.sources.resolver import RemoteResolver

# ---------------------------------------------------------------------------
# Repository content
# ---------------------------------------------------------------------------

GITHUB_FILES: dict[str, str] = {
    "clusters/base/kustomization.yaml": "resources:\n  - namespace.yaml\n  - deployment.yaml\n",
    "clusters/base/deployment.yaml": "kind: Deployment\n",
    "clusters/components/monitoring/kustomization.yaml": "kind: Component\n",
    "clusters/overlays/prod/kustomization.yaml": (
        "resources:\n  - ../../base\ncomponents:\n  - ../../components/monitoring\n"
    ),
    "clusters/overlays/dev/kustomization.yaml": "resources:\n  - ../prod\n",
    "clusters/overlays/broken/kustomization.yaml": "- not\n- a mapping\n",
    "README.md": "# infra\n",
}

GITHUB_BRANCHES = {"main", "release/v2"}

GITLAB_FILES: dict[str, str] = {
    "k8s/base/kustomization.yaml": "resources: []\n",
    "k8s/overlays/staging/kustomization.yml": (
        "resources:\n  - https://gitlab.example.org/platform/infra/k8s/base?ref_type=heads&ref=main\n"
    ),
}


def _directories(files: dict[str, str]) -> list[str]:
    found: set[str] = set()
    for path in files:
        parts = path.split("/")[:-1]
        for i in range(1, len(parts) + 1):
            found.add("/".join(parts[:i]))
    return sorted(found)


class FakeGitHub:
    """Answers the GitHub REST and raw endpoints used by GitHubClient."""

    def __init__(self, files: dict[str, str], branches: set[str]) -> None:
        self.files = files
        self.branches = branches
        self.requests: list[str] = []
        self.flaky: dict[str, int] = {}  # raw path -> remaining 503s

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = unquote(request.url.raw_path.split(b"?", 1)[0].decode())
        self.requests.append(f"{request.url.host}{path}")

        if request.url.host == "raw.githubusercontent.com":
            return self._raw(path)

        prefix = "/repos/acme/infra"
        if path == prefix:
            return httpx.Response(200, json={"default_branch": "main"})
        if path.startswith(f"{prefix}/branches/"):
            branch = path.removeprefix(f"{prefix}/branches/")
            return httpx.Response(200 if branch in self.branches else 404, json={"name": branch})
        if path.startswith(f"{prefix}/git/ref/heads/"):
            branch = path.removeprefix(f"{prefix}/git/ref/heads/")
            if branch not in self.branches:
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(200, json={"object": {"sha": f"sha-{branch}"}})
        if path.startswith(f"{prefix}/git/trees/"):
            tree = [{"path": d, "type": "tree"} for d in _directories(self.files)]
            tree += [{"path": p, "type": "blob"} for p in self.files]
            return httpx.Response(200, json={"tree": tree, "truncated": False})
        return httpx.Response(404)

    def _raw(self, path: str) -> httpx.Response:
        # /acme/infra/<branch>/<file>; branches here have at most two segments
        rest = path.removeprefix("/acme/infra/")
        for branch in sorted(self.branches, key=len, reverse=True):
            if rest.startswith(branch + "/"):
                file_path = rest[len(branch) + 1 :]
                break
        else:
            return httpx.Response(404)
        remaining = self.flaky.get(file_path, 0)
        if remaining:
            self.flaky[file_path] = remaining - 1
            return httpx.Response(503)
        if file_path not in self.files:
            return httpx.Response(404)
        return httpx.Response(200, text=self.files[file_path])


class FakeGitLab:
    """Answers the GitLab v4 endpoints used by GitLabClient, one entry per page."""

    project = "/api/v4/projects/platform%2Finfra"

    def __init__(self, files: dict[str, str]) -> None:
        self.files = files

    def __call__(self, request: httpx.Request) -> httpx.Response:
        raw = request.url.raw_path.split(b"?", 1)[0].decode()
        if not raw.startswith(self.project):
            return httpx.Response(404)
        rest = raw.removeprefix(self.project)

        if rest == "":
            return httpx.Response(200, json={"default_branch": "main"})
        if rest.startswith("/repository/branches/"):
            branch = unquote(rest.removeprefix("/repository/branches/"))
            return httpx.Response(200 if branch == "main" else 404, json={})
        if rest == "/repository/tree":
            entries = [{"path": d, "type": "tree"} for d in _directories(self.files)]
            entries += [{"path": p, "type": "blob"} for p in self.files]
            page = int(request.url.params.get("page", "1"))
            next_page = str(page + 1) if page < len(entries) else ""
            return httpx.Response(200, json=entries[page - 1 : page], headers={"X-Next-Page": next_page})
        if rest.startswith("/repository/files/") and rest.endswith("/raw"):
            file_path = unquote(rest.removeprefix("/repository/files/").removesuffix("/raw"))
            if file_path in self.files:
                return httpx.Response(200, text=self.files[file_path])
        return httpx.Response(404)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def config() -> KustomapConfig:
    return KustomapConfig(
        github=GitHubConfig(token="ghp_test"),
        gitlab=GitLabConfig(max_pages=100),
        http=HttpConfig(timeout_seconds=5.0, max_attempts=3, backoff_base_seconds=0.0),
    )


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub(dict(GITHUB_FILES), set(GITHUB_BRANCHES))


@pytest.fixture
def fake_gitlab() -> FakeGitLab:
    return FakeGitLab(dict(GITLAB_FILES))


@pytest.fixture
def make_scanner(
    config: KustomapConfig,
    fake_github: FakeGitHub,
    fake_gitlab: FakeGitLab,
) -> Callable[[], KustomizationScanner]:
    """Build a scanner whose provider clients talk to the fakes."""

    def factory() -> KustomizationScanner:
        def route(request: httpx.Request) -> httpx.Response:
            if request.url.host == "gitlab.example.org":
                return fake_gitlab(request)
            return fake_github(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(route))
        providers = {
            ProviderKind.GITHUB: GitHubClient(config.github, config.http, client=client),
            ProviderKind.GITLAB: GitLabClient(config.gitlab, config.http, client=client),
        }
        return KustomizationScanner(config, resolver=RemoteResolver(config, providers=providers))

    return factory
