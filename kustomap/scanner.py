"""Scan orchestration.

Remote scans run: resolve URL -> list tree -> locate manifests -> fetch and
parse each manifest -> build graph -> detect cycles. Local scans start from
already-read manifest text. Either way the caller gets one complete
:class:`ScanResult` or one exception; a cancelled scan publishes nothing.

Failures scoped to one manifest (fetch error after retries, invalid YAML)
drop that manifest and are reported in ``ScanResult.skipped``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from pathlib import Path

from kustomap.errors import InvalidManifest, NoManifestsFound, ProviderRequestError, TransientProviderError
from kustomap.graph import DependencyGraphBuilder, detect_cycles
from kustomap.manifest import NodeBuilder, display_path, find_manifest_paths, manifest_directory, remote_source_url
from kustomap.models.config import KustomapConfig
from kustomap.models.manifest import LocalManifest, ManifestNode, SkippedManifest
from kustomap.models.scan import ScanResult
from kustomap.models.source import RepositoryCoordinate
from kustomap.observability.logging import get_logger
from kustomap.sources.local import walk_manifests
from kustomap.sources.resolver import RemoteResolver

_log = get_logger("scanner")

_FetchOutcome = str | TransientProviderError | ProviderRequestError


class KustomizationScanner:
    """Builds dependency graphs for remote repositories and local trees.

    Node and edge ids come from builders owned by the scanner, so they are
    never reused across the scans of one scanner.
    """

    def __init__(
        self,
        config: KustomapConfig,
        resolver: RemoteResolver | None = None,
    ) -> None:
        self._config = config
        self._resolver = resolver or RemoteResolver(config)
        self._nodes = NodeBuilder()
        self._graphs = DependencyGraphBuilder()

    @property
    def resolver(self) -> RemoteResolver:
        return self._resolver

    # ------------------------------------------------------------------
    # Remote
    # ------------------------------------------------------------------

    async def scan_remote(self, url: str) -> ScanResult:
        """Scan a GitHub or GitLab URL.

        Raises:
            InvalidSourceUrl, BranchNotFound, RateLimitExceeded,
            TransientProviderError (tree listing), NoManifestsFound.
        """
        resolved = await self._resolver.resolve(url)
        coordinate = resolved.coordinate
        warnings = list(resolved.warnings)

        listing = await self._resolver.fetch_tree(coordinate)
        if listing.truncated:
            warnings.append(
                f"The listing of {coordinate.project_path}@{coordinate.branch} was truncated by "
                "the provider; some kustomizations may be missing"
            )

        paths = find_manifest_paths(listing.entries, coordinate.sub_path)
        if not paths:
            raise NoManifestsFound(coordinate.sub_path)

        outcomes = await self._fetch_all(coordinate, paths)

        nodes: list[ManifestNode] = []
        skipped: list[SkippedManifest] = []
        for path, outcome in zip(paths, outcomes, strict=True):
            shown = display_path(path, coordinate.sub_path)
            if not isinstance(outcome, str):
                skipped.append(SkippedManifest(path=shown, reason=str(outcome)))
                continue
            node = self._build_node(
                outcome,
                shown,
                skipped,
                remote_url=remote_source_url(coordinate, manifest_directory(path)),
            )
            if node is not None:
                nodes.append(node)

        return self._assemble(
            nodes,
            skipped,
            warnings,
            scope=coordinate.sub_path,
            source=coordinate,
            possibly_incomplete=listing.truncated,
        )

    async def _fetch_all(self, coordinate: RepositoryCoordinate, paths: list[str]) -> list[_FetchOutcome]:
        """Fetch every manifest concurrently; results follow *paths* order.

        Per-file provider errors are returned in place of the text.
        ``RateLimitExceeded`` aborts the whole batch.
        """
        semaphore = asyncio.Semaphore(max(1, self._config.scan.fetch_concurrency))

        async def fetch_one(path: str) -> _FetchOutcome:
            async with semaphore:
                try:
                    return await self._resolver.fetch_content(coordinate, path)
                except (TransientProviderError, ProviderRequestError) as exc:
                    _log.warning("manifest_fetch_failed", path=path, error=str(exc))
                    return exc

        tasks = [asyncio.ensure_future(fetch_one(path)) for path in paths]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    # ------------------------------------------------------------------
    # Local
    # ------------------------------------------------------------------

    def scan_entries(self, entries: Iterable[LocalManifest]) -> ScanResult:
        """Scan manifests supplied by a local enumeration collaborator.

        Raises:
            NoManifestsFound: *entries* is empty or no entry parses.
        """
        entries = list(entries)
        if not entries:
            raise NoManifestsFound("")

        nodes: list[ManifestNode] = []
        skipped: list[SkippedManifest] = []
        for entry in entries:
            node = self._build_node(entry.content, entry.path or ".", skipped)
            if node is not None:
                nodes.append(node)
        return self._assemble(nodes, skipped, [], scope="")

    async def scan_directory(self, root: Path | str) -> ScanResult:
        """Walk *root* off the event loop, then scan what was found."""
        entries = await asyncio.to_thread(walk_manifests, root)
        return self.scan_entries(entries)

    # ------------------------------------------------------------------
    # Shared
    # ------------------------------------------------------------------

    def _build_node(
        self,
        text: str,
        shown: str,
        skipped: list[SkippedManifest],
        remote_url: str | None = None,
    ) -> ManifestNode | None:
        try:
            return self._nodes.build(text, shown, remote_source_url=remote_url)
        except InvalidManifest as exc:
            _log.warning("manifest_skipped", path=shown, reason=exc.reason)
            skipped.append(SkippedManifest(path=shown, reason=exc.reason))
            return None

    def _assemble(
        self,
        nodes: list[ManifestNode],
        skipped: list[SkippedManifest],
        warnings: list[str],
        scope: str,
        source: RepositoryCoordinate | None = None,
        possibly_incomplete: bool = False,
    ) -> ScanResult:
        if not nodes:
            raise NoManifestsFound(scope, detail=f"{len(skipped)} found but none could be loaded")

        graph = self._graphs.build(nodes)
        cycles = detect_cycles(graph)

        warnings = list(warnings)
        warnings.extend(f"Skipped {s.path}: {s.reason}" for s in skipped)
        warnings.extend(f"Graph integrity: {w}" for w in graph.integrity_warnings)
        for cycle in cycles:
            warnings.append("Dependency cycle: " + " -> ".join(graph.nodes[n].path for n in cycle))

        _log.info(
            "scan_complete",
            source=source.project_path if source else "local",
            nodes=graph.node_count,
            edges=graph.edge_count,
            cycles=len(cycles),
            skipped=len(skipped),
            possibly_incomplete=possibly_incomplete,
        )
        return ScanResult(
            graph=graph,
            cycles=cycles,
            warnings=warnings,
            skipped=skipped,
            source=source,
            possibly_incomplete=possibly_incomplete,
        )

    async def aclose(self) -> None:
        await self._resolver.aclose()
