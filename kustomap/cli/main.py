"""Click commands: ``kustomap scan`` and ``kustomap serve``."""

from __future__ import annotations

import asyncio
import json
from dataclasses import replace
from pathlib import Path

import click

from kustomap.config import load_config
from kustomap.errors import KustomapError
from kustomap.models.config import KustomapConfig
from kustomap.models.scan import ScanResult
from kustomap.observability.logging import setup_logging
from kustomap.scanner import KustomizationScanner


def _load_config() -> KustomapConfig:
    try:
        return load_config()
    except ValueError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}") from exc


async def _run_scan(config: KustomapConfig, source: str) -> ScanResult:
    scanner = KustomizationScanner(config)
    try:
        if Path(source).is_dir():
            return await scanner.scan_directory(source)
        return await scanner.scan_remote(source)
    finally:
        await scanner.aclose()


def render_text(result: ScanResult) -> str:
    """Human-readable summary of a scan."""
    graph = result.graph
    lines: list[str] = []

    if result.source is not None:
        src = result.source
        where = f" ({src.sub_path})" if src.sub_path else ""
        lines.append(f"Source: {src.host}/{src.project_path}@{src.branch}{where}")
    else:
        lines.append("Source: local directory")

    lines.append(f"Nodes ({graph.node_count}):")
    for node in graph.nodes.values():
        lines.append(f"  {node.id:<10} {node.path}  [{node.kind.value}]")

    lines.append(f"Edges ({graph.edge_count}):")
    for edge in graph.edges:
        used = graph.nodes.get(edge.source_node_id)
        user = graph.nodes.get(edge.target_node_id)
        source_path = used.path if used else edge.source_node_id
        target_path = user.path if user else edge.target_node_id
        lines.append(f"  {source_path} -> {target_path}  ({edge.kind.value}: {edge.label})")

    if result.cycles:
        lines.append(f"Cycles ({len(result.cycles)}):")
        for cycle in result.cycles:
            lines.append("  " + " -> ".join(graph.nodes[n].path for n in cycle))
    else:
        lines.append("Cycles: none")

    if result.warnings:
        lines.append("Warnings:")
        lines.extend(f"  - {w}" for w in result.warnings)
    return "\n".join(lines)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="kustomap")
def cli() -> None:
    """Map dependencies between kustomizations."""


@cli.command()
@click.argument("source")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Output format.",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=None,
    help="Write output to FILE instead of stdout.",
)
def scan(source: str, output_format: str, output: Path | None) -> None:
    """Scan SOURCE, a local directory or a GitHub/GitLab tree URL."""
    config = _load_config()
    setup_logging(config.log.level, renderer="console")

    try:
        result = asyncio.run(_run_scan(config, source))
    except (KustomapError, OSError) as exc:
        raise click.ClickException(str(exc)) from exc

    if output_format == "json":
        rendered = json.dumps(result.to_dict(), indent=2, default=str)
    else:
        rendered = render_text(result)

    if output is None:
        click.echo(rendered)
    else:
        output.write_text(rendered + "\n", encoding="utf-8")
        click.echo(f"Wrote {output_format} output to {output}", err=True)


@cli.command()
@click.option("--port", type=click.IntRange(1, 65535), default=None, help="Port for the REST API.")
def serve(port: int | None) -> None:
    """Run the REST API until interrupted."""
    from kustomap.app import main

    config = _load_config()
    if port is not None:
        config = replace(config, api=replace(config.api, port=port))
    asyncio.run(main(config))
