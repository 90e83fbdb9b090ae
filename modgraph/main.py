"""
modgraph — CLI entrypoint.

Usage:
    python -m modgraph.main --help
    python -m modgraph.main graph [PATH] [--json] [--no-hash]
    python -m modgraph.main version PATH
    python -m modgraph.main hash PATH --prefix example.com/mod@v1.0.0
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import NoReturn

import click

from modgraph import __version__
from modgraph.core.config.loader import Settings, load_settings
from modgraph.core.errors import ModGraphError
from modgraph.core.observability.logging_config import setup_logging


def _fail(error: Exception) -> NoReturn:
    click.secho(f"❌ {error}", fg="red", err=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="modgraph")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to .modgraph.yml (default: auto-detect).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, debug: bool, config_path: str | None) -> None:
    """modgraph — resolved Go module dependency graphs."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    else:
        level = os.environ.get("MODGRAPH_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("MODGRAPH_LOG_FILE"),
        log_file_level=os.environ.get("MODGRAPH_LOG_FILE_LEVEL"),
    )


def _settings(ctx: click.Context, root: Path) -> Settings:
    try:
        return load_settings(project_root=root, config_path=ctx.obj.get("config_path"))
    except ModGraphError as e:
        _fail(e)


@cli.command()
@click.argument("path", type=click.Path(file_okay=False), default=".")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--no-hash", is_flag=True, help="Skip content hashing.")
@click.pass_context
def graph(ctx: click.Context, path: str, as_json: bool, no_hash: bool) -> None:
    """Build the module graph of the module at PATH."""
    from modgraph.core.use_cases.build_graph import build_graph

    root = Path(path)
    settings = _settings(ctx, root)
    try:
        result = build_graph(root, settings, with_hash=not no_hash)
    except ModGraphError as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    module_graph = result.graph
    main = module_graph.main_module
    if main is None:
        click.secho("No main module found", fg="yellow")
        return

    click.secho(f"\n📦 {main.coordinates}", fg="cyan", bold=True)
    click.echo(f"   Modules: {len(module_graph)}\n")

    for module in module_graph.modules:
        if module.main:
            continue
        details = result.details.get(module.coordinates)
        label = module.coordinates
        if module.replace is not None:
            label += f" => {module.replace.coordinates}"
        markers = []
        if module.effective.vendored:
            markers.append("vendored")
        if details is not None and details.private:
            markers.append("private")
        if details is not None and details.verified is False:
            markers.append("checksum mismatch")
        suffix = f"  [{', '.join(markers)}]" if markers else ""
        click.echo(f"   • {label}{suffix}")
        if details is not None and details.hash:
            click.echo(f"       {details.hash}")
        for dependency in module_graph.dependencies(module):
            click.echo(f"       → {dependency.coordinates}")

    click.echo()


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.pass_context
def version(ctx: click.Context, path: str) -> None:
    """Resolve the version of the module checked out at PATH."""
    from modgraph.core.services.version_resolver import get_module_version

    settings = _settings(ctx, Path(path))
    try:
        click.echo(get_module_version(
            path,
            git_binary=settings.git_binary,
            timeout=settings.command_timeout,
        ))
    except ModGraphError as e:
        _fail(e)


@cli.command("hash")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.option("--prefix", required=True, help="Module coordinates, e.g. example.com/mod@v1.0.0.")
def hash_command(path: str, prefix: str) -> None:
    """Print the h1 content hash of the directory at PATH."""
    from modgraph.core.services.content_hash import hash_dir

    try:
        click.echo(hash_dir(path, prefix))
    except (OSError, ValueError) as e:
        _fail(e)


if __name__ == "__main__":
    cli()
