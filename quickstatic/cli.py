"""Command-line interface for quickstatic.

This module defines the CLI commands using Click framework.

Commands:
- build: Build the site into the output directory (the default).
- serve: Build, watch for changes and preview the site locally.

Global options select the project directory and the log level.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from . import __version__
from .errors import BuildError

LOG_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=LOG_LEVELS[level],
        format="%(levelname)s %(name)s: %(message)s",
        force=True,
    )


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="quickstatic")
@click.option(
    "-d",
    "--dir",
    "project_dir",
    default=".",
    show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Project directory containing quickstatic.yaml",
)
@click.option(
    "-l",
    "--log-level",
    default="info",
    show_default=True,
    type=click.Choice(sorted(LOG_LEVELS), case_sensitive=False),
    help="Log verbosity",
)
@click.pass_context
def cli(ctx: click.Context, project_dir: Path, log_level: str):
    """Simple, fast static site engine for Markdown and Jinja templates."""
    _configure_logging(log_level.lower())
    ctx.obj = {"project_dir": project_dir}
    if ctx.invoked_subcommand is None:
        ctx.invoke(build)


@cli.command()
@click.pass_context
def build(ctx: click.Context):
    """Build the site into the output directory."""
    project_root = ctx.obj["project_dir"]
    from .build import build_site

    try:
        result = build_site(project_root)
    except BuildError as exc:
        _report_failure(project_root, exc)
        raise SystemExit(1) from None
    click.echo(f"Built {len(result.documents)} documents into {result.output_dir}")


@cli.command()
@click.option(
    "-p",
    "--port",
    type=int,
    default=2020,
    show_default=True,
    help="Port for the preview server",
)
@click.pass_context
def serve(ctx: click.Context, port: int):
    """Build, watch for changes and preview the site."""
    project_root = ctx.obj["project_dir"]
    from .server import serve_site

    serve_site(project_root, port=port)


def _report_failure(project_root: Path, exc: BuildError) -> None:
    try:
        shown = exc.source_path.relative_to(project_root)
    except ValueError:
        shown = exc.source_path
    click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
    click.echo(click.style(f"  File: {shown}", fg="yellow"), err=True)
    click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
    snippet = getattr(exc, "snippet", "")
    if snippet:
        click.echo(snippet, err=True)


def main():
    """Entry point for the CLI application."""
    cli()
