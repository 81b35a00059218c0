"""CLI commands for admin: init, serve."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import click

from track.core import DB_FILENAME, TRACK_DIR_NAME, init_project

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8765


@click.command()
@click.argument("name", required=False)
@click.option("--prefix", default="", help="ID prefix for tracks (default: none)")
@click.option("--force", is_flag=True, help=f"Replace an existing {TRACK_DIR_NAME}/ directory")
def init(name: str | None, prefix: str, force: bool) -> None:
    """Initialize .track/ in the current directory with a root track."""
    cwd = Path.cwd()
    try:
        track_dir = init_project(cwd, name=name, prefix=prefix, force=force)
    except FileExistsError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Initialized {TRACK_DIR_NAME}/ in {cwd}")
    click.echo(f"  Project: {name or cwd.name}")
    click.echo(f"  Database: {track_dir / DB_FILENAME}")
    click.echo('\nNext: track new "First feature"')


@click.command()
@click.option("--host", default=None, help=f"Bind address (default: $TRACK_HOST or {DEFAULT_HOST})")
@click.option("--port", default=None, type=int, help=f"Server port (default: $TRACK_PORT or {DEFAULT_PORT})")
def serve(host: str | None, port: int | None) -> None:
    """Run the HTTP API for this project."""
    from track.web import main as web_main

    host = host or os.environ.get("TRACK_HOST", DEFAULT_HOST)
    if port is None:
        try:
            port = int(os.environ.get("TRACK_PORT", DEFAULT_PORT))
        except ValueError:
            click.echo(f"Error: TRACK_PORT must be an integer, got {os.environ['TRACK_PORT']!r}", err=True)
            sys.exit(1)
    web_main(host=host, port=port)


def register(cli: click.Group) -> None:
    """Attach admin commands to the CLI group."""
    cli.add_command(init)
    cli.add_command(serve)
