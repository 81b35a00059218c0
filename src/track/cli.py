"""CLI for track.

Convention-based: discovers .track/ by walking up from cwd.

Usage:
    track init                                       # Initialize .track/ with a root track
    track new "Auth flow" --parent <id> --blocks <id>
    track update <id> --summary "..." --next "..."   # Record progress (defaults to in_progress)
    track update <id> --summary "..." --next "..." --status done
    track status                                     # Active tracks as a tree
    track status --all --json                        # Everything, machine readable
    track show <id>                                  # One track with derived fields
    track serve                                      # HTTP API
"""

from __future__ import annotations

import click

from track import __version__
from track.cli_commands import admin, tracks


@click.group()
@click.version_option(version=__version__, prog_name="track")
def cli() -> None:
    """track: hierarchical work tracks with blocking dependencies."""


admin.register(cli)
tracks.register(cli)


if __name__ == "__main__":
    cli()
