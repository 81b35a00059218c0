"""Shared CLI helpers.

Provides ``get_db()`` and ``fail()`` so that ``cli.py`` and the
``cli_commands/*.py`` modules can reach them without circular imports.
"""

from __future__ import annotations

import json as json_mod
import sys
from typing import NoReturn

import click

from track.core import DB_FILENAME, TRACK_DIR_NAME, TrackDB, find_track_root, read_config
from track.logging import setup_logging


def get_db() -> TrackDB:
    """Discover .track/ and return an initialized TrackDB."""
    try:
        track_dir = find_track_root()
    except FileNotFoundError:
        click.echo(f"No {TRACK_DIR_NAME}/ found. Run 'track init' first.", err=True)
        sys.exit(1)
    setup_logging(track_dir)
    config = read_config(track_dir)
    db = TrackDB(track_dir / DB_FILENAME, prefix=config.get("prefix", ""))
    db.initialize()
    return db


def fail(message: str, *, as_json: bool = False) -> NoReturn:
    """Report an error the way every command does and exit 1."""
    if as_json:
        click.echo(json_mod.dumps({"error": message}))
    else:
        click.echo(f"Error: {message}", err=True)
    sys.exit(1)
