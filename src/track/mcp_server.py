"""MCP server for track.

Primary interface for agents. Direct SQLite, no daemon. Every tool call
opens its own ``TrackDB`` and closes it before returning.

Usage:
    track-mcp                              # Auto-discover .track/ from cwd
    track-mcp --project /path/to/project   # Explicit project root
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Callable
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from track.core import DB_FILENAME, TRACK_DIR_NAME, TrackDB, find_track_root, read_config
from track.mcp_tools import tracks as track_tools
from track.mcp_tools.common import _text

server = Server("track")
_track_dir: Path | None = None
_logger: logging.Logger | None = None
_request_db: ContextVar[TrackDB | None] = ContextVar("track_request_db", default=None)

_TOOLS: list[Tool]
_HANDLERS: dict[str, Callable[..., Any]]
_TOOLS, _HANDLERS = track_tools.register()


def _get_db() -> TrackDB:
    active_db = _request_db.get()
    if active_db is None:
        msg = "No database open for this call"
        raise RuntimeError(msg)
    return active_db


def _open_db() -> TrackDB:
    if _track_dir is None:
        msg = "Project not configured"
        raise RuntimeError(msg)
    config = read_config(_track_dir)
    return TrackDB(_track_dir / DB_FILENAME, prefix=config.get("prefix", ""))


@server.list_tools()  # type: ignore[untyped-decorator,no-untyped-call]
async def list_tools() -> list[Tool]:
    return list(_TOOLS)


@server.call_tool()  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    handler = _HANDLERS.get(name)
    if handler is None:
        return _text({"error": f"Unknown tool: {name}", "code": "VALIDATION_ERROR"})

    t0 = time.monotonic()
    with _open_db() as tracker:
        token = _request_db.set(tracker)
        try:
            result: list[TextContent] = await handler(arguments)
        except Exception:
            if _logger:
                _logger.error("tool_error", extra={"tool": name, "args_data": arguments}, exc_info=True)
            raise
        finally:
            _request_db.reset(token)

    duration_ms = round((time.monotonic() - t0) * 1000, 1)
    if _logger:
        _logger.info("tool_call", extra={"tool": name, "args_data": arguments, "duration_ms": duration_ms})
    return result


async def _run(project_path: Path | None) -> None:
    global _track_dir, _logger

    if project_path:
        track_dir = project_path / TRACK_DIR_NAME
        if not track_dir.is_dir():
            print(f"Error: {track_dir} not found. Run 'track init' first.", file=sys.stderr)
            sys.exit(1)
    else:
        try:
            track_dir = find_track_root()
        except FileNotFoundError:
            print(f"Error: No {TRACK_DIR_NAME}/ found. Run 'track init' first.", file=sys.stderr)
            sys.exit(1)

    _track_dir = track_dir
    with _open_db() as db:
        db.initialize()

    from track.logging import setup_logging

    _logger = setup_logging(track_dir)
    _logger.info("mcp_server_start", extra={"tool": "server", "args_data": {"project": str(track_dir.parent)}})

    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    import asyncio

    parser = argparse.ArgumentParser(description="track MCP server")
    parser.add_argument("--project", type=Path, default=None, help="Project root (auto-discovers .track/ if omitted)")
    args = parser.parse_args()

    asyncio.run(_run(args.project))


if __name__ == "__main__":
    main()
