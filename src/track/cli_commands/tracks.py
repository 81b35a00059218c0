"""CLI commands for tracks: new, update, status, show."""

from __future__ import annotations

import json as json_mod
from typing import Any

import click

from track.cli_common import fail, get_db
from track.core import TrackDetails
from track.db_base import VALID_STATUSES, TrackNotFoundError
from track.worktree import UNCHANGED, detect_worktree, parse_worktree_option

STATUS_ICONS = {
    "planned": "○",
    "in_progress": "●",
    "done": "✓",
    "blocked": "⚠",
    "superseded": "✗",
}
_STATUS_COLORS: dict[str, dict[str, Any]] = {
    "planned": {"fg": "cyan"},
    "in_progress": {"fg": "yellow"},
    "done": {"fg": "green"},
    "blocked": {"fg": "red"},
    "superseded": {"dim": True},
}
_KIND_COLORS: dict[str, dict[str, Any]] = {
    "super": {"fg": "magenta", "bold": True},
    "feature": {"fg": "blue"},
    "task": {},
}

BRANCH, LAST, PIPE, SPACE = "├──", "└──", "│  ", "   "


def _status_label(status: str) -> str:
    return click.style(f"{STATUS_ICONS.get(status, '?')} {status}", **_STATUS_COLORS.get(status, {}))


def _field(label: str, value: str) -> str:
    return f"{click.style(label.ljust(8), dim=True)} {value}"


def _echo_tree(track: TrackDetails, by_id: dict[str, TrackDetails], prefix: str, is_last: bool) -> None:
    click.echo(f"{prefix}{LAST if is_last else BRANCH} [{click.style(track.kind, **_KIND_COLORS[track.kind])}] {track.id} - {track.title}")
    detail = prefix + (SPACE if is_last else PIPE) + "  "
    click.echo(detail + _field("summary:", track.summary))
    click.echo(detail + _field("next:", track.next_prompt))
    click.echo(detail + _field("status:", _status_label(track.status)))
    if track.worktree:
        click.echo(detail + _field("worktree:", track.worktree))
    if track.files:
        click.echo(detail + _field("files:", ", ".join(track.files)))
    if track.blocked_by:
        click.echo(detail + _field("waits:", ", ".join(track.blocked_by)))

    visible = [by_id[c] for c in track.children if c in by_id]
    if visible:
        click.echo()
    child_prefix = prefix + (SPACE if is_last else PIPE)
    for i, child in enumerate(visible):
        _echo_tree(child, by_id, child_prefix, i == len(visible) - 1)


def _echo_project(tracks: list[TrackDetails]) -> None:
    root = next((t for t in tracks if t.parent_id is None), None)
    if root is None:
        click.echo("No tracks found.")
        return
    click.echo(f"Project: {root.title} ({root.id})")
    click.echo()
    _echo_tree(root, {t.id: t for t in tracks}, "", True)


@click.command("new")
@click.argument("title")
@click.option("--parent", default=None, help="Parent track ID (default: the root)")
@click.option("--summary", default="", help="What the track is about")
@click.option("--next", "next_prompt", default="", help="What to do next")
@click.option("--file", "files", multiple=True, help="Associated file path (repeatable)")
@click.option("--blocks", multiple=True, help="Track ID this track blocks (repeatable)")
@click.option("--blocked-by", "blocked_by", multiple=True, help="Track ID that blocks this track (repeatable)")
@click.option("--worktree", default=None, help="Worktree label (default: parent's, else the current git worktree)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def new_track(
    title: str,
    parent: str | None,
    summary: str,
    next_prompt: str,
    files: tuple[str, ...],
    blocks: tuple[str, ...],
    blocked_by: tuple[str, ...],
    worktree: str | None,
    as_json: bool,
) -> None:
    """Create a new track."""
    worktree_update = parse_worktree_option(worktree)
    detected = detect_worktree() if worktree_update is UNCHANGED else None
    with get_db() as db:
        try:
            created = db.create_track(
                title,
                parent_id=parent,
                summary=summary,
                next_prompt=next_prompt,
                files=list(files),
                blocks=list(blocks),
                blocked_by=list(blocked_by),
                worktree=worktree_update,
                detected_worktree=detected,
            )
        except (TrackNotFoundError, ValueError) as e:
            fail(str(e), as_json=as_json)

    if as_json:
        click.echo(json_mod.dumps(created.to_dict(), indent=2, default=str))
        return
    click.echo(f"Created {created.id}: {created.title}")
    click.echo(f"  Status: {_status_label(created.status)}")
    if created.worktree:
        click.echo(f"  Worktree: {created.worktree}")
    if created.blocks:
        click.echo(f"  Blocks: {', '.join(created.blocks)}")
    if created.blocked_by:
        click.echo(f"  Blocked by: {', '.join(created.blocked_by)}")


@click.command("update")
@click.argument("track_id")
@click.option("--summary", required=True, help="Current state of the work")
@click.option("--next", "next_prompt", required=True, help="What to do next")
@click.option("--status", default=None, help=f"New status (default: in_progress). One of: {', '.join(VALID_STATUSES)}")
@click.option("--file", "files", multiple=True, help="Associated file path (repeatable)")
@click.option("--blocks", multiple=True, help="Track ID this track now blocks (repeatable)")
@click.option("--unblocks", multiple=True, help="Track ID this track no longer blocks (repeatable)")
@click.option("--worktree", default=None, help="Set the worktree label, or '-' to clear it")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def update_track(
    track_id: str,
    summary: str,
    next_prompt: str,
    status: str | None,
    files: tuple[str, ...],
    blocks: tuple[str, ...],
    unblocks: tuple[str, ...],
    worktree: str | None,
    as_json: bool,
) -> None:
    """Record progress on a track."""
    with get_db() as db:
        try:
            result = db.update_track(
                track_id,
                summary=summary,
                next_prompt=next_prompt,
                status=status,
                files=list(files),
                worktree=parse_worktree_option(worktree),
                blocks=list(blocks),
                unblocks=list(unblocks),
            )
        except (TrackNotFoundError, ValueError) as e:
            fail(str(e), as_json=as_json)

    if as_json:
        click.echo(json_mod.dumps(result, indent=2))
        return
    click.echo(f"Updated {result['id']}: {_status_label(result['status'])}")
    if result["files_added"]:
        click.echo(f"  Files added: {', '.join(result['files_added'])}")
    if result["blocks_added"]:
        click.echo(f"  Now blocks: {', '.join(result['blocks_added'])}")
    if result["blocks_removed"]:
        click.echo(f"  No longer blocks: {', '.join(result['blocks_removed'])}")
    if result["unblocked_ids"]:
        click.echo(f"  Unblocked: {', '.join(result['unblocked_ids'])}")


@click.command("status")
@click.option("--all", "show_all", is_flag=True, help="Include done and superseded tracks")
@click.option("--status", "statuses", multiple=True, help="Only these statuses (repeatable)")
@click.option("--worktree", default=None, help="Only tracks labelled with this worktree")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def status(show_all: bool, statuses: tuple[str, ...], worktree: str | None, as_json: bool) -> None:
    """Show the project's tracks as a tree."""
    with get_db() as db:
        try:
            if statuses:
                tracks = db.get_status(statuses=statuses, worktree=worktree, include_root=True)
            elif show_all:
                tracks = db.get_status(worktree=worktree, include_root=True)
            else:
                tracks = db.get_active_status(worktree=worktree)
        except ValueError as e:
            fail(str(e), as_json=as_json)

    if as_json:
        click.echo(json_mod.dumps({"tracks": [t.to_dict() for t in tracks]}, indent=2, default=str))
        return
    _echo_project(tracks)


@click.command("show")
@click.argument("track_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show(track_id: str, as_json: bool) -> None:
    """Show one track with its derived fields."""
    with get_db() as db:
        try:
            track = db.get_track_details(track_id)
        except TrackNotFoundError as e:
            fail(str(e), as_json=as_json)

    if as_json:
        click.echo(json_mod.dumps(track.to_dict(), indent=2, default=str))
        return
    click.echo(f"ID:       {track.id}")
    click.echo(f"Title:    {track.title}")
    click.echo(f"Kind:     {track.kind}")
    click.echo(f"Status:   {_status_label(track.status)}")
    if track.parent_id:
        click.echo(f"Parent:   {track.parent_id}")
    if track.worktree:
        click.echo(f"Worktree: {track.worktree}")
    click.echo(f"Summary:  {track.summary}")
    click.echo(f"Next:     {track.next_prompt}")
    click.echo(f"Created:  {track.created_at}")
    click.echo(f"Updated:  {track.updated_at}")
    if track.children:
        click.echo(f"Children: {', '.join(track.children)}")
    if track.files:
        click.echo(f"Files:    {', '.join(track.files)}")
    if track.blocks:
        click.echo(f"Blocks:   {', '.join(track.blocks)}")
    if track.blocked_by:
        click.echo(f"Blocked by: {', '.join(track.blocked_by)}")


def register(cli: click.Group) -> None:
    """Attach track commands to the CLI group."""
    cli.add_command(new_track)
    cli.add_command(update_track)
    cli.add_command(status)
    cli.add_command(show)
