"""Worktree labels: the tri-state update value and git worktree detection."""

from __future__ import annotations

import enum
import subprocess
from pathlib import Path
from typing import Literal


class WorktreeAction(enum.Enum):
    """Non-value outcomes of a worktree update."""

    UNCHANGED = "unchanged"
    CLEARED = "cleared"


UNCHANGED: Literal[WorktreeAction.UNCHANGED] = WorktreeAction.UNCHANGED
CLEARED: Literal[WorktreeAction.CLEARED] = WorktreeAction.CLEARED

# A plain string sets the label; the two markers leave it alone or null it.
WorktreeUpdate = str | Literal[WorktreeAction.UNCHANGED, WorktreeAction.CLEARED]

# Spelling used on the command line and in JSON bodies to clear a label.
CLEAR_TOKEN = "-"


def parse_worktree_option(value: str | None) -> WorktreeUpdate:
    """Translate a user-facing option into a WorktreeUpdate.

    ``None`` (option not given) leaves the label unchanged and ``"-"`` clears it.
    """
    if value is None:
        return UNCHANGED
    if value == CLEAR_TOKEN:
        return CLEARED
    return value


def _git(args: list[str], cwd: Path) -> str | None:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=5,
            check=False,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def detect_worktree(cwd: Path | None = None) -> str | None:
    """Name of the linked git worktree containing *cwd*, if any.

    The main checkout is not reported: only ``git worktree add`` checkouts,
    whose git dir differs from the common dir, yield a label (the basename
    of the worktree's top-level directory).
    """
    cwd = cwd or Path.cwd()
    git_dir = _git(["rev-parse", "--git-dir"], cwd)
    common_dir = _git(["rev-parse", "--git-common-dir"], cwd)
    if git_dir is None or common_dir is None:
        return None
    if (cwd / git_dir).resolve() == (cwd / common_dir).resolve():
        return None
    toplevel = _git(["rev-parse", "--show-toplevel"], cwd)
    return Path(toplevel).name if toplevel else None
