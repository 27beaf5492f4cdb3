"""Ambient context harvesting.

Commands are easier to get right when the model knows what the
current directory looks like.  :func:`harvest` collects a short,
deterministic snapshot of it: the visible entries of the working
directory and the output of ``git status --short``.  The snapshot is
appended to the system prompt, never to the user prompt.

Nothing here is allowed to fail a turn.  A directory that cannot be
listed, a missing ``git`` binary or a directory outside a repository
simply contributes nothing.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

MAX_DIR_ENTRIES = 50
MAX_GIT_LINES = 20
TRUNCATED_MARKER = "...(truncated)"


def _display_name(name: str) -> str:
    # undecodable bytes come back from listdir as surrogate escapes
    return os.fsencode(name).decode("utf-8", errors="replace")


def list_directory(cwd: Path) -> List[str]:
    """Return visible, sorted entry names of ``cwd``, capped at 50."""
    try:
        names = sorted(_display_name(name) for name in os.listdir(cwd) if not name.startswith("."))
    except OSError as exc:
        logger.debug("Could not list %s: %s", cwd, exc)
        return []
    if len(names) > MAX_DIR_ENTRIES:
        names = names[:MAX_DIR_ENTRIES] + [TRUNCATED_MARKER]
    return names


def git_status(cwd: Path) -> List[str]:
    """Return up to 20 lines of ``git status --short`` or an empty list."""
    try:
        proc = subprocess.run(
            ["git", "status", "--short"],
            cwd=str(cwd),
            capture_output=True,
        )
    except OSError as exc:
        logger.debug("git status unavailable: %s", exc)
        return []
    if proc.returncode != 0:
        return []
    output = proc.stdout.decode("utf-8", errors="replace")
    lines = [line for line in output.splitlines() if line.strip()]
    if len(lines) > MAX_GIT_LINES:
        lines = lines[:MAX_GIT_LINES] + [TRUNCATED_MARKER]
    return lines


def harvest(enabled: bool = True, cwd: Optional[Path] = None) -> str:
    """Return a text snapshot of the working directory, possibly empty."""
    if not enabled:
        return ""
    if cwd is None:
        try:
            cwd = Path.cwd()
        except OSError:
            return ""
    cwd = Path(cwd)
    sections = []
    names = list_directory(cwd)
    if names:
        sections.append(f"Current directory: {_display_name(str(cwd))}\nFiles: " + ", ".join(names))
    status = git_status(cwd)
    if status:
        sections.append("Git status:\n" + "\n".join(status))
    return "\n\n".join(sections)
