"""Persisted command history.

Every completed turn records the natural-language prompt and the
command it finally produced in ``history.jsonl`` inside the state
directory (see :func:`quickcmd.config.state_dir`).  The file holds one
JSON object per line::

    {"timestamp": 1718000000, "prompt": "show my ip address", "command": "curl -s ifconfig.me"}

The log is bounded to :data:`MAX_ENTRIES` records.  Each append reads
the whole file, adds the new line, drops the oldest excess entries and
writes the result to a temporary file that then replaces the log, so
an interrupted write never leaves a half-written history behind.

Lines that cannot be parsed are skipped on read rather than treated as
fatal, which keeps older or hand-edited files readable.
"""

from __future__ import annotations

import json
import os
import tempfile
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import List, Optional

from .config import state_dir
from .sanitizer import strip_ansi_escapes

MAX_ENTRIES = 1000


@dataclass(frozen=True)
class HistoryEntry:
    timestamp: int
    prompt: str
    command: str

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)

    @classmethod
    def from_json(cls, line: str) -> Optional["HistoryEntry"]:
        """Parse one history line, returning ``None`` if it is malformed."""
        try:
            data = json.loads(line)
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        timestamp = data.get("timestamp")
        prompt = data.get("prompt")
        command = data.get("command")
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            return None
        if not isinstance(prompt, str) or not isinstance(command, str):
            return None
        return cls(timestamp=timestamp, prompt=prompt, command=command)


def default_history_path() -> Path:
    return state_dir() / "history.jsonl"


class HistoryStore:
    """Append-only, size-bounded log of ``(prompt, command)`` pairs."""

    def __init__(self, path: Optional[Path] = None, max_entries: int = MAX_ENTRIES) -> None:
        self.path = Path(path) if path is not None else default_history_path()
        self.max_entries = max_entries

    def _read_lines(self) -> List[str]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8", errors="replace") as f:
            return [line.rstrip("\n") for line in f if line.strip()]

    def append(self, prompt: str, command: str) -> HistoryEntry:
        """Record a prompt/command pair and enforce the size cap.

        Both strings are stripped of terminal escape sequences before
        they are stored.

        :returns: The entry that was written.
        :raises OSError: When the log cannot be read or written.
        """
        entry = HistoryEntry(
            timestamp=int(time.time()),
            prompt=strip_ansi_escapes(prompt),
            command=strip_ansi_escapes(command),
        )
        lines = self._read_lines()
        lines.append(entry.to_json())
        if len(lines) > self.max_entries:
            lines = lines[-self.max_entries:]
        self._write_lines(lines)
        return entry

    def _write_lines(self, lines: List[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                for line in lines:
                    f.write(line + "\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

    def list(self) -> List[HistoryEntry]:
        """Return all readable entries, oldest first."""
        entries: List[HistoryEntry] = []
        for line in self._read_lines():
            entry = HistoryEntry.from_json(line)
            if entry is not None:
                entries.append(entry)
        return entries

    def show(self, last_n: int) -> List[HistoryEntry]:
        """Return the newest ``last_n`` entries in oldest-first order."""
        if last_n <= 0:
            return []
        return self.list()[-last_n:]

    def clear(self) -> bool:
        """Delete the log.  Returns ``False`` if there was nothing to delete."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        return True
