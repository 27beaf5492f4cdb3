"""Shell integration helpers.

:func:`run_command` is the execution capability used by the session:
it hands a finished command string to the user's shell and returns
whatever came back.  The output is never interpreted, only displayed.

:func:`init_snippet` returns the snippet printed by ``wtf init`` which
defines a ``wtf`` shell function that places the generated command in
the line editor instead of running it.
"""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from typing import Dict


@dataclass
class ExecutionResult:
    stdout: bytes
    stderr: bytes
    exit_code: int

    @staticmethod
    def _decode(data: bytes) -> str:
        return data.decode("utf-8", errors="replace")

    @property
    def stdout_text(self) -> str:
        return self._decode(self.stdout)

    @property
    def stderr_text(self) -> str:
        return self._decode(self.stderr)


def run_command(command: str) -> ExecutionResult:
    """Execute a shell command and capture its raw output."""
    shell = os.environ.get("SHELL") or "/bin/sh"
    try:
        proc = subprocess.run(
            command,
            shell=True,
            executable=shell,
            capture_output=True,
        )
    except OSError as exc:
        return ExecutionResult(stdout=b"", stderr=str(exc).encode("utf-8", errors="replace"), exit_code=127)
    return ExecutionResult(stdout=proc.stdout, stderr=proc.stderr, exit_code=proc.returncode)


_ZSH = r"""# quickcmd: translate natural language to a shell command
# Add to ~/.zshrc:  eval "$(wtf init zsh)"
function _quickcmd_run() {
    if [[ -z "$1" ]]; then
        echo "Usage: ?? <natural language prompt>"
        return 1
    fi
    local cmd
    cmd=$(command wtf run --raw -- "$@") || return 1
    print -z -- "$cmd"
}
alias '??'='_quickcmd_run'
"""

_BASH = r"""# quickcmd: translate natural language to a shell command
# Add to ~/.bashrc:  eval "$(wtf init bash)"
_quickcmd_run() {
    if [ -z "$1" ]; then
        echo "Usage: ?? <natural language prompt>"
        return 1
    fi
    local cmd
    cmd=$(command wtf run --raw -- "$@") || return 1
    history -s -- "$cmd"
    echo "$cmd  (press Up to edit and run)"
}
alias '??'='_quickcmd_run'
"""

_FISH = r"""# quickcmd: translate natural language to a shell command
# Add to ~/.config/fish/config.fish:  wtf init fish | source
function qcmd --description 'Translate natural language to a shell command'
    if test (count $argv) -eq 0
        echo "Usage: qcmd <natural language prompt>"
        return 1
    end
    set -l cmd (command wtf run --raw -- $argv); or return 1
    commandline -r -- $cmd
end
"""

SNIPPETS: Dict[str, str] = {"zsh": _ZSH, "bash": _BASH, "fish": _FISH}


def init_snippet(shell_name: str) -> str:
    """Return the integration snippet for ``shell_name``.

    :raises ValueError: For shells without a snippet.
    """
    try:
        return SNIPPETS[shell_name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unsupported shell: {shell_name} (choose from {', '.join(sorted(SNIPPETS))})"
        ) from None
