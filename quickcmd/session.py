"""Interactive command-synthesis session.

A :class:`Session` drives the loop behind ``wtf chat``::

    read request -> ask the model -> show the command
        -> [y]es: run it / [n]o: skip it / [e]dit: revise and ask again
        -> record it in the history -> read the next request

The last few turns are kept in a small in-memory window and replayed
to the model so that follow-up requests can refer to earlier ones.
The window is never persisted; the history file is.

A turn that fails before its command is settled (provider error,
interrupt) records nothing: neither the history file nor the window
is touched.
"""

from __future__ import annotations

import collections
import logging
from pathlib import Path
from typing import Callable, Iterator, Optional, Tuple

import click

from .context import harvest
from .errors import ApiError, EmptyResultError
from .history import HistoryStore
from .prompts import EDIT_SYSTEM_PROMPT, build_edit_prompt, build_system_prompt, compose_prompt
from .providers import BaseProvider
from .sanitizer import sanitize
from .shell import ExecutionResult, run_command

try:
    import readline
except ImportError:  # Windows
    readline = None

logger = logging.getLogger(__name__)

WINDOW_SIZE = 3

EXIT_COMMANDS = ("exit", "quit")
YES_ANSWERS = ("y", "yes")
NO_ANSWERS = ("", "n", "no")
EDIT_ANSWERS = ("e", "edit")

# An edit instruction starting with one of these is taken as a replacement
# command rather than a request to the model.
DIRECT_COMMAND_PREFIXES = ("find", "grep", "ls", "cat", "curl", "git", "docker", "kubectl")
DIRECT_COMMAND_OPERATORS = ("|", "&&", ";")

INPUT_PROMPT = "wtf> "
CONFIRM_PROMPT = "Execute? [y]es/[N]o/[e]dit: "
EDIT_PROMPT = "Edit (command or instruction): "

HELP_TEXT = """Describe what you want to do and a shell command will be suggested.

  y / yes    run the suggested command
  n / no     skip it (also the default)
  e / edit   type a replacement command or describe a change

  clear      clear the screen
  help       show this message
  exit       leave (Ctrl-D also works)
"""


def is_direct_command(text: str) -> bool:
    """Return True if an edit instruction looks like a literal command."""
    stripped = text.strip()
    if any(op in stripped for op in DIRECT_COMMAND_OPERATORS):
        return True
    words = stripped.split()
    return bool(words) and words[0] in DIRECT_COMMAND_PREFIXES


class ConversationWindow:
    """Fixed-capacity FIFO of ``(user_text, command)`` turns."""

    def __init__(self, capacity: int = WINDOW_SIZE) -> None:
        self._turns = collections.deque(maxlen=capacity)

    def push(self, user_text: str, command: str) -> None:
        self._turns.append((user_text, command))

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(list(self._turns))

    def __len__(self) -> int:
        return len(self._turns)


class Session:
    """One interactive invocation of the command generator.

    :param provider: Client used for every model call.
    :param history: Store that completed turns are written to.
    :param executor: Runs a confirmed command; defaults to
      :func:`quickcmd.shell.run_command`.
    :param read_line: Reads one line of input given a prompt.  Must
      raise ``EOFError`` at end of input and ``KeyboardInterrupt`` on
      interrupt, like :func:`input`.
    :param context_enabled: Whether to harvest directory context.
    :param explain: Ask the model for a short explanation.
    :param input_history_path: Where readline's line history is kept
      between runs; ``None`` disables it.
    """

    def __init__(
        self,
        provider: BaseProvider,
        history: HistoryStore,
        executor: Callable[[str], ExecutionResult] = run_command,
        read_line: Callable[[str], str] = input,
        context_enabled: bool = True,
        explain: bool = False,
        input_history_path: Optional[Path] = None,
    ) -> None:
        self.provider = provider
        self.history = history
        self.executor = executor
        self.read_line = read_line
        self.context_enabled = context_enabled
        self.explain = explain
        self.input_history_path = input_history_path
        self.window = ConversationWindow()

    # Interactive loop

    def run(self) -> None:
        """Read requests until ``exit`` or end of input."""
        self._load_input_history()
        click.echo("Describe a command (type 'help' for options, 'exit' to quit).")
        try:
            while True:
                try:
                    line = self.read_line(INPUT_PROMPT)
                except KeyboardInterrupt:
                    click.echo("\nInterrupted. Type 'exit' or press Ctrl-D to quit.")
                    continue
                if not self.handle_line(line):
                    break
        except EOFError:
            click.echo()
        finally:
            self._save_input_history()

    def handle_line(self, line: str) -> bool:
        """Process one line of input.  Returns False when the session should end."""
        text = line.strip()
        if not text:
            return True
        keyword = text.lower()
        if keyword in EXIT_COMMANDS:
            return False
        if keyword == "clear":
            click.clear()
            return True
        if keyword == "help":
            click.echo(HELP_TEXT)
            return True
        self.run_turn(text)
        return True

    # One turn

    def run_turn(self, text: str) -> Optional[str]:
        """Generate, present and settle a command for ``text``.

        :returns: The final command, or ``None`` if the turn was
          aborted before anything was recorded.
        """
        try:
            command, explanation = self.generate(text)
        except ApiError as exc:
            click.echo(click.style(f"Error: {exc}", fg="red"), err=True)
            return None
        self.present(command, explanation)
        try:
            final = self.confirm(command)
        except KeyboardInterrupt:
            click.echo("\nInterrupted. Nothing was recorded.")
            return None
        self.commit(text, final)
        return final

    def generate(self, text: str) -> Tuple[str, Optional[str]]:
        """Ask the model for a command; returns ``(command, explanation)``."""
        context = harvest(enabled=self.context_enabled)
        system_prompt = build_system_prompt(context, explain=self.explain)
        user_prompt = compose_prompt(text, self.window)
        raw = self.provider.generate(user_prompt, system_prompt)
        command, explanation = sanitize(raw)
        if not command:
            raise EmptyResultError("The model returned an empty command")
        return command, explanation

    def present(self, command: str, explanation: Optional[str] = None) -> None:
        click.echo()
        click.echo(click.style("Suggested command:", bold=True))
        click.echo()
        click.echo("   " + click.style(command, fg="cyan"))
        if explanation:
            click.echo()
            click.echo("   " + explanation)
        click.echo()

    def confirm(self, command: str) -> str:
        """Run the confirm/edit loop and return the settled command.

        Editing may be repeated any number of times; the loop only ends
        when the operator runs or skips the pending command.
        """
        pending = command
        while True:
            answer = self.read_line(CONFIRM_PROMPT).strip().lower()
            if answer in YES_ANSWERS:
                self.execute(pending)
                return pending
            if answer in NO_ANSWERS:
                click.echo("Skipped.")
                return pending
            if answer in EDIT_ANSWERS:
                pending = self.edit(pending)
                self.present(pending)
                continue
            click.echo("Please answer y, n or e.")

    def edit(self, command: str) -> str:
        """Return the revised command for one edit instruction."""
        instruction = self.read_line(EDIT_PROMPT).strip()
        if not instruction:
            return command
        if is_direct_command(instruction):
            return instruction
        try:
            raw = self.provider.generate(build_edit_prompt(command, instruction), EDIT_SYSTEM_PROMPT)
        except ApiError as exc:
            logger.warning("Edit request failed, using the edit text as the command: %s", exc)
            return instruction
        revised, _ = sanitize(raw)
        if not revised:
            logger.warning("The model returned an empty revision, using the edit text as the command")
            return instruction
        return revised

    def execute(self, command: str) -> ExecutionResult:
        click.echo(click.style("Running...", bold=True))
        result = self.executor(command)
        if result.stdout:
            click.echo(result.stdout_text.rstrip())
        if result.stderr:
            click.echo(result.stderr_text.rstrip(), err=True)
        color = "green" if result.exit_code == 0 else "red"
        click.echo(click.style(f"[exit status {result.exit_code}]", fg=color))
        return result

    def commit(self, text: str, command: str) -> None:
        """Record a settled turn in the history file and the window."""
        try:
            self.history.append(text, command)
        except OSError as exc:
            logger.warning("Failed to write history to %s: %s", self.history.path, exc)
        self.window.push(text, command)

    # readline line history

    def _load_input_history(self) -> None:
        if readline is None or self.input_history_path is None:
            return
        if self.input_history_path.exists():
            try:
                readline.read_history_file(str(self.input_history_path))
            except OSError as exc:
                logger.debug("Could not read input history: %s", exc)

    def _save_input_history(self) -> None:
        if readline is None or self.input_history_path is None:
            return
        try:
            self.input_history_path.parent.mkdir(parents=True, exist_ok=True)
            readline.write_history_file(str(self.input_history_path))
        except OSError as exc:
            logger.debug("Could not save input history: %s", exc)
