"""Command line interface for quickcmd.

This module defines the ``wtf`` command using the ``click`` library.
It exposes several subcommands:

``wtf run <prompt>``
    Generate a command for the prompt, show it and ask whether to
    run, skip or edit it.  ``--raw`` prints only the command, which
    is what the shell integration uses.

``wtf chat``
    Start an interactive session.  Recent turns are remembered so
    that follow-up requests can build on them.

``wtf history``
    Display recently generated commands, or delete the log with
    ``--clear``.

``wtf init <shell>``
    Print the integration snippet for zsh, bash or fish.

``wtf configure``
    Store the model, base URL and context preferences in
    ``~/.quickcmd/config.yaml``.

``wtf serve``
    Launch a FastAPI server exposing a JSON API for external
    integrations.  The server listens on port 5005 by default.
"""

from __future__ import annotations

import datetime as _datetime
import logging
import sys
from typing import Optional

import click

from . import __version__
from .config import (
    ProviderConfig,
    load_config,
    load_file_config,
    save_file_config,
    state_dir,
)
from .context import harvest
from .errors import ApiError, ConfigError
from .history import HistoryStore
from .prompts import build_system_prompt
from .providers import get_provider
from .sanitizer import sanitize
from .session import Session
from .shell import init_snippet


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def _resolve_config() -> ProviderConfig:
    try:
        return load_config()
    except ConfigError as exc:
        click.echo(click.style(f"Error: {exc}", fg="red"), err=True)
        sys.exit(1)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="wtf")
@click.option("-v", "--verbose", is_flag=True, help="Log provider requests and other details.")
def cli(verbose: bool) -> None:
    """wtf – translate natural language into shell commands."""
    _setup_logging(verbose)


@cli.command(name="run")
@click.argument("prompt", nargs=-1, type=str)
@click.option("--raw", is_flag=True, help="Print only the command; no prompt, no history.")
@click.option("--explain", is_flag=True, help="Ask the model to explain the command.")
def run_prompt(prompt: tuple, raw: bool, explain: bool) -> None:
    """Generate a command for PROMPT and offer to run it."""
    prompt_text = " ".join(prompt).strip()
    if not prompt_text:
        click.echo('Please provide a prompt, e.g. wtf run "show my ip address"', err=True)
        sys.exit(2)
    config = _resolve_config()
    with get_provider(config) as provider:
        if raw:
            system_prompt = build_system_prompt(harvest(enabled=config.context_enabled))
            try:
                command, _ = sanitize(provider.generate(prompt_text, system_prompt))
            except ApiError as exc:
                click.echo(f"Error: {exc}", err=True)
                sys.exit(1)
            if not command:
                click.echo("Error: the model returned an empty command", err=True)
                sys.exit(1)
            click.echo(command)
            return
        session = Session(
            provider,
            HistoryStore(),
            context_enabled=config.context_enabled,
            explain=explain,
        )
        try:
            final = session.run_turn(prompt_text)
        except EOFError:
            click.echo()
            final = None
    if final is None:
        sys.exit(1)


@cli.command(name="chat")
@click.option("--explain", is_flag=True, help="Ask the model to explain each command.")
def chat(explain: bool) -> None:
    """Start an interactive session."""
    config = _resolve_config()
    with get_provider(config) as provider:
        session = Session(
            provider,
            HistoryStore(),
            context_enabled=config.context_enabled,
            explain=explain,
            input_history_path=state_dir() / "input_history",
        )
        session.run()


@cli.command(name="history")
@click.option("-n", "--last", "last_n", default=20, show_default=True, help="Number of entries to show.")
@click.option("--clear", "clear_log", is_flag=True, help="Delete the history file.")
def history_cmd(last_n: int, clear_log: bool) -> None:
    """Show previously generated commands."""
    store = HistoryStore()
    if clear_log:
        if store.clear():
            click.echo("History cleared.")
        else:
            click.echo("No history to clear.")
        return
    entries = store.show(last_n)
    if not entries:
        click.echo("No history available.")
        return
    for entry in entries:
        when = _datetime.datetime.fromtimestamp(entry.timestamp).strftime("%Y-%m-%d %H:%M")
        click.echo(f"{when}  {entry.command}  ←  {entry.prompt}")


@cli.command(name="init")
@click.argument("shell_name", metavar="SHELL")
def init(shell_name: str) -> None:
    """Print the shell integration snippet for SHELL (zsh, bash or fish)."""
    try:
        click.echo(init_snippet(shell_name), nl=False)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="SHELL")


@cli.command()
@click.option("--model", type=str, default=None, help="Model name (e.g. gemini-2.0-flash, gpt-4o-mini)")
@click.option("--base-url", type=str, default=None, help="OpenAI-compatible endpoint; empty string for Gemini")
@click.option("--context/--no-context", default=None, help="Send directory listing and git status to the model")
@click.option("--timeout", type=float, default=None, help="HTTP timeout in seconds")
def configure(
    model: Optional[str],
    base_url: Optional[str],
    context: Optional[bool],
    timeout: Optional[float],
) -> None:
    """Store provider preferences in the config file."""
    config = load_file_config()
    if model is not None:
        config["model"] = model or None
    if base_url is not None:
        config["base_url"] = base_url or None
    if context is not None:
        config["context"] = context
    if timeout is not None:
        config["timeout"] = timeout
    path = save_file_config(config)
    provider = "openai-compatible" if config.get("base_url") else "gemini"
    click.echo(f"Configuration written to {path}. Provider={provider}, Model={config.get('model') or 'default'}")


@cli.command(name="serve")
@click.option("--host", default="127.0.0.1", help="Bind address for the HTTP server")
@click.option("--port", default=5005, help="Port for the HTTP server")
def serve(host: str, port: int) -> None:
    """Run an HTTP server exposing a JSON API for generating commands."""
    import uvicorn

    from .server import create_app

    config = _resolve_config()
    with get_provider(config) as provider:
        app = create_app(provider, context_enabled=config.context_enabled)
        click.echo(f"quickcmd server running on http://{host}:{port}")
        uvicorn.run(app, host=host, port=port)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
