"""Top-level package for quickcmd.

This package contains the implementation of a command line tool named
``wtf`` which converts natural language requests into shell commands
using a remote language model.  The interactive loop lives in the
``session`` module, while helper modules handle provider abstraction,
output sanitization, context harvesting, configuration and the
persisted command history.

When this package is installed via pip you can invoke the CLI from
your shell using the ``wtf`` entry point.  Alternatively you can run
``python -m quickcmd.cli`` from this directory for local development.
"""

__version__ = "0.1.0"

__all__ = [
    "cli",
    "config",
    "context",
    "errors",
    "history",
    "prompts",
    "providers",
    "sanitizer",
    "server",
    "session",
    "shell",
]
