"""Exception types shared across quickcmd.

Only :class:`ConfigError` is fatal to the process.  Every
:class:`ApiError` is scoped to a single turn: the session reports it
and returns to the input prompt.
"""

from __future__ import annotations

from typing import Optional


class QuickcmdError(Exception):
    """Base class for all quickcmd errors."""


class ConfigError(QuickcmdError):
    """Raised when the provider configuration cannot be resolved."""


class ApiError(QuickcmdError):
    """Raised when a provider request fails.

    ``status_code`` is ``None`` for transport failures.  ``body`` holds
    the raw response text, when there was one, for diagnostics.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        text = f"{self.message} (HTTP {self.status_code})"
        if self.body:
            text += f": {self.body}"
        return text


class EmptyResultError(ApiError):
    """Raised when a response carries no candidate or choice."""
