"""Output sanitization utilities.

Model output frequently arrives wrapped in Markdown code fences even
when the system prompt asks for a bare command, and terminal escape
sequences must never leak from display formatting into the history
file.  This module implements both clean-up steps:

* :func:`sanitize` splits an optional explanation off the model
  output and removes code fences from the command part.
* :func:`strip_ansi_escapes` removes CSI escape sequences before text
  is persisted.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

EXPLANATION_SEPARATOR = "---EXPLANATION---"

ESC = "\x1b"

_OPENING_FENCE = re.compile(r"^\s*```(?:[\w+.-]*[ \t]*\n)?")
_CLOSING_FENCE = re.compile(r"\n?[ \t]*```\s*$")


def strip_code_fences(text: str) -> str:
    """Remove a leading and a trailing Markdown fence, then trim."""
    text = _OPENING_FENCE.sub("", text, count=1)
    text = _CLOSING_FENCE.sub("", text, count=1)
    return text.strip()


def sanitize(raw: str) -> Tuple[str, Optional[str]]:
    """Split model output into ``(command, explanation)``.

    :param raw: Text returned by the provider.
    :returns: The cleaned command and the trimmed explanation, or
      ``None`` when the output carries no separator.

    Only the first occurrence of :data:`EXPLANATION_SEPARATOR` splits;
    later occurrences stay in the explanation.  Fences are only
    stripped from the command side.
    """
    explanation: Optional[str] = None
    command = raw
    if EXPLANATION_SEPARATOR in raw:
        command, rest = raw.split(EXPLANATION_SEPARATOR, 1)
        explanation = rest.strip()
    return strip_code_fences(command), explanation


def strip_ansi_escapes(text: str) -> str:
    """Remove ANSI CSI sequences (``ESC [ params final-letter``).

    The input is scanned one character at a time.  A stray ESC that
    does not start a CSI sequence is dropped, as is a sequence cut off
    by the end of the string, so the result never contains ESC and
    applying the function twice gives the same result as once.
    """
    out = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch != ESC:
            out.append(ch)
            i += 1
            continue
        i += 1
        if i < n and text[i] == "[":
            i += 1
            while i < n and not text[i].isalpha():
                i += 1
            # final letter
            i += 1
    return "".join(out)
