"""Prompt templates and prompt composition.

The system prompt tells the model to answer with a bare command.  The
user prompt is either the raw request or, when the session has recent
turns, a short transcript of them followed by the new request so that
follow-ups like "same but only for .log files" resolve correctly.
"""

from __future__ import annotations

from typing import Iterable, Tuple

from .sanitizer import EXPLANATION_SEPARATOR

SYSTEM_PROMPT = """You are a shell command expert. Your task is to translate the user's natural language request into a valid shell command.

Rules:
1. Output ONLY the shell command, nothing else. No explanations, no markdown, no code blocks.
2. Use standard POSIX commands when possible for portability.
3. For macOS-specific tasks, use the appropriate macOS commands.
4. If the request is dangerous (like rm -rf /), still provide the command but add a comment warning.
5. If the request is ambiguous, provide the most common interpretation.
6. Use single quotes for strings unless double quotes are necessary for variable expansion.
7. For multi-step operations, chain commands with && or use a single-line script.

Examples:
User: show my ip address
Output: curl -s ifconfig.me

User: find large files over 100mb
Output: find . -type f -size +100M

User: kill process on port 3000
Output: lsof -ti:3000 | xargs kill -9

User: compress this folder
Output: tar -czvf archive.tar.gz .
"""

EXPLAIN_INSTRUCTION = (
    "After the command, output a line containing exactly "
    f"{EXPLANATION_SEPARATOR} followed by a one or two sentence explanation "
    "of what the command does."
)

EDIT_SYSTEM_PROMPT = (
    "You revise shell commands. Apply the requested modification to the "
    "given command and output ONLY the revised command, with no "
    "explanation, markdown or code blocks."
)


def build_system_prompt(context: str = "", explain: bool = False) -> str:
    """Return the system prompt, enriched with context when there is any."""
    prompt = SYSTEM_PROMPT
    if explain:
        prompt += "\n" + EXPLAIN_INSTRUCTION + "\n"
    if context:
        prompt += "\nContext about the user's environment:\n" + context + "\n"
    return prompt


def compose_prompt(request: str, turns: Iterable[Tuple[str, str]]) -> str:
    """Return the user prompt for ``request`` given prior turns.

    Without prior turns the request is sent as-is.
    """
    turns = list(turns)
    if not turns:
        return request
    lines = ["Previous conversation:"]
    for user_text, command in turns:
        lines.append(f"User: {user_text}")
        lines.append(f"Assistant: {command}")
    lines.append("")
    lines.append(f"Current request: {request}")
    return "\n".join(lines)


def build_edit_prompt(command: str, instruction: str) -> str:
    return (
        f"Current command: {command}\n"
        f"Modification: {instruction}\n"
        "Output only the revised command."
    )
