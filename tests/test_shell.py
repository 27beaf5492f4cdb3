"""Tests for shell execution and integration snippets."""

import pytest

from quickcmd.shell import init_snippet, run_command


def test_run_command_captures_output(monkeypatch):
    monkeypatch.setenv("SHELL", "/bin/sh")
    result = run_command("echo out; echo err >&2; exit 4")
    assert result.stdout == b"out\n"
    assert result.stderr == b"err\n"
    assert result.exit_code == 4


def test_run_command_missing_shell(monkeypatch):
    monkeypatch.setenv("SHELL", "/nonexistent/shell")
    result = run_command("echo hi")
    assert result.exit_code == 127
    assert result.stdout == b""


def test_zsh_snippet_fills_line_editor():
    assert "print -z" in init_snippet("zsh")


def test_unknown_shell():
    with pytest.raises(ValueError, match="Unsupported shell"):
        init_snippet("powershell")


def test_run_command_keeps_non_utf8_bytes(monkeypatch):
    monkeypatch.setenv("SHELL", "/bin/sh")
    result = run_command("printf '\\377\\376abc'")
    assert result.stdout == b"\xff\xfeabc"
    assert result.stdout_text == "��abc"
