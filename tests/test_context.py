"""Tests for directory and git context harvesting."""

import json
import os
import shutil
import subprocess
import sys

import httpx
import pytest

from quickcmd import context
from quickcmd.context import MAX_DIR_ENTRIES, TRUNCATED_MARKER, git_status, harvest, list_directory
from quickcmd.prompts import build_system_prompt
from quickcmd.providers import GeminiProvider


@pytest.fixture
def no_git(monkeypatch):
    def fail(*args, **kwargs):
        raise FileNotFoundError("git")

    monkeypatch.setattr(context.subprocess, "run", fail)


def test_disabled_returns_empty(tmp_path):
    (tmp_path / "file.txt").write_text("x")
    assert harvest(enabled=False, cwd=tmp_path) == ""


def test_listing_sorted_without_dotfiles(tmp_path):
    for name in ("b.txt", "a.txt", ".hidden", "src"):
        (tmp_path / name).write_text("x")

    assert list_directory(tmp_path) == ["a.txt", "b.txt", "src"]


def test_listing_truncated(tmp_path):
    for i in range(MAX_DIR_ENTRIES + 5):
        (tmp_path / f"f{i:03d}").write_text("")

    names = list_directory(tmp_path)
    assert len(names) == MAX_DIR_ENTRIES + 1
    assert names[-1] == TRUNCATED_MARKER
    assert names[0] == "f000"


def test_listing_missing_directory(tmp_path):
    assert list_directory(tmp_path / "gone") == []


def test_git_missing_degrades_silently(tmp_path, no_git):
    assert git_status(tmp_path) == []


def test_git_failure_degrades_silently(tmp_path, monkeypatch):
    monkeypatch.setattr(
        context.subprocess,
        "run",
        lambda *a, **kw: subprocess.CompletedProcess(a, 128, stdout=b"", stderr=b"fatal: not a git repository"),
    )
    assert git_status(tmp_path) == []


def test_git_status_truncated(tmp_path, monkeypatch):
    output = b"".join(b"?? file%d\n" % i for i in range(30))
    monkeypatch.setattr(
        context.subprocess,
        "run",
        lambda *a, **kw: subprocess.CompletedProcess(a, 0, stdout=output, stderr=b""),
    )

    lines = git_status(tmp_path)
    assert len(lines) == 21
    assert lines[0] == "?? file0"
    assert lines[-1] == TRUNCATED_MARKER


def test_harvest_combines_sections(tmp_path, monkeypatch):
    (tmp_path / "main.py").write_text("")
    monkeypatch.setattr(
        context.subprocess,
        "run",
        lambda *a, **kw: subprocess.CompletedProcess(a, 0, stdout=b" M main.py\n", stderr=b""),
    )

    text = harvest(cwd=tmp_path)
    assert f"Current directory: {tmp_path}" in text
    assert "Files: main.py" in text
    assert "Git status:\n M main.py" in text


def test_harvest_empty_directory_outside_repo(tmp_path, no_git):
    assert harvest(cwd=tmp_path) == ""


def test_git_status_with_non_utf8_path(tmp_path, monkeypatch):
    monkeypatch.setattr(
        context.subprocess,
        "run",
        lambda *a, **kw: subprocess.CompletedProcess(a, 0, stdout=b"?? caf\xe9.txt\n", stderr=b""),
    )
    assert git_status(tmp_path) == ["?? caf�.txt"]


latin1_filenames = pytest.mark.skipif(
    sys.platform in ("win32", "darwin"), reason="needs a filesystem that accepts arbitrary bytes in names"
)


@pytest.fixture
def latin1_dir(tmp_path):
    (tmp_path / os.fsdecode(b"caf\xe9.txt")).write_text("")
    return tmp_path


@latin1_filenames
def test_listing_replaces_undecodable_names(latin1_dir):
    assert list_directory(latin1_dir) == ["caf�.txt"]


@latin1_filenames
@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
def test_harvest_in_repo_with_undecodable_names(latin1_dir):
    env = dict(os.environ, GIT_CONFIG_NOSYSTEM="1", HOME=str(latin1_dir))
    subprocess.run(["git", "init", "-q"], cwd=str(latin1_dir), check=True, env=env)
    subprocess.run(["git", "config", "core.quotepath", "false"], cwd=str(latin1_dir), check=True, env=env)

    text = harvest(cwd=latin1_dir)

    assert "caf�.txt" in text
    text.encode("utf-8")


@latin1_filenames
def test_harvested_context_can_be_sent(latin1_dir, no_git, gemini_config):
    sent = []

    def handler(request):
        sent.append(json.loads(request.content))
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "ls"}]}}]})

    provider = GeminiProvider(gemini_config, httpx.Client(transport=httpx.MockTransport(handler)))

    assert provider.generate("list", build_system_prompt(harvest(cwd=latin1_dir))) == "ls"
    assert "caf�.txt" in sent[0]["systemInstruction"]["parts"][0]["text"]
