from __future__ import annotations

from typing import List, Optional, Tuple

import pytest

from quickcmd.config import ProviderConfig, ProviderKind
from quickcmd.errors import ApiError
from quickcmd.shell import ExecutionResult


class FakeProvider:
    """Provider stand-in that replays canned replies and records prompts."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls: List[Tuple[str, str]] = []

    def generate(self, user_prompt: str, system_prompt: str) -> str:
        self.calls.append((user_prompt, system_prompt))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


class FakeExecutor:
    def __init__(self, result: Optional[ExecutionResult] = None):
        self.result = result or ExecutionResult(stdout=b"ok\n", stderr=b"", exit_code=0)
        self.commands: List[str] = []

    def __call__(self, command: str) -> ExecutionResult:
        self.commands.append(command)
        return self.result


def scripted_input(*lines):
    """Return a ``read_line`` callable answering with ``lines`` then EOF."""
    queue = list(lines)

    def read_line(prompt: str = "") -> str:
        if not queue:
            raise EOFError
        item = queue.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    return read_line


@pytest.fixture(autouse=True)
def _isolate_state(tmp_path, monkeypatch):
    """Keep config and history files inside a per-test directory."""
    home = tmp_path / "quickcmd-home"
    monkeypatch.setenv("QUICKCMD_HOME", str(home))
    for name in ("QUICKCMD_API_KEY", "GEMINI_API_KEY", "OPENAI_API_KEY",
                 "QUICKCMD_BASE_URL", "QUICKCMD_MODEL", "QUICKCMD_NO_CONTEXT"):
        monkeypatch.delenv(name, raising=False)
    yield home


@pytest.fixture
def gemini_config():
    return ProviderConfig(
        api_key="test-key",
        base_url="https://gemini.test/v1beta",
        model="gemini-2.0-flash",
        provider_kind=ProviderKind.GEMINI,
        context_enabled=False,
    )


@pytest.fixture
def openai_config():
    return ProviderConfig(
        api_key="sk-test",
        base_url="https://llm.test/v1",
        model="gpt-4o-mini",
        provider_kind=ProviderKind.OPENAI_COMPATIBLE,
        context_enabled=False,
    )


@pytest.fixture
def api_error():
    return ApiError("Gemini API error", status_code=500, body="boom")
