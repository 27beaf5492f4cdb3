"""Configuration loading for quickcmd.

Settings come from two places.  An optional YAML file
(``~/.quickcmd/config.yaml``) holds persistent preferences written by
``wtf configure``; environment variables override it.  The API key is
only ever read from the environment so that it never lands on disk.

The provider kind is derived rather than configured: supplying a
custom base URL selects the OpenAI-compatible wire format, otherwise
the Gemini API is used.
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ConfigError

API_KEY_VARS = ("QUICKCMD_API_KEY", "GEMINI_API_KEY", "OPENAI_API_KEY")

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_DEFAULT_MODEL = "gemini-2.0-flash"
OPENAI_DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TIMEOUT = 60.0

DEFAULT_CONFIG: Dict[str, Any] = {
    "base_url": None,
    "model": None,
    "context": True,
    "timeout": DEFAULT_TIMEOUT,
}

MISSING_KEY_MESSAGE = (
    "No API key found. Set QUICKCMD_API_KEY (or GEMINI_API_KEY).\n\n"
    "To get a Gemini API key:\n"
    "1. Visit https://aistudio.google.com/app/apikey\n"
    "2. Create a free API key\n"
    "3. Run: export GEMINI_API_KEY='your-key-here'"
)


class ProviderKind(enum.Enum):
    GEMINI = "gemini"
    OPENAI_COMPATIBLE = "openai"


@dataclass(frozen=True)
class ProviderConfig:
    """Provider settings resolved once per process."""

    api_key: str
    base_url: str
    model: str
    provider_kind: ProviderKind
    context_enabled: bool = True
    timeout: float = DEFAULT_TIMEOUT


def state_dir() -> Path:
    """Return the directory holding quickcmd's files.

    ``$QUICKCMD_HOME`` when set, ``~/.quickcmd`` otherwise.  The
    directory is not created here; writers create it on demand.
    """
    override = os.environ.get("QUICKCMD_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".quickcmd"


def config_file() -> Path:
    """Return the path to the configuration file."""
    return state_dir() / "config.yaml"


def load_file_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the YAML configuration, returning defaults if missing or malformed."""
    cfg_path = path or config_file()
    config = dict(DEFAULT_CONFIG)
    if not cfg_path.exists():
        return config
    try:
        with cfg_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        return config
    if isinstance(data, dict):
        config.update({k: v for k, v in data.items() if k in DEFAULT_CONFIG})
    return config


def save_file_config(config: Mapping[str, Any], path: Optional[Path] = None) -> Path:
    """Persist configuration to disk and return the file path."""
    cfg_path = path or config_file()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    data = {k: config.get(k, DEFAULT_CONFIG[k]) for k in DEFAULT_CONFIG}
    with cfg_path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False)
    return cfg_path


def _flag_set(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() not in ("", "0", "false", "no", "off")


def _file_str(value: Any) -> str:
    # YAML may hand back ints or lists for keys that only make sense as text
    if isinstance(value, str):
        return value
    if value is None or isinstance(value, (bool, list, dict)):
        return ""
    return str(value)


def _file_flag(value: Any, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return _flag_set(value)
    return bool(value)


def load_config(
    env: Optional[Mapping[str, str]] = None,
    path: Optional[Path] = None,
) -> ProviderConfig:
    """Resolve the :class:`ProviderConfig` for this process.

    :param env: Environment mapping, ``os.environ`` by default.
    :param path: Config file path, :func:`config_file` by default.
    :raises ConfigError: When no API key is available.
    """
    env = os.environ if env is None else env
    file_cfg = load_file_config(path)

    api_key = ""
    for name in API_KEY_VARS:
        api_key = (env.get(name) or "").strip()
        if api_key:
            break
    if not api_key:
        raise ConfigError(MISSING_KEY_MESSAGE)

    base_url = (env.get("QUICKCMD_BASE_URL") or _file_str(file_cfg.get("base_url"))).strip()
    model = (env.get("QUICKCMD_MODEL") or _file_str(file_cfg.get("model"))).strip()
    if base_url:
        kind = ProviderKind.OPENAI_COMPATIBLE
        model = model or OPENAI_DEFAULT_MODEL
    else:
        kind = ProviderKind.GEMINI
        base_url = GEMINI_BASE_URL
        model = model or GEMINI_DEFAULT_MODEL

    context_enabled = _file_flag(file_cfg.get("context"))
    if _flag_set(env.get("QUICKCMD_NO_CONTEXT")):
        context_enabled = False

    try:
        timeout = float(file_cfg.get("timeout") or DEFAULT_TIMEOUT)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid timeout in config: {file_cfg.get('timeout')!r}")

    return ProviderConfig(
        api_key=api_key,
        base_url=base_url.rstrip("/"),
        model=model,
        provider_kind=kind,
        context_enabled=context_enabled,
        timeout=timeout,
    )
