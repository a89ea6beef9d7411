"""YAML config loader with environment variable interpolation and overrides."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from terminus_client.config.models import TerminusConfig

CONFIG_FILENAME = ".terminus.yaml"
CONFIG_PATH_ENV = "TERMINUS_CONFIG"

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

# TERMINUS_* variables that override a (section, key) of the file
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "TERMINUS_HOST": ("api", "host"),
    "TERMINUS_PROTOCOL": ("api", "protocol"),
    "TERMINUS_PORT": ("api", "port"),
    "TERMINUS_SESSION_TOKEN": ("auth", "session_token"),
    "TERMINUS_USER_ID": ("auth", "user_id"),
    "TERMINUS_POLL_INTERVAL": ("workflows", "poll_interval"),
    "TERMINUS_MAX_WAIT": ("workflows", "max_wait"),
}


def _interpolate_env(value: str) -> str:
    """Replace ${VAR} and ${VAR:-default} patterns with environment values."""

    def _replace(match: re.Match[str]) -> str:
        expr = match.group(1)
        if ":-" in expr:
            var_name, default = expr.split(":-", 1)
            return os.environ.get(var_name.strip(), default)
        return os.environ.get(expr.strip(), match.group(0))

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _interpolate_recursive(data: Any) -> Any:
    """Walk a nested data structure and interpolate env vars in strings."""
    if isinstance(data, str):
        return _interpolate_env(data)
    if isinstance(data, dict):
        return {k: _interpolate_recursive(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_interpolate_recursive(item) for item in data]
    return data


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Layer TERMINUS_* environment variables over the file contents."""
    for var_name, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(var_name)
        if value is None or value == "":
            continue
        section_data = data.get(section)
        if not isinstance(section_data, dict):
            section_data = {}
        data[section] = {**section_data, key: value}
    return data


def find_config_file(start: Path | None = None) -> Path | None:
    """Locate .terminus.yaml via $TERMINUS_CONFIG or by walking up from *start*."""
    explicit = os.environ.get(CONFIG_PATH_ENV)
    if explicit:
        return Path(explicit).expanduser()
    current = (start or Path.cwd()).resolve()
    for ancestor in [current, *current.parents]:
        candidate = ancestor / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return None


def load_config(path: Path | None = None) -> TerminusConfig:
    """Load and validate .terminus.yaml, applying interpolation and env overrides."""
    config_path = path or find_config_file()
    if not config_path or not config_path.exists():
        raise FileNotFoundError(
            f"Could not find {CONFIG_FILENAME}. Set ${CONFIG_PATH_ENV} or pass --path."
        )
    with config_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid configuration in {config_path}: top level must be a mapping")
    data = _apply_env_overrides(_interpolate_recursive(raw))
    try:
        return TerminusConfig(**data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration in {config_path}: {exc}") from exc
