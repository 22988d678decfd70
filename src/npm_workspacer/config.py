"""YAML-based configuration management.

Config layers, later layers win:
1. Built-in defaults
2. Global: ~/.config/npm-workspacer/config.yaml
3. Workspace: <root>/.workspacer.yaml
"""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any

import yaml

from .types import KeyStyle

WORKSPACE_CONFIG_NAME = ".workspacer.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "packages_dir": "packages",
    "api_url": "https://api.github.com",
    "http_timeout": 30,
    "git_timeout": None,
    "jobs": 1,
    "key_style": KeyStyle.PREFIX.value,
    "init_command": ["npm", "init", "-y"],
    "default_commands": [],
    "selection_retries": 1,
}


def get_config_dir() -> Path:
    """Get the npm-workspacer config directory."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(xdg_config) / "npm-workspacer"


def get_global_config_path() -> Path:
    """Get the path to the global config file."""
    return get_config_dir() / "config.yaml"


def get_workspace_config_path(root: Path) -> Path:
    """Get the per-workspace config path."""
    return root / WORKSPACE_CONFIG_NAME


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml_mapping(path: Path) -> dict[str, Any] | None:
    """Load a YAML file that must contain a mapping.

    Returns None when the file is missing, corrupt or not a mapping.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
        if isinstance(data, dict):
            return data
        return None
    except (FileNotFoundError, yaml.YAMLError, OSError):
        return None


def load_global_config() -> dict[str, Any]:
    """Load the global config merged over the defaults."""
    data = _load_yaml_mapping(get_global_config_path())
    if data is None:
        return copy.deepcopy(DEFAULT_CONFIG)
    return _deep_merge(copy.deepcopy(DEFAULT_CONFIG), data)


def load_config(root: Path | None = None) -> dict[str, Any]:
    """Load the effective config for a workspace root."""
    cfg = load_global_config()
    if root is not None:
        local = _load_yaml_mapping(get_workspace_config_path(root))
        if local:
            cfg = _deep_merge(cfg, local)
    return cfg


def save_config(cfg: dict[str, Any]) -> None:
    """Save the global config."""
    config_path = get_global_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.dump(cfg, f, default_flow_style=False, sort_keys=False)


def get_key_style(cfg: dict[str, Any]) -> KeyStyle:
    """Return the configured key style, defaulting to prefix style."""
    try:
        return KeyStyle(cfg.get("key_style", KeyStyle.PREFIX.value))
    except ValueError:
        return KeyStyle.PREFIX


def get_init_command(cfg: dict[str, Any]) -> list[str]:
    """Return the package initializer command as an argv list."""
    raw = cfg.get("init_command") or DEFAULT_CONFIG["init_command"]
    if isinstance(raw, str):
        return raw.split()
    return [str(part) for part in raw]


def get_git_timeout(cfg: dict[str, Any]) -> float | None:
    raw = cfg.get("git_timeout")
    return float(raw) if raw else None


def get_jobs(cfg: dict[str, Any]) -> int:
    try:
        return max(1, int(cfg.get("jobs", 1)))
    except (TypeError, ValueError):
        return 1
