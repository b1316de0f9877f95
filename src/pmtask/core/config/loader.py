"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import PmConfig

logger = logging.getLogger(__name__)

# Global cache to avoid reloading config multiple times per session
_config_cache: PmConfig | None = None

_FALSE_VALUES = ("false", "0", "", "no", "off")


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """
    Get path to user configuration file.

    Returns:
        Path to ~/.config/pm/config.json (or XDG equivalent)
    """
    return get_xdg_config_home() / "pm" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        cwd: Working directory to search from (defaults to current directory)

    Returns:
        Path to .pm.json in the project root
    """
    if cwd is None:
        cwd = Path.cwd()
    return cwd / ".pm.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`.
    Nested dicts are merged, not replaced.

    Example:
        >>> base = {"a": 1, "b": {"x": 10, "y": 20}}
        >>> override = {"b": {"y": 30, "z": 40}, "c": 3}
        >>> deep_merge(base, override)
        {'a': 1, 'b': {'x': 10, 'y': 30, 'z': 40}, 'c': 3}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            logger.warning("Ignoring config at %s: top level must be an object", path)
            return None
    except (json.JSONDecodeError, OSError) as e:
        # Config system should be resilient
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def _set_nested(config_dict: dict[str, Any], section: str, key: str, value: Any) -> None:
    if not isinstance(config_dict.get(section), dict):
        config_dict[section] = {}
    config_dict[section][key] = value


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Env vars have the highest precedence and override all config files.

    Supported env vars:
        PM_BACKEND - overrides storage.backend
        PM_DATA_DIR - overrides storage.data_dir
        PM_REQUIRE_APPROVAL - overrides approval.required
        PM_REJECT_CYCLES - overrides lifecycle.reject_dependency_cycles

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = json.loads(json.dumps(config_dict))

    if backend := os.environ.get("PM_BACKEND"):
        _set_nested(result, "storage", "backend", backend.lower())

    if data_dir := os.environ.get("PM_DATA_DIR"):
        _set_nested(result, "storage", "data_dir", data_dir)

    if (approval := os.environ.get("PM_REQUIRE_APPROVAL")) is not None:
        _set_nested(result, "approval", "required", approval.lower() not in _FALSE_VALUES)

    if (cycles := os.environ.get("PM_REJECT_CYCLES")) is not None:
        _set_nested(
            result, "lifecycle", "reject_dependency_cycles", cycles.lower() not in _FALSE_VALUES
        )

    return result


def get_default_config() -> dict[str, Any]:
    """
    Get hardcoded default configuration.

    Returns:
        Dictionary with default configuration values
    """
    return {
        "storage": {
            "backend": "json",
            "data_dir": ".pm",
        },
        "ids": {
            "idea": "IDEA",
            "epic": "EPIC",
            "task": "TSK",
            "bug": "BUG",
            "rnd": "RND",
            "separator": "-",
        },
        "approval": {
            "required": True,
        },
        "lifecycle": {
            "reject_dependency_cycles": False,
        },
        "logging": {
            "events_enabled": True,
            "events_file": None,
        },
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> PmConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (PM_*)
        2. Project config (.pm.json)
        3. User config (~/.config/pm/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Project directory to load .pm.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated PmConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = PmConfig(**merged)

    _config_cache = config

    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
