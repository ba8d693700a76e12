"""Configuration loader for aicomment."""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path

import yaml

log = logging.getLogger(__name__)

API_KEY_ENV = "DASHSCOPE_API_KEY"
DEBUG_ENV = "DEBUG"
CONFIG_ENV = "AICOMMENT_CONFIG"

_TRUTHY = {"1", "true"}

# (section, key) -> type the value is coerced to after merging.
_NUMERIC_KEYS: dict[tuple[str, str], type] = {
    ("llm", "temperature"): float,
    ("llm", "max_tokens"): int,
    ("llm", "timeout"): float,
    ("llm", "max_retries"): int,
    ("llm", "retry_backoff"): float,
    ("batch", "workers"): int,
}


class ConfigError(ValueError):
    """A configuration value has the wrong type."""

DEFAULTS: dict = {
    "llm": {
        "api_key": None,
        "model": "qwen-plus",
        "base_url": "https://dashscope.aliyuncs.com",
        "temperature": 0.3,
        "max_tokens": 2000,
        "timeout": 120.0,
        "max_retries": 0,
        "retry_backoff": 1.0,
        "debug": False,
        "comment_language": "English",
    },
    "backup": {
        "enabled": True,
        "suffix": ".backup",
    },
    "batch": {
        "workers": 1,
    },
}


def config_path() -> Path:
    """Resolve config.yaml: $AICOMMENT_CONFIG > ~/.aicomment/config.yaml."""
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return Path(env_path).expanduser()
    return Path("~/.aicomment/config.yaml").expanduser()


def load_env(start: Path | None = None) -> Path | None:
    """Load the nearest .env file into os.environ without overriding.

    Searches ``start`` (default: cwd) and its parents. Returns the path that
    was loaded, or None.
    """
    from dotenv import load_dotenv

    start = (start or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        candidate = directory / ".env"
        if candidate.is_file():
            load_dotenv(dotenv_path=candidate, override=False)
            log.debug("Loaded environment from %s", candidate)
            return candidate
    return None


def load_config(path: Path | None = None, env: dict[str, str] | None = None) -> dict:
    """Load config.yaml, merge with defaults, then apply environment overrides.

    Args:
        path: Explicit path to config.yaml. If None, uses default location.
        env: Environment mapping to read overrides from (default: os.environ).

    Returns:
        Merged configuration dict.

    Raises:
        ConfigError: A numeric setting cannot be converted.
    """
    if path is None:
        path = config_path()
    if env is None:
        env = dict(os.environ)

    user_config: dict = {}
    if path.exists():
        try:
            raw = path.read_text(encoding="utf-8")
            user_config = yaml.safe_load(raw) or {}
        except Exception:
            log.warning("Failed to read config at %s, using defaults", path, exc_info=True)
        if not isinstance(user_config, dict):
            log.warning("Config at %s is not a mapping, using defaults", path)
            user_config = {}

    merged = _deep_merge(copy.deepcopy(DEFAULTS), user_config)
    _coerce_numbers(merged, path)
    llm = merged["llm"]

    api_key = env.get(API_KEY_ENV)
    if api_key:
        llm["api_key"] = api_key
    if not llm.get("api_key"):
        llm["api_key"] = _get_api_key("dashscope_api_key")

    if is_truthy(env.get(DEBUG_ENV)):
        llm["debug"] = True

    return merged


def is_truthy(value: str | None) -> bool:
    """Return True for the diagnostic toggle values "1" and "true"."""
    return (value or "").strip().lower() in _TRUTHY


def _get_api_key(service: str) -> str | None:
    """Retrieve an API key from the system keyring."""
    try:
        import keyring

        return keyring.get_password("aicomment", service)
    except Exception:
        return None


def _coerce_numbers(config: dict, path: Path) -> None:
    for (section, key), cast in _NUMERIC_KEYS.items():
        values = config.get(section)
        if not isinstance(values, dict):
            raise ConfigError(f"Invalid config in {path}: '{section}' must be a mapping")
        value = values.get(key)
        if value is None:
            values[key] = DEFAULTS[section][key]
            continue
        try:
            values[key] = cast(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(
                f"Invalid config value {section}.{key}: {value!r} "
                f"(expected {'an integer' if cast is int else 'a number'}) in {path}"
            ) from e


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base, returning a new dict."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result
