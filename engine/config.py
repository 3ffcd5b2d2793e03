"""
User configuration file support.

Reads/writes ``~/.speedcheck/config.json``.  Only presentation and logging
preferences live here; endpoints, chunk size and timing floors are fixed.

Supported keys::

    simple = false           # plain-text output instead of the dashboard
    json = false             # print the result document as JSON
    log_level = "WARNING"
    log_file = ""            # also log to this file when set
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

_CONFIG_DIR = os.path.join(Path.home(), ".speedcheck")
_CONFIG_FILE = "config.json"

LOGGER = logging.getLogger(__name__)


def _config_path() -> str:
    return os.path.join(_CONFIG_DIR, _CONFIG_FILE)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULTS: Dict[str, Any] = {
    "simple": False,
    "json": False,
    "log_level": "WARNING",
    "log_file": "",
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def parse_config_value(key: str, raw: str) -> Any:
    """Convert the command-line string *raw* into the type *key* expects."""
    if key not in DEFAULTS:
        raise ValueError(f"Unknown config key: {key}")

    if isinstance(DEFAULTS[key], bool):
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"{key} must be true or false, got {raw!r}")

    if key == "log_level":
        level = raw.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    return raw


def _check_value(key: str, value: Any) -> None:
    if key not in DEFAULTS:
        raise ValueError(f"Unknown config key: {key}")
    expected = type(DEFAULTS[key])
    if not isinstance(value, expected):
        raise ValueError(f"{key} must be of type {expected.__name__}")
    if key == "log_level" and value not in LOG_LEVELS:
        raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")


# ---------------------------------------------------------------------------
# Read / Write
# ---------------------------------------------------------------------------

def load_config() -> Dict[str, Any]:
    """Load config from disk, returning defaults for missing keys."""
    path = _config_path()
    config = dict(DEFAULTS)

    if not os.path.isfile(path):
        return config

    try:
        with open(path, encoding="utf-8") as fh:
            user = json.load(fh)
        if isinstance(user, dict):
            config.update(_valid_entries(user))
    except (json.JSONDecodeError, IOError):
        pass  # corrupt file; use defaults

    return config


def _valid_entries(user: Dict[str, Any]) -> Dict[str, Any]:
    """Entries of *user* that are known keys with usable values."""
    valid: Dict[str, Any] = {}
    for key, value in user.items():
        try:
            _check_value(key, value)
        except ValueError as exc:
            LOGGER.warning("Ignoring config entry %r: %s", key, exc)
            continue
        valid[key] = value
    return valid


def save_config(config: Dict[str, Any]) -> str:
    """Write *config* to disk.  Returns the file path."""
    path = _config_path()
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", encoding="utf-8") as fh:
        json.dump(config, fh, indent=2, ensure_ascii=False)

    return path


def get_config_value(key: str) -> Any:
    """Get a single config value."""
    return load_config().get(key, DEFAULTS.get(key))


def set_config_value(key: str, value: Any) -> str:
    """Validate, set and persist a single config value.  Returns file path."""
    _check_value(key, value)
    config = load_config()
    config[key] = value
    return save_config(config)


def config_path() -> str:
    """Return the config file path (for display purposes)."""
    return _config_path()
