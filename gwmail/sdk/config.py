"""Configuration for gwmail.

Settings live in one YAML file, by default ~/.config/gwmail/config.yaml:

    active_profile: work
    output:
      format: json

Values missing from the file fall back to DEFAULT_CONFIG. Keys are
addressed with dots ("output.format").
"""

import copy
import os
import yaml
import logging
from pathlib import Path
from typing import Any, List

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "GWMAIL_CONFIG_DIR"
CONFIG_FILE_ENV = "GWMAIL_CONFIG_FILE"
CONFIG_FILE_NAME = "config.yaml"

DEFAULT_CONFIG = {
    "active_profile": None,
    "output": {
        "format": "text"
    },
}


def get_config_dir() -> Path:
    """Directory holding config.yaml and profiles/, overridable with GWMAIL_CONFIG_DIR."""
    override = os.getenv(CONFIG_DIR_ENV)
    return Path(override) if override else Path.home() / ".config" / "gwmail"


def get_config_file_path() -> Path:
    """Path of the config file; GWMAIL_CONFIG_FILE wins over the config directory."""
    override = os.getenv(CONFIG_FILE_ENV)
    return Path(override) if override else get_config_dir() / CONFIG_FILE_NAME


def _split_key(key: str) -> List[str]:
    return [part for part in key.split('.') if part]


def _merged(defaults: dict, overrides: dict) -> dict:
    """Return `defaults` with `overrides` layered on top; nested sections merge key by key."""
    result = copy.deepcopy(defaults)
    for name, value in overrides.items():
        current = result.get(name)
        if isinstance(current, dict) and isinstance(value, dict):
            result[name] = _merged(current, value)
        else:
            result[name] = value
    return result


def _read_file(config_file: Path) -> dict:
    """Parse the config file, or return {} when it is absent, unreadable or malformed."""
    if not config_file.exists():
        logger.debug(f"No config file at {config_file}, using defaults")
        return {}
    try:
        with open(config_file, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Ignoring invalid YAML in {config_file}: {e}")
        return {}
    except OSError as e:
        logger.error(f"Could not read config file {config_file}: {e}")
        return {}

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.error(f"Ignoring {config_file}: expected a mapping at the top level")
        return {}
    return data


def load_config() -> dict:
    """Load the effective configuration (file values over defaults)."""
    return _merged(DEFAULT_CONFIG, _read_file(get_config_file_path()))


def save_config(config_data: dict):
    config_file = get_config_file_path()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    with open(config_file, 'w') as f:
        yaml.safe_dump(config_data, f, default_flow_style=False)
    logger.debug(f"Configuration saved to {config_file}")


def get_config_value(key: str, default: Any = None) -> Any:
    """
    Look up a dotted key such as "output.format".

    Returns `default` when any segment is missing or the stored value is null.
    """
    node: Any = load_config()
    for part in _split_key(key):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return default if node is None else node


def set_config_value(key: str, value: Any):
    """Store `value` under a dotted key, creating intermediate sections, and save."""
    parts = _split_key(key)
    if not parts:
        raise ValueError(f"Invalid config key: {key!r}")

    config_data = load_config()
    section = config_data
    for part in parts[:-1]:
        if not isinstance(section.get(part), dict):
            section[part] = {}
        section = section[part]
    section[parts[-1]] = value
    save_config(config_data)
