"""Profile management for multi-identity support.

Each profile is a directory under <config dir>/profiles/<name>/ holding an
authorized-user token (user_token.json) and a small metadata file
(profile.yaml) with the account email and the scopes that were granted.

Special profile: "adc" is a built-in virtual profile that uses Application
Default Credentials directly (nothing is stored for it).
"""

import re
import yaml
import logging
from pathlib import Path
from typing import Optional, List, Dict, Any

from .config import get_config_value, set_config_value, get_config_file_path

logger = logging.getLogger(__name__)

# Built-in profile name for ADC
ADC_PROFILE_NAME = "adc"

# Valid profile name pattern: alphanumeric, hyphen, underscore, 1-32 chars
PROFILE_NAME_PATTERN = re.compile(r'^[a-zA-Z0-9][a-zA-Z0-9_-]{0,31}$')


def get_profiles_dir() -> Path:
    """Get the profiles directory path."""
    return get_config_file_path().parent / "profiles"


def is_valid_profile_name(name: str) -> bool:
    """Check if a profile name is valid."""
    if name == ADC_PROFILE_NAME:
        return True
    return bool(PROFILE_NAME_PATTERN.match(name))


def get_profile_dir(name: str) -> Path:
    return get_profiles_dir() / name


def get_profile_token_path(name: str) -> Path:
    return get_profile_dir(name) / "user_token.json"


def get_profile_metadata_path(name: str) -> Path:
    return get_profile_dir(name) / "profile.yaml"


def load_profile_metadata(name: str) -> dict:
    """
    Load profile metadata from profile.yaml.

    Returns empty dict if file doesn't exist or can't be read.
    """
    metadata_path = get_profile_metadata_path(name)
    if not metadata_path.exists():
        return {}

    try:
        with open(metadata_path, 'r') as f:
            data = yaml.safe_load(f)
            return data if data else {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load profile metadata for '{name}': {e}")
        return {}


def profile_exists(name: str) -> bool:
    """Check if a profile exists (ADC always does; token profiles need a token file)."""
    if name == ADC_PROFILE_NAME:
        return True
    return get_profile_token_path(name).exists()


def list_profiles() -> List[Dict[str, Any]]:
    """
    List all available profiles with their metadata.

    Returns a list of dicts with:
        - name: profile name
        - is_adc: True if this is the built-in ADC profile
        - is_active: True if this is the currently active profile
        - email: cached user email (may be None)
        - scopes: list of validated scopes
    """
    active_profile = get_active_profile_name()
    adc_metadata = load_profile_metadata(ADC_PROFILE_NAME)
    profiles = [{
        "name": ADC_PROFILE_NAME,
        "is_adc": True,
        "is_active": active_profile == ADC_PROFILE_NAME,
        "email": adc_metadata.get("email"),
        "scopes": adc_metadata.get("validated_scopes", []),
    }]

    profiles_dir = get_profiles_dir()
    if profiles_dir.exists():
        for entry in sorted(profiles_dir.iterdir()):
            if entry.name == ADC_PROFILE_NAME or not entry.is_dir():
                continue
            if not is_valid_profile_name(entry.name) or not profile_exists(entry.name):
                continue
            metadata = load_profile_metadata(entry.name)
            profiles.append({
                "name": entry.name,
                "is_adc": False,
                "is_active": active_profile == entry.name,
                "email": metadata.get("email"),
                "scopes": metadata.get("validated_scopes", []),
            })

    return profiles


def get_active_profile_name() -> Optional[str]:
    """Get the name of the currently active profile, or None."""
    return get_config_value("active_profile")


def get_profile(name: str) -> Optional[Dict[str, Any]]:
    """Get a single profile by name, or None if it does not exist."""
    for profile in list_profiles():
        if profile["name"] == name:
            return profile
    return None


def get_active_profile() -> Optional[Dict[str, Any]]:
    """Get the currently active profile with its metadata, or None."""
    active_name = get_active_profile_name()
    if not active_name:
        return None
    return get_profile(active_name)


def set_active_profile(name: str) -> bool:
    """
    Set the active profile.

    Returns:
        True if successful, False if profile doesn't exist
    """
    if not is_valid_profile_name(name) or not profile_exists(name):
        return False
    set_config_value("active_profile", name)
    logger.debug(f"Active profile set to '{name}'")
    return True
