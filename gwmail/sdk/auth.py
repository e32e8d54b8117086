"""Authentication and credential management for the gwmail SDK.

Provides functions to load Google API credentials based on the active
profile configuration, and to reason about granted scopes.
"""

import logging
from typing import Tuple, Any

logger = logging.getLogger(__name__)

# Scope aliases for convenience
SCOPE_ALIASES = {
    "mail-read": "https://www.googleapis.com/auth/gmail.readonly",
    "mail-send": "https://www.googleapis.com/auth/gmail.send",
    "mail-labels": "https://www.googleapis.com/auth/gmail.labels",
    "mail-modify": "https://www.googleapis.com/auth/gmail.modify",
    "mail": "https://mail.google.com/",
}

# Scope implication rules (having X implies having Y)
SCOPE_IMPLICATIONS = {
    "https://mail.google.com/": [
        "https://www.googleapis.com/auth/gmail.modify",
        "https://www.googleapis.com/auth/gmail.readonly",
        "https://www.googleapis.com/auth/gmail.send",
        "https://www.googleapis.com/auth/gmail.labels",
    ],
    "https://www.googleapis.com/auth/gmail.modify": [
        "https://www.googleapis.com/auth/gmail.readonly",
        "https://www.googleapis.com/auth/gmail.send",
        "https://www.googleapis.com/auth/gmail.labels",
    ],
}


def resolve_scope_alias(alias: str) -> str:
    """Resolve a scope alias to its full URL, or return the input if not an alias."""
    return SCOPE_ALIASES.get(alias, alias)


def get_effective_scopes(granted_scopes: list) -> set:
    """
    Get effective scopes including implied ones.

    For example, if gmail.modify is granted, gmail.readonly is implied.
    """
    effective = set(granted_scopes)
    for scope in granted_scopes:
        effective.update(SCOPE_IMPLICATIONS.get(scope, []))
    return effective


def has_scope(granted_scopes: list, required_scope: str) -> bool:
    """Check if a required scope (alias or URL) is available directly or implied."""
    return resolve_scope_alias(required_scope) in get_effective_scopes(granted_scopes)


def _load_adc(label: str) -> Tuple[Any, str]:
    import google.auth

    creds, project = google.auth.default()
    source = f"Application Default Credentials ({label})"
    if project:
        source += f" (project: {project})"
    return creds, source


def _load_profile(name: str) -> Tuple[Any, str]:
    from google.oauth2.credentials import Credentials
    from .profiles import ADC_PROFILE_NAME, profile_exists, get_profile_token_path

    if name == ADC_PROFILE_NAME:
        return _load_adc(f"profile: {name}")
    if not profile_exists(name):
        raise ValueError(f"Profile not found: {name}")
    token_path = get_profile_token_path(name)
    creds = Credentials.from_authorized_user_file(str(token_path))
    return creds, f"Profile '{name}': {token_path}"


def get_credentials(
    profile: str = None,
    use_adc: bool = False,
) -> Tuple[Any, str]:
    """
    Load credentials based on profile or explicit flags.

    Args:
        profile: Explicit profile name to use (overrides active profile)
        use_adc: Force use of Application Default Credentials

    Returns:
        Tuple of (credentials object, source description)

    Raises:
        ValueError: If no profile is configured or profile not found
    """
    from .profiles import get_active_profile_name

    if use_adc:
        return _load_adc("from flag")

    if profile:
        return _load_profile(profile)

    active_profile = get_active_profile_name()
    if active_profile:
        return _load_profile(active_profile)

    raise ValueError("No active profile configured. Run 'gwmail profiles use <name>' first.")
