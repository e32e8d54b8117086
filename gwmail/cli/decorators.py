"""CLI decorators for scope checking and profile validation.

Also contains shared display helpers for profile guidance and output.
"""

import logging
import sys
from functools import wraps

import click

from gwmail.sdk.auth import resolve_scope_alias, get_effective_scopes
from gwmail.sdk.config import get_config_value
from gwmail.sdk.profiles import get_active_profile_name, get_profile

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ['text', 'json']


def show_profile_guidance(profile_name: str = None):
    """Explain how to get a usable profile."""
    if profile_name:
        click.echo(f"\nTo fix:", err=True)
        click.echo(f"  Place an authorized-user token for '{profile_name}' in its profile directory,", err=True)
        click.echo("  or switch profiles:  gwmail profiles use <name>", err=True)
    else:
        click.echo("\nTo get started:", err=True)
        click.echo("  gwmail profiles use adc      # Use Application Default Credentials", err=True)
        click.echo("  gwmail profiles use <name>   # Or an existing token profile", err=True)


def format_option(f):
    """Add the shared --format option; the default comes from config key output.format."""
    return click.option(
        '--format', 'output_format',
        type=click.Choice(OUTPUT_FORMATS, case_sensitive=False),
        default=None,
        help="Output format: 'text' (key/value) or 'json'. Defaults to config 'output.format'.",
    )(f)


def resolve_output_format(output_format: str = None) -> str:
    """Pick the explicit format, else the configured one, else 'text'."""
    if output_format:
        return output_format.lower()
    configured = str(get_config_value("output.format", "text")).lower()
    if configured not in OUTPUT_FORMATS:
        logger.warning(f"Ignoring unsupported output.format '{configured}' in config")
        return "text"
    return configured


def echo_key_values(data: dict):
    """Print a flat dict as aligned 'key  value' lines."""
    width = max((len(k) for k in data), default=0)
    for key, value in data.items():
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value) or "-"
        click.echo(f"{key:<{width}}  {value}")


def require_scopes(*required_aliases):
    """
    Decorator to ensure that the required scopes for a command are present.

    Checks the profile selected with --profile (or the active profile) and
    the scopes recorded for it. Write scopes (e.g., 'mail-modify') imply
    read scopes. With --use-adc, or when no scopes were recorded, the check
    is left to the API.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            options = click.get_current_context().find_object(dict) or {}
            if options.get("use_adc"):
                return f(*args, **kwargs)

            name = options.get("profile") or get_active_profile_name()
            if not name:
                click.secho("Error: No active profile configured.", fg="red", err=True)
                show_profile_guidance()
                sys.exit(1)

            profile = get_profile(name)
            if not profile:
                click.secho(f"Error: Profile '{name}' not found.", fg="red", err=True)
                show_profile_guidance(name)
                sys.exit(1)

            validated_scopes = profile.get("scopes") or []
            if not validated_scopes:
                logger.debug(f"No scopes recorded for profile '{name}', skipping scope check")
                return f(*args, **kwargs)

            required_urls = set(resolve_scope_alias(alias) for alias in required_aliases)
            effective_scopes = get_effective_scopes(validated_scopes)

            if not required_urls.issubset(effective_scopes):
                missing = required_urls - effective_scopes
                click.secho("Error: Missing required scopes for this command.", fg="red", err=True)
                click.echo(f"  Required: {', '.join(required_aliases)}", err=True)
                click.echo(f"  Missing:  {', '.join(sorted(missing))}", err=True)
                sys.exit(1)

            return f(*args, **kwargs)
        return decorated_function
    return decorator
