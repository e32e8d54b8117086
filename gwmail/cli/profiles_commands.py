"""CLI commands for profile management."""

import sys
import click

from gwmail.sdk.profiles import ADC_PROFILE_NAME, list_profiles, set_active_profile
from .decorators import show_profile_guidance


@click.group()
def profiles():
    """Manage authentication profiles for multiple Google identities."""
    pass


@profiles.command("list")
def list_cmd():
    """List all available profiles."""
    profile_list = list_profiles()

    click.echo()
    click.echo(f"{'PROFILE':<16}  {'EMAIL':<28}  {'SCOPES':<6}")
    click.echo("-" * 54)

    has_active = False
    for p in profile_list:
        # Pad BEFORE coloring so ANSI codes don't break alignment
        if p["is_active"]:
            has_active = True
            name_col = click.style(f"* {p['name']}".ljust(16), fg="green", bold=True)
        else:
            name_col = f"  {p['name']}".ljust(16)

        email = p.get("email") or "-"
        if len(email) > 28:
            email = email[:25] + "..."

        click.echo(f"{name_col}  {email.ljust(28)}  {len(p.get('scopes', []))}")

    click.echo("-" * 54)
    if not has_active:
        show_profile_guidance()


@profiles.command("use")
@click.argument("name")
def use_cmd(name):
    """Set NAME as the active profile ('adc' for Application Default Credentials)."""
    if not set_active_profile(name):
        click.secho(f"Error: Profile '{name}' not found.", fg="red", err=True)
        show_profile_guidance(name)
        sys.exit(1)

    click.echo(f"✓ Active profile: {name}")
    if name == ADC_PROFILE_NAME:
        click.echo("\nTo use Application Default Credentials, ensure you have authenticated with gcloud:")
        click.echo("  gcloud auth application-default login")
