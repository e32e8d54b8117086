import click
import yaml

from gwmail.sdk import config

# Define the schema of allowed configuration keys and their allowed values
ALLOWED_CONFIG = {
    "output.format": {
        "allowed_values": ["text", "json"]
    }
}


@click.group()
def config_group():
    """Commands for managing gwmail configuration."""
    pass


@config_group.command('view')
def view_config():
    """Displays the current gwmail configuration."""
    config_data = config.load_config()
    click.echo(yaml.safe_dump(config_data, default_flow_style=False))


@config_group.command('set')
@click.argument('key')
@click.argument('value')
def set_config(key, value):
    """
    Sets a configuration value for a supported key.

    \b
    Supported Keys:
      - output.format: Default output format for mail commands.
                       Allowed values: 'text', 'json'.

    \b
    Examples:
      gwmail config set output.format json
    """
    if key not in ALLOWED_CONFIG:
        raise click.UsageError(f"Configuration key '{key}' is not supported.")

    key_schema = ALLOWED_CONFIG[key]
    if "allowed_values" in key_schema and value not in key_schema["allowed_values"]:
        allowed = ", ".join(f"'{v}'" for v in key_schema["allowed_values"])
        raise click.UsageError(f"Invalid value '{value}' for key '{key}'. Allowed values are: {allowed}.")

    config.set_config_value(key, value)
    click.echo(f"✓ Set '{key}' to: {value}")
