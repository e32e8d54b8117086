"""gwmail CLI - Command-line interface for Gmail forwarding and labels."""

import logging
import os

import click
from dotenv import load_dotenv

from gwmail import __version__

from .mail_commands import mail_group as mail_module
from .profiles_commands import profiles as profiles_module
from .config_commands import config_group as config_module


# Configure logging at the application level
if not logging.root.handlers:
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO),
                        format='%(asctime)s - %(levelname)s - %(message)s')
# Suppress noisy INFO logs from googleapiclient
logging.getLogger('googleapiclient.discovery').setLevel(logging.WARNING)
logging.getLogger('googleapiclient.discovery_cache').setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


@click.group()
@click.version_option(__version__, prog_name="gwmail")
@click.option('--profile', default=None, help='Profile to use instead of the active one.')
@click.option('--use-adc', is_flag=True, help='Use Application Default Credentials.')
@click.pass_context
def gwmail(ctx, profile, use_adc):
    """Gmail Workspace Mail (gwmail) CLI.

    Forward messages with their attachments and modify labels in bulk.
    """
    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile
    ctx.obj["use_adc"] = use_adc


gwmail.add_command(mail_module, name='mail')
gwmail.add_command(profiles_module, name='profiles')
gwmail.add_command(config_module, name='config')


def main():
    """Entry point for the CLI."""
    load_dotenv()
    gwmail()


if __name__ == "__main__":
    main()
