"""Mail commands for gwmail CLI."""

import json
import logging
import sys

import click

from gwmail.sdk import mail as sdk_mail
from gwmail.sdk.exceptions import ValidationError
from gwmail.sdk.mail.label import split_csv
from .decorators import require_scopes, format_option, resolve_output_format, echo_key_values

logger = logging.getLogger(__name__)


def _fail(action: str, error: Exception):
    logger.critical(f"An error occurred during {action}: {error}",
                    exc_info=logger.isEnabledFor(logging.DEBUG))
    sys.exit(1)


@click.group('mail')
def mail_group():
    """Operations related to Gmail."""
    pass


@mail_group.command('forward')
@click.argument('message_id')
@click.option('--to', 'to', required=True, help='Recipient email address.')
@click.option('--subject', default=None,
              help='Optional subject (default: "Fwd: " + original subject).')
@format_option
@require_scopes('mail-modify')
@click.pass_obj
def forward_command(obj, message_id, to, subject, output_format):
    """Forward a message, including its attachments.

    MESSAGE_ID: The Gmail message ID to forward
    """
    obj = obj or {}
    try:
        logger.debug(f"Forwarding message ID '{message_id}' to '{to}'")
        result = sdk_mail.forward_message(
            message_id, to, subject=subject,
            profile=obj.get('profile'), use_adc=obj.get('use_adc', False),
        )
    except ValidationError as e:
        raise click.UsageError(str(e))
    except Exception as e:
        _fail(f"mail forward for ID {message_id}", e)

    if resolve_output_format(output_format) == 'json':
        click.echo(json.dumps(result, indent=2))
    else:
        echo_key_values(result)


@mail_group.command('modify')
@click.option('--ids', 'ids', multiple=True, required=True,
              help='Message IDs (comma-separated or repeated).')
@click.option('--add-label', default=None, help='Labels to add (comma-separated, name or ID).')
@click.option('--remove-label', default=None, help='Labels to remove (comma-separated, name or ID).')
@click.option('--archive', is_flag=True, help='Archive messages (remove from INBOX).')
@format_option
@require_scopes('mail-modify')
@click.pass_obj
def modify_command(obj, ids, add_label, remove_label, archive, output_format):
    """Add or remove labels on one or more messages."""
    obj = obj or {}
    message_ids = [message_id for value in ids for message_id in split_csv(value)]
    try:
        result = sdk_mail.modify_messages(
            message_ids,
            add_labels=split_csv(add_label),
            remove_labels=split_csv(remove_label),
            archive=archive,
            profile=obj.get('profile'), use_adc=obj.get('use_adc', False),
        )
    except ValidationError as e:
        raise click.UsageError(str(e))
    except Exception as e:
        _fail("mail modify", e)

    if resolve_output_format(output_format) == 'json':
        click.echo(json.dumps(result, indent=2))
    else:
        click.echo(f"Modified {result['count']} message(s)")
