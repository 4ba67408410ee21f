"""Command-line interface for usagebar."""

import click

from ...log import configure_logging
from .accounts import add, edit, list_accounts_cmd, remove, reset
from .settings_cmd import settings, test_notify
from .usage_cmd import usage, watch


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging')
def cli(verbose: bool):
    """Claude Usage Bar - Monitor usage across linked claude.ai accounts."""
    configure_logging(verbose)


# Register commands
cli.add_command(add)
cli.add_command(list_accounts_cmd)
cli.add_command(edit)
cli.add_command(remove)
cli.add_command(reset)

cli.add_command(usage)
cli.add_command(watch)

cli.add_command(settings)
cli.add_command(test_notify)


# Aliases
@cli.command(name='list', hidden=True)
@click.pass_context
def list_alias(ctx):
    """Alias for 'ls'."""
    ctx.forward(list_accounts_cmd)


__all__ = ['cli']
