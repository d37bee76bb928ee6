"""CLI error handling helpers."""

import logging

import click

logger = logging.getLogger(__name__)


def handle_domain_error(ctx: click.Context, error: Exception) -> None:
    """Print the error as 'Error: <message>' on stderr and exit with status 1.

    The traceback is only logged, at DEBUG, so it shows up with --verbose.
    """
    logger.debug("%s failed", ctx.command_path, exc_info=error)
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
