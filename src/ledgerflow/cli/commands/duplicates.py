"""Duplicate transaction commands."""

import click
from ledgerflow.cli.account_resolution import resolve_account_or_exit
from ledgerflow.cli.error_handling import handle_domain_error
from ledgerflow.domain.duplicates import DuplicateDetector
from ledgerflow.domain.errors import DomainError
from ledgerflow.domain.ledger import LedgerService


@click.group()
def duplicates_group():
    """Find and remove duplicate ledger transactions."""
    pass


@duplicates_group.command("list")
@click.option("--account", help="Only this account (name or ID)")
@click.pass_context
def list_duplicates(ctx, account: str | None):
    """List groups of transactions with the same date, description and amount."""
    account_id = resolve_account_or_exit(ctx, account) if account else None
    groups = DuplicateDetector(ctx.obj["db"]).find_duplicates(ctx.obj["user_id"], account_id)
    if not groups:
        click.echo("No duplicates found.")
        return

    for group in groups:
        original = group.original
        click.echo(
            f"{original.date.isoformat()} | {original.description} | {original.amount:,.2f} | "
            f"keep #{original.id}, duplicates: {', '.join(f'#{t.id}' for t in group.duplicates)}"
        )


@duplicates_group.command("remove")
@click.option("--account", help="Only this account (name or ID)")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def remove_duplicates(ctx, account: str | None, yes: bool):
    """Remove duplicates, keeping the oldest transaction of each group."""
    account_id = resolve_account_or_exit(ctx, account) if account else None
    groups = DuplicateDetector(ctx.obj["db"]).find_duplicates(ctx.obj["user_id"], account_id)
    total = sum(len(g.duplicates) for g in groups)
    if total == 0:
        click.echo("No duplicates found.")
        return

    if not yes and not click.confirm(f"Remove {total} duplicate transactions?"):
        click.echo("Removal cancelled.")
        return

    try:
        removed = LedgerService(ctx.obj["db"]).remove_duplicates(ctx.obj["user_id"], account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Removed {removed} duplicate transactions")


def register_commands(cli):
    """Register duplicates commands with main CLI."""
    cli.add_command(duplicates_group, name="duplicates")
