"""Recategorize command."""

import click
from ledgerflow.cli.error_handling import handle_domain_error
from ledgerflow.domain.errors import DomainError
from ledgerflow.domain.ledger import LedgerService


@click.command("recategorize")
@click.argument("transaction_id", type=int)
@click.argument("category")
@click.option("--subcategory", help="Subcategory")
@click.option("--learn", is_flag=True, help="Learn a rule from this correction")
@click.pass_context
def recategorize(ctx, transaction_id: int, category: str, subcategory: str | None, learn: bool):
    """Change the category of a committed transaction.

    Examples:
        ledgerflow recategorize 42 Dining
        ledgerflow recategorize 42 Shopping --subcategory Retail --learn
    """
    service = LedgerService(ctx.obj["db"])

    try:
        before = service.get_transaction(transaction_id, ctx.obj["user_id"])
        txn = service.recategorize(
            transaction_id, category, ctx.obj["user_id"], subcategory=subcategory, learn=learn
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if before.category == txn.category and before.subcategory == txn.subcategory:
        click.echo(f"Transaction {transaction_id} is already in '{txn.category}'")
        return
    click.echo(f"Transaction {transaction_id}: {before.category} -> {txn.category}")
    if learn:
        click.echo("Learned a rule from this change")


def register_commands(cli):
    """Register recategorize command with main CLI."""
    cli.add_command(recategorize)
