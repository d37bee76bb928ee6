"""Account management commands."""

from decimal import Decimal, InvalidOperation

import click
from ledgerflow.cli.account_resolution import resolve_account_or_exit
from ledgerflow.cli.error_handling import handle_domain_error
from ledgerflow.domain.account import AccountService
from ledgerflow.domain.entities import AccountKind
from ledgerflow.domain.errors import DomainError
from ledgerflow.domain.ledger import LedgerService

KIND_CHOICES = [kind.value for kind in AccountKind] + ["debit"]


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--kind",
    type=click.Choice(KIND_CHOICES, case_sensitive=False),
    default="checking",
    show_default=True,
    help="Account kind; decides how amount signs are read",
)
@click.option("--institution", help="Bank or card issuer")
@click.option("--last-four", help="Last four digits of the account number")
@click.option("--color", help="Display color")
@click.option("--balance", default="0", help="Opening balance")
@click.pass_context
def create_account(
    ctx,
    name: str,
    kind: str,
    institution: str | None,
    last_four: str | None,
    color: str | None,
    balance: str,
):
    """Create a new account.

    Examples:
        ledgerflow account create "Everyday Checking" --institution Chase --balance 1000
        ledgerflow account create "Blue Cash" --kind credit --institution Amex
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        opening = Decimal(balance)
    except InvalidOperation:
        click.echo(f"Error: Invalid balance '{balance}'", err=True)
        ctx.exit(1)

    try:
        account_id = service.create_account(
            user_id=ctx.obj["user_id"],
            name=name,
            kind=kind,
            institution=institution,
            last_four=last_four,
            color=color,
            balance=opening,
        )
        click.echo(f"Created account '{name}' (ID: {account_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List your accounts."""
    db = ctx.obj["db"]
    service = AccountService(db)

    accounts = service.list_accounts(ctx.obj["user_id"])
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 72)
    for acc in accounts:
        institution = acc.institution or ""
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:20s} | {acc.kind.value:10s} | "
            f"{institution:15s} | {acc.balance:>12,.2f}"
        )


@account_group.command("show")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def show_account(ctx, account: str):
    """Show one account. ACCOUNT can be an account name or ID."""
    account_id = resolve_account_or_exit(ctx, account)
    service = AccountService(ctx.obj["db"])

    try:
        acc = service.get_owned_account(account_id, ctx.obj["user_id"])
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Account: {acc.name} (ID: {acc.id})")
    click.echo(f"Kind: {acc.kind.value}")
    if acc.institution:
        click.echo(f"Institution: {acc.institution}")
    if acc.last_four:
        click.echo(f"Number: ****{acc.last_four}")
    click.echo(f"Opening balance: {acc.opening_balance:,.2f}")
    click.echo(f"Balance: {acc.balance:,.2f}")


@account_group.command("recalculate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def recalculate_account(ctx, account: str):
    """Recompute an account balance from the ledger.

    ACCOUNT can be an account name or ID.
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, account)

    try:
        before = AccountService(db).get_owned_account(account_id, ctx.obj["user_id"]).balance
        balance = LedgerService(db).recalculate(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if balance == before:
        click.echo(f"Balance is correct: {balance:,.2f}")
    else:
        click.echo(f"Balance updated: {before:,.2f} -> {balance:,.2f}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
