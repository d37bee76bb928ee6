"""Account lookup for commands that take an ACCOUNT argument."""

from __future__ import annotations

import click
from ledgerflow.cli.error_handling import handle_domain_error
from ledgerflow.domain.account import AccountService
from ledgerflow.domain.errors import NotFoundError
from ledgerflow.utils.account_resolver import resolve_account


def resolve_account_or_exit(ctx: click.Context, account: str | int) -> int:
    """Resolve an account name (the current user's) or ID, or exit with status 1.

    Ownership of an ID is checked later by the service the command calls.
    """
    service = AccountService(ctx.obj["db"])
    try:
        return resolve_account(service, ctx.obj["user_id"], account)
    except NotFoundError as exc:
        handle_domain_error(ctx, exc)
