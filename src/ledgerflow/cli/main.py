"""Main CLI entry point."""

import logging

import click
from ledgerflow.database.factories import (
    DB_PATH_ENV,
    DB_URL_ENV,
    create_database,
    create_sqlite_database,
)

# Import and register all commands at module level
from ledgerflow.cli.commands import (
    account,
    audit,
    duplicates,
    format,
    import_cmd,
    recategorize,
    rule,
    staged,
)

USER_ENV = "LEDGERFLOW_USER"
DEFAULT_USER = "local"


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help=(
        f"Path to SQLite database file (overrides {DB_PATH_ENV}; "
        f"without either, {DB_URL_ENV} or ~/.ledgerflow/ledgerflow.db is used)"
    ),
    envvar=DB_PATH_ENV,
)
@click.option(
    "--user",
    "user_id",
    default=DEFAULT_USER,
    show_default=True,
    help=f"User the commands act for (overrides {USER_ENV} environment variable)",
    envvar=USER_ENV,
)
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, user_id: str, verbose: bool):
    """Ledgerflow - Bank statement import and ledger.

    Import CSV exports from multiple banks, review and categorize the staged
    transactions, then commit them to the ledger with account balances kept
    in step.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path) if db_path else create_database()
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["user_id"] = user_id
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
format.register_commands(cli)
import_cmd.register_commands(cli)
staged.register_commands(cli)
recategorize.register_commands(cli)
rule.register_commands(cli)
duplicates.register_commands(cli)
audit.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
