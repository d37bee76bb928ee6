"""CSV import command."""

import click
from ledgerflow.cli.account_resolution import resolve_account_or_exit
from ledgerflow.cli.error_handling import handle_domain_error
from ledgerflow.domain.csv_import import CSVImportService
from ledgerflow.domain.errors import DomainError


@click.command("import")
@click.argument("csv_file", type=click.Path(exists=True))
@click.option("--account", required=True, help="Account name or ID")
@click.option("--format", help="CSV format name (detected from the headers if omitted)")
@click.pass_context
def import_csv(ctx, csv_file: str, account: str, format: str | None):
    """Import transactions from a CSV file into staging.

    Staged transactions are reviewed with 'staged list' and moved to the
    ledger with 'staged commit'.
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, account)
    service = CSVImportService(db)

    try:
        result = service.import_file(
            csv_file_path=csv_file,
            user_id=ctx.obj["user_id"],
            account_id=account_id,
            dialect_name=format,
        )
    except (DomainError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nImport complete ({result.dialect_name}):")
    click.echo(f"  Staged: {result.imported} transactions")
    click.echo(f"  Skipped: {len(result.duplicates)} duplicates")
    if result.errors:
        click.echo(f"  Errors: {len(result.errors)}")
        for error in result.errors:
            click.echo(f"    {error}", err=True)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_csv)
