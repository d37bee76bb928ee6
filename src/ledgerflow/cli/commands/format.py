"""CSV dialect management commands."""

import click
from ledgerflow.cli.error_handling import handle_domain_error
from ledgerflow.domain.csv_import import CSVImportService
from ledgerflow.domain.dialects import DialectService
from ledgerflow.domain.entities import AmountSign
from ledgerflow.domain.errors import DomainError


@click.group()
def format_group():
    """Manage CSV formats (bank dialects)."""
    pass


@format_group.command("list")
@click.pass_context
def list_formats(ctx):
    """List built-in and registered CSV formats."""
    service = DialectService(ctx.obj["db"])

    click.echo("\nCSV Formats:")
    click.echo("-" * 72)
    for dialect in service.list_dialects():
        origin = "built-in" if dialect.builtin else "custom"
        date_format = dialect.date_format or "flexible"
        click.echo(f"{dialect.name:20s} | {origin:8s} | dates: {date_format:10s} | {dialect.amount_sign.value}")
        click.echo(f"    headers: {', '.join(sorted(dialect.detection_headers))}")


@format_group.command("add")
@click.argument("name")
@click.option("--date-column", required=True, help="Column holding the transaction date")
@click.option("--description-column", required=True, help="Column holding the description")
@click.option("--amount-column", required=True, help="Column holding the amount")
@click.option("--category-column", help="Column holding the bank's category")
@click.option("--account-number-column", help="Column holding the account number")
@click.option("--date-format", help="strptime format, e.g. %m/%d/%Y (flexible parsing if omitted)")
@click.option(
    "--amount-sign",
    type=click.Choice([s.value for s in AmountSign]),
    default=AmountSign.NEGATIVE_IS_EXPENSE.value,
    show_default=True,
    help="How the export writes negative amounts",
)
@click.option(
    "--header",
    "headers",
    multiple=True,
    help="Header that identifies this format (repeatable; defaults to the mapped columns)",
)
@click.pass_context
def add_format(
    ctx,
    name: str,
    date_column: str,
    description_column: str,
    amount_column: str,
    category_column: str | None,
    account_number_column: str | None,
    date_format: str | None,
    amount_sign: str,
    headers: tuple[str, ...],
):
    """Register a new CSV format.

    Examples:
        ledgerflow format add "Credit Union" --date-column "Posted" \\
            --description-column "Memo" --amount-column "Amount" --date-format %Y-%m-%d
    """
    service = DialectService(ctx.obj["db"])

    try:
        dialect = service.register_dialect(
            name=name,
            date_column=date_column,
            description_column=description_column,
            amount_column=amount_column,
            detection_headers=list(headers) or None,
            category_column=category_column,
            account_number_column=account_number_column,
            date_format=date_format,
            amount_sign=amount_sign,
        )
        click.echo(f"Created CSV format '{dialect.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@format_group.command("delete")
@click.argument("name")
@click.pass_context
def delete_format(ctx, name: str):
    """Delete a registered CSV format."""
    service = DialectService(ctx.obj["db"])

    try:
        service.delete_dialect(name)
        click.echo(f"Deleted CSV format '{name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@format_group.command("detect")
@click.argument("csv_file", type=click.Path(exists=True))
@click.pass_context
def detect_format(ctx, csv_file: str):
    """Show which CSV format a file would be imported with."""
    service = CSVImportService(ctx.obj["db"])

    try:
        dialect = service.detect_dialect(csv_file)
        click.echo(f"Detected format: {dialect.name}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register format commands with main CLI."""
    cli.add_command(format_group, name="format")
