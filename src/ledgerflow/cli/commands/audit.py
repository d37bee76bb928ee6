"""Category change audit commands."""

import click
from ledgerflow.cli.error_handling import handle_domain_error
from ledgerflow.domain.audit import AuditService
from ledgerflow.domain.errors import DomainError


@click.group()
def audit_group():
    """Inspect category changes."""
    pass


@audit_group.command("history")
@click.argument("transaction_id", type=int)
@click.pass_context
def history(ctx, transaction_id: int):
    """Show the category changes of a transaction."""
    service = AuditService(ctx.obj["db"])

    try:
        logs = service.history(transaction_id, ctx.obj["user_id"])
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not logs:
        click.echo(f"No category changes for transaction {transaction_id}.")
        return
    for log in logs:
        click.echo(
            f"{log.timestamp:%Y-%m-%d %H:%M:%S} | {log.previous_category or '-'} -> {log.new_category}"
        )


@audit_group.command("report")
@click.option("--min-occurrences", type=int, default=3, show_default=True)
@click.option("--limit", type=int, default=20, show_default=True, help="Patterns to show")
@click.pass_context
def report(ctx, min_occurrences: int, limit: int):
    """Show the most common category corrections."""
    result = AuditService(ctx.obj["db"]).analyze(ctx.obj["user_id"], min_occurrences)
    if result.total_changes == 0:
        click.echo("No category changes to analyze.")
        return

    click.echo(f"Found {result.total_changes} category changes.")
    click.echo("\nMost common category changes:")
    click.echo("-" * 40)
    for pattern in result.patterns[:limit]:
        click.echo(
            f'{pattern.count} changes: "{pattern.description}" '
            f'from "{pattern.previous_category}" to "{pattern.new_category}"'
        )

    if result.keyword_suggestions:
        click.echo("\nSuggested keywords:")
        click.echo("-" * 40)
        for category, keywords in result.keyword_suggestions.items():
            click.echo(f"{category}: {', '.join(keywords)}")


@audit_group.command("apply")
@click.option("--min-occurrences", type=int, default=3, show_default=True)
@click.pass_context
def apply(ctx, min_occurrences: int):
    """Create suggested rules from the keyword suggestions."""
    try:
        rules = AuditService(ctx.obj["db"]).apply_suggestions(ctx.obj["user_id"], min_occurrences)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created {len(rules)} suggested rules")
    for rule in rules:
        click.echo(f"  {rule.pattern} -> {rule.category}")


def register_commands(cli):
    """Register audit commands with main CLI."""
    cli.add_command(audit_group, name="audit")
