"""Categorization rule commands."""

import click
from ledgerflow.cli.error_handling import handle_domain_error
from ledgerflow.domain.categorization import DEFAULT_CONFIDENCE, CategorizationService
from ledgerflow.domain.entities import CategorizationRule
from ledgerflow.domain.errors import DomainError


@click.group()
def rule_group():
    """Manage categorization rules."""
    pass


def _format_rule(rule: CategorizationRule) -> str:
    category = f"{rule.category} / {rule.subcategory}" if rule.subcategory else rule.category
    origin = "user" if rule.user_defined else "suggested"
    scope = f" [account {rule.scope}]" if rule.scope else ""
    return (
        f"ID: {rule.id:3d} | {rule.pattern:25s} | {rule.vendor:15s} | {category:25s} | "
        f"{rule.confidence:.2f} | used {rule.use_count}x | {origin}{scope}"
    )


@rule_group.command("add")
@click.argument("pattern")
@click.option("--vendor", required=True, help="Vendor name")
@click.option("--category", required=True, help="Category")
@click.option("--subcategory", help="Subcategory")
@click.option("--scope", help="Only apply to this account ID")
@click.option(
    "--confidence", type=float, default=DEFAULT_CONFIDENCE, show_default=True, help="Confidence 0-1"
)
@click.pass_context
def add_rule(
    ctx,
    pattern: str,
    vendor: str,
    category: str,
    subcategory: str | None,
    scope: str | None,
    confidence: float,
):
    """Add a rule. PATTERN may use * (any text) and ? (one character).

    Examples:
        ledgerflow rule add WALMART --vendor Walmart --category Shopping --subcategory Retail
        ledgerflow rule add "CHIPOTLE NYC #*" --vendor Chipotle --category Dining --scope 2
    """
    service = CategorizationService(ctx.obj["db"])

    try:
        rule = service.add_rule(
            user_id=ctx.obj["user_id"],
            pattern=pattern,
            vendor=vendor,
            category=category,
            subcategory=subcategory,
            scope=scope,
            confidence=confidence,
        )
        click.echo(f"Created rule {rule.id}: {rule.pattern} -> {rule.category}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@rule_group.command("list")
@click.pass_context
def list_rules(ctx):
    """List your rules."""
    rules = CategorizationService(ctx.obj["db"]).list_rules(ctx.obj["user_id"])
    if not rules:
        click.echo("No rules found.")
        return
    for rule in rules:
        click.echo(_format_rule(rule))


@rule_group.command("update")
@click.argument("rule_id", type=int)
@click.option("--pattern", help="New pattern")
@click.option("--vendor", help="New vendor")
@click.option("--category", help="New category")
@click.option("--subcategory", help="New subcategory")
@click.option("--confidence", type=float, help="New confidence 0-1")
@click.pass_context
def update_rule(
    ctx,
    rule_id: int,
    pattern: str | None,
    vendor: str | None,
    category: str | None,
    subcategory: str | None,
    confidence: float | None,
):
    """Update a rule."""
    service = CategorizationService(ctx.obj["db"])
    updates = {
        "pattern": pattern,
        "vendor": vendor,
        "category": category,
        "confidence": confidence,
    }
    if subcategory is not None:
        updates["subcategory"] = subcategory

    try:
        rule = service.update_rule(rule_id, ctx.obj["user_id"], **updates)
        click.echo(f"Updated rule {rule.id}")
        click.echo(_format_rule(rule))
    except DomainError as e:
        handle_domain_error(ctx, e)


@rule_group.command("remove")
@click.argument("rule_id", type=int)
@click.pass_context
def remove_rule(ctx, rule_id: int):
    """Remove a rule."""
    service = CategorizationService(ctx.obj["db"])

    try:
        service.remove_rule(rule_id, ctx.obj["user_id"])
        click.echo(f"Removed rule {rule_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@rule_group.command("suggest")
@click.argument("description")
@click.option("--scope", help="Account ID to evaluate scoped rules for")
@click.pass_context
def suggest(ctx, description: str, scope: str | None):
    """Show what the rules suggest for a description (changes nothing)."""
    service = CategorizationService(ctx.obj["db"])
    result = service.suggest(ctx.obj["user_id"], description, scope)

    if not result.categories:
        click.echo("No matching rules.")
        return
    click.echo("Vendors:")
    for v in result.vendors:
        click.echo(f"  {v.vendor} ({v.confidence:.2f}, {v.source})")
    click.echo("Categories:")
    for c in result.categories:
        name = f"{c.category} / {c.subcategory}" if c.subcategory else c.category
        click.echo(f"  {name} ({c.confidence:.2f}, {c.source})")


def register_commands(cli):
    """Register rule commands with main CLI."""
    cli.add_command(rule_group, name="rule")
