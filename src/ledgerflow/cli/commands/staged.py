"""Commands for reviewing staged transactions."""

import click
from ledgerflow.cli.error_handling import handle_domain_error
from ledgerflow.domain.errors import DomainError, staged_not_found
from ledgerflow.domain.ledger import LedgerService
from ledgerflow.domain.staging import StagingService


@click.group()
def staged_group():
    """Review, commit and discard staged transactions."""
    pass


def _selected_ids(ctx, ids: tuple[int, ...], select_all: bool) -> list[int]:
    if select_all:
        return [d.id for d in StagingService(ctx.obj["db"]).list(ctx.obj["user_id"])]
    if not ids:
        click.echo("Error: Give staged transaction IDs or --all", err=True)
        ctx.exit(1)
    return list(ids)


@staged_group.command("list")
@click.pass_context
def list_staged(ctx):
    """List staged transactions, most recent first."""
    drafts = StagingService(ctx.obj["db"]).list(ctx.obj["user_id"])
    if not drafts:
        click.echo("No staged transactions.")
        return

    click.echo(f"\n{'ID':>5s}  {'Date':10s}  {'Description':30s}  {'Type':7s}  {'Amount':>10s}  Category")
    click.echo("-" * 90)
    for d in drafts:
        category = f"{d.category} / {d.subcategory}" if d.subcategory else d.category
        click.echo(
            f"{d.id:5d}  {d.date.isoformat():10s}  {d.description[:30]:30s}  "
            f"{d.type.value:7s}  {d.amount:>10,.2f}  {category}"
        )


@staged_group.command("edit")
@click.argument("draft_id", type=int)
@click.option("--category", help="New category")
@click.option("--subcategory", help="New subcategory")
@click.option("--vendor", help="New vendor")
@click.option("--description", help="New description")
@click.pass_context
def edit_staged(
    ctx,
    draft_id: int,
    category: str | None,
    subcategory: str | None,
    vendor: str | None,
    description: str | None,
):
    """Edit a staged transaction before committing it."""
    service = StagingService(ctx.obj["db"])

    try:
        draft = service.update(
            draft_id,
            ctx.obj["user_id"],
            category=category,
            subcategory=subcategory,
            vendor=vendor,
            description=description,
        )
        click.echo(f"Updated staged transaction {draft.id}: {draft.description} -> {draft.category}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@staged_group.command("commit")
@click.argument("ids", nargs=-1, type=int)
@click.option("--all", "select_all", is_flag=True, help="Commit every staged transaction")
@click.pass_context
def commit_staged(ctx, ids: tuple[int, ...], select_all: bool):
    """Commit staged transactions to the ledger."""
    draft_ids = list(dict.fromkeys(_selected_ids(ctx, ids, select_all)))
    staged_ids = {d.id for d in StagingService(ctx.obj["db"]).list(ctx.obj["user_id"])}
    service = LedgerService(ctx.obj["db"])

    try:
        committed = service.commit(draft_ids, ctx.obj["user_id"])
    except DomainError as e:
        handle_domain_error(ctx, e)

    missing = [i for i in draft_ids if i not in staged_ids]
    if missing:
        click.echo(f"Ignored: {staged_not_found(missing)}", err=True)
    click.echo(f"Committed {len(committed)} transactions")
    skipped = len(draft_ids) - len(missing) - len(committed)
    if skipped:
        click.echo(f"Left {skipped} duplicates in staging (use 'staged discard' to remove them)")


@staged_group.command("discard")
@click.argument("ids", nargs=-1, type=int)
@click.option("--all", "select_all", is_flag=True, help="Discard every staged transaction")
@click.pass_context
def discard_staged(ctx, ids: tuple[int, ...], select_all: bool):
    """Discard staged transactions."""
    draft_ids = _selected_ids(ctx, ids, select_all)
    deleted = StagingService(ctx.obj["db"]).discard(draft_ids, ctx.obj["user_id"])
    click.echo(f"Discarded {deleted} staged transactions")


def register_commands(cli):
    """Register staged commands with main CLI."""
    cli.add_command(staged_group, name="staged")
