"""Sync queue commands."""

import click
from daybook.cli.error_handling import handle_domain_error
from daybook.domain.errors import DomainError, InfrastructureError


@click.group("sync")
def sync_group():
    """Inspect and replay the sync queue."""
    pass


@sync_group.command("status")
@click.pass_context
def sync_status(ctx):
    """List items waiting to be sent, in replay order."""
    db = ctx.obj["db"]
    try:
        driver = db.get_current_driver()
        if driver is not None and driver.is_offline_only:
            click.echo("Offline-only mode: nothing is synced.")
            return
        items = ctx.obj["sync_queue"].pending(driver_id=driver.mobile if driver else None)
    except (DomainError, InfrastructureError) as e:
        handle_domain_error(ctx, e)
        return

    if not items:
        click.echo("Sync queue is empty.")
        return

    click.echo(f"{len(items)} pending item{'s' if len(items) != 1 else ''}:")
    for item in items:
        click.echo(f"{item.id} | {item.action.value:18s} | {item.payload.get('log_id', '')} | {item.timestamp:%Y-%m-%d %H:%M}")


@sync_group.command("run")
@click.pass_context
def sync_run(ctx):
    """Send pending items to the server now."""
    try:
        report = ctx.obj["sync_queue"].start()
    except (DomainError, InfrastructureError) as e:
        handle_domain_error(ctx, e)
        return

    if report.skipped:
        click.echo(f"Sync skipped: {report.skipped_reason}")
        return

    click.echo(f"Sent {len(report.sent)} item{'s' if len(report.sent) != 1 else ''}")
    if report.failed_item is not None:
        click.echo(f"Stopped at {report.failed_item}: {report.failure_reason}")
        click.echo("Remaining items will be retried on the next sync.")


@sync_group.command("discard")
@click.argument("item_id")
@click.confirmation_option(prompt="The server will never receive this item. Continue?")
@click.pass_context
def sync_discard(ctx, item_id: str):
    """Drop a queued item the server keeps rejecting."""
    try:
        ctx.obj["sync_queue"].discard(item_id)
    except (DomainError, InfrastructureError) as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Discarded {item_id}")


def register_commands(cli):
    """Register sync commands with main CLI."""
    cli.add_command(sync_group)
