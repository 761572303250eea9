"""Daily log lifecycle commands."""

import json
from dataclasses import asdict
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

import click
from daybook.cli.display import echo_log_header, echo_summary, echo_transaction, format_amount
from daybook.cli.error_handling import handle_domain_error, handle_rejection
from daybook.domain.daybook import DayBookService
from daybook.domain.errors import DomainError, InfrastructureError
from daybook.domain.lifecycle import log_id_for
from daybook.utils.date_parser import get_date_range, parse_date


def resolve_log_id(ctx: click.Context, date_str: str | None) -> str | None:
    """Turn a --date option into a log id, or exit on a bad date."""
    if date_str is None:
        return None
    try:
        return log_id_for(parse_date(date_str))
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)


@click.group("day")
def day_group():
    """Open, inspect and close daily logs."""
    pass


@day_group.command("start")
@click.option("--date", "date_str", help="Day to open (YYYY-MM-DD or 'today'); defaults to today")
@click.pass_context
def start_day(ctx, date_str: str | None):
    """Open a new day. Only one day can be open at a time.

    Examples:
        daybook day start
        daybook day start --date 2024-01-15
    """
    service = DayBookService(ctx.obj["db"], ctx.obj["sync_queue"])

    day = None
    if date_str is not None:
        try:
            day = parse_date(date_str)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    try:
        outcome = service.start_day(day)
    except (DomainError, InfrastructureError) as e:
        handle_domain_error(ctx, e)
        return
    if not outcome.ok:
        handle_rejection(ctx, outcome)
        return
    click.echo(f"Started day {outcome.value.id}")


@day_group.command("show")
@click.argument("date_str", metavar="[DATE]", required=False)
@click.pass_context
def show_day(ctx, date_str: str | None):
    """Show a day's transactions and totals. Defaults to the open day.

    Entries marked with * are not yet synced.
    """
    service = DayBookService(ctx.obj["db"], ctx.obj["sync_queue"])
    log_id = resolve_log_id(ctx, date_str)

    try:
        log = service.require_log(log_id)
    except (DomainError, InfrastructureError) as e:
        handle_domain_error(ctx, e)
        return

    echo_log_header(log)
    click.echo("-" * 60)
    if not log.transactions:
        click.echo("No transactions recorded.")
    for txn in log.transactions:
        echo_transaction(txn)
    click.echo("-" * 60)
    echo_summary(service.summarize(log))


@day_group.command("list")
@click.option(
    "--period",
    type=click.Choice(["this-week", "this-month", "last-week", "last-month"]),
    help="Only list days in this period",
)
@click.pass_context
def list_days(ctx, period: str | None):
    """List days, newest first."""
    service = DayBookService(ctx.obj["db"], ctx.obj["sync_queue"])
    try:
        logs = service.list_logs()
    except (DomainError, InfrastructureError) as e:
        handle_domain_error(ctx, e)
        return

    if period is not None:
        start, end = get_date_range(period)
        logs = [log for log in logs if start <= log.day <= end]

    if not logs:
        click.echo("No days found.")
        return

    for log in logs:
        summary = service.summarize(log)
        click.echo(
            f"{log.id} | {log.status.value:6s} | {summary.transaction_count:3d} entries"
            f" | balance {format_amount(summary.balance):>12s}"
        )


@day_group.command("close")
@click.option("--date", "date_str", help="Day to close; defaults to the open day")
@click.confirmation_option(prompt="Closing a day is permanent. Continue?")
@click.pass_context
def close_day(ctx, date_str: str | None):
    """Close a day. A closed day can never be changed again."""
    service = DayBookService(ctx.obj["db"], ctx.obj["sync_queue"])
    log_id = resolve_log_id(ctx, date_str)

    try:
        outcome = service.close_day(log_id)
    except (DomainError, InfrastructureError) as e:
        handle_domain_error(ctx, e)
        return
    if not outcome.ok:
        handle_rejection(ctx, outcome)
        return

    click.echo(f"Closed day {outcome.value.id}")
    echo_summary(service.summarize(outcome.value))


def _json_default(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Cannot serialize {type(value).__name__}")


@day_group.command("export")
@click.pass_context
def export_days(ctx):
    """Write all of the driver's days as JSON to stdout."""
    service = DayBookService(ctx.obj["db"], ctx.obj["sync_queue"])
    try:
        logs = service.list_logs()
    except (DomainError, InfrastructureError) as e:
        handle_domain_error(ctx, e)
        return
    click.echo(json.dumps([asdict(log) for log in logs], default=_json_default, indent=2, ensure_ascii=False))


def register_commands(cli):
    """Register day commands with main CLI."""
    cli.add_command(day_group)
