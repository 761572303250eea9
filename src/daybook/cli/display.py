"""Console rendering helpers shared by commands."""

from decimal import Decimal

import click

from daybook.domain.entities import DailyLog, Transaction, TransactionType
from daybook.domain.ledger import LedgerSummary, balance_impact


def format_amount(amount: Decimal) -> str:
    """Format an amount for display, rounded to two places."""
    return f"{amount:,.2f}"


def echo_transaction(txn: Transaction) -> None:
    """Print one transaction as a single line."""
    impact = balance_impact(txn)
    sign = "+" if impact >= 0 else "-"
    synced = "" if txn.is_synced else " *"
    line = f"{txn.id} | {txn.type.value:7s} | {sign}{format_amount(abs(impact)):>12s} | {txn.client_name}{synced}"
    click.echo(line)

    if txn.type == TransactionType.TRADE and txn.trade_details is not None:
        details = txn.trade_details
        click.echo(
            f"    {details.category.value}: {details.product_name} "
            f"{details.quantity} {details.unit.value} x {format_amount(details.price)}"
        )
        for item in details.expenses:
            click.echo(f"    - {item.label}: {format_amount(item.value)}")
        click.echo(
            f"    Total: {format_amount(details.total)} | Paid: {format_amount(details.paid_amount)}"
            f" | Remaining: {format_amount(details.remaining)}"
        )


def echo_summary(summary: LedgerSummary) -> None:
    click.echo(f"  Income:          {format_amount(summary.total_income):>14s}")
    click.echo(f"  Expenses:        {format_amount(summary.total_expense):>14s}")
    click.echo(f"  Sales received:  {format_amount(summary.sales_received):>14s}")
    click.echo(f"  Purchases paid:  {format_amount(summary.purchases_paid):>14s}")
    click.echo(f"  Receivables:     {format_amount(summary.receivables):>14s}")
    click.echo(f"  Payables:        {format_amount(summary.payables):>14s}")
    click.echo(f"  Balance:         {format_amount(summary.balance):>14s}")


def echo_log_header(log: DailyLog) -> None:
    status = log.status.value.upper()
    synced = "synced" if log.is_synced else "not synced"
    click.echo(f"Day {log.id} [{status}] ({synced})")
    if log.closed_at is not None:
        click.echo(f"  Closed at: {log.closed_at:%Y-%m-%d %H:%M}")
