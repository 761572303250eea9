"""Add transaction commands."""

from dataclasses import replace
from decimal import Decimal

import click
from daybook.cli.commands.day import resolve_log_id
from daybook.cli.display import format_amount
from daybook.cli.error_handling import handle_domain_error, handle_rejection
from daybook.domain.daybook import DayBookService
from daybook.domain.entities import (
    ExpenseItem,
    TradeCategory,
    TransactionType,
    WeightUnit,
    generate_id,
)
from daybook.domain.errors import DomainError, InfrastructureError
from daybook.domain.ledger import build_trade_details, calculate_balance
from daybook.utils.amount_parser import parse_amount


def parse_amount_or_exit(ctx: click.Context, value: str, label: str = "amount") -> Decimal:
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def parse_expense_items(ctx: click.Context, values: tuple[str, ...]) -> list[ExpenseItem]:
    """Parse repeated LABEL=VALUE options into expense items."""
    items = []
    for value in values:
        label, sep, amount = value.rpartition("=")
        if not sep or not label.strip():
            click.echo(f"Error: Expected LABEL=VALUE for --expense, got '{value}'", err=True)
            ctx.exit(1)
        items.append(
            ExpenseItem(id=generate_id(), label=label.strip(), value=parse_amount_or_exit(ctx, amount, "expense"))
        )
    return items


@click.group("add")
def add_group():
    """Record a transaction in the open day."""
    pass


def _add_simple(ctx, type: TransactionType, client: str, amount: str, date_str: str | None):
    service = DayBookService(ctx.obj["db"], ctx.obj["sync_queue"])
    log_id = resolve_log_id(ctx, date_str)
    txn_amount = parse_amount_or_exit(ctx, amount)

    try:
        outcome = service.add_transaction(client_name=client, amount=txn_amount, type=type, log_id=log_id)
    except (DomainError, InfrastructureError) as e:
        handle_domain_error(ctx, e)
        return
    if not outcome.ok:
        handle_rejection(ctx, outcome)
        return

    log = outcome.value
    txn = log.transactions[-1]
    click.echo(f"Added {type.value} {txn.id}")
    click.echo(f"  Client: {txn.client_name}")
    click.echo(f"  Amount: {format_amount(txn.amount)}")
    click.echo(f"  Balance: {format_amount(calculate_balance(log.transactions))}")


@add_group.command("income")
@click.argument("client")
@click.argument("amount")
@click.option("--date", "date_str", help="Day to record in; defaults to the open day")
@click.pass_context
def add_income(ctx, client: str, amount: str, date_str: str | None):
    """Record cash received.

    Examples:
        daybook add income "Delivery fee" 1000
    """
    _add_simple(ctx, TransactionType.INCOME, client, amount, date_str)


@add_group.command("expense")
@click.argument("client")
@click.argument("amount")
@click.option("--date", "date_str", help="Day to record in; defaults to the open day")
@click.pass_context
def add_expense(ctx, client: str, amount: str, date_str: str | None):
    """Record cash spent. Rejected if it exceeds the balance.

    Examples:
        daybook add expense "Fuel" 250
    """
    _add_simple(ctx, TransactionType.EXPENSE, client, amount, date_str)


@add_group.command("trade")
@click.option(
    "--category",
    type=click.Choice([c.value for c in TradeCategory]),
    required=True,
    help="sales or purchase",
)
@click.option("--product", required=True, help="Product name")
@click.option("--quantity", required=True, help="Quantity traded")
@click.option("--unit", type=click.Choice([u.value for u in WeightUnit]), default=WeightUnit.KG.value, show_default=True)
@click.option("--price", required=True, help="Unit price")
@click.option("--customer", required=True, help="Customer or supplier name")
@click.option("--expense", "expenses", multiple=True, help="Deduction as LABEL=VALUE (repeatable)")
@click.option("--paid", help="Cash actually exchanged; defaults to the full total")
@click.option("--image", help="Receipt image reference")
@click.option("--date", "date_str", help="Day to record in; defaults to the open day")
@click.pass_context
def add_trade(
    ctx,
    category: str,
    product: str,
    quantity: str,
    unit: str,
    price: str,
    customer: str,
    expenses: tuple[str, ...],
    paid: str | None,
    image: str | None,
    date_str: str | None,
):
    """Record a sale or purchase.

    Only the paid amount moves the cash balance; the remainder is tracked
    as a receivable (sales) or payable (purchase).

    Examples:
        daybook add trade --category sales --product Scrap --quantity 2 --unit ton \\
            --price 1000 --customer "Hassan" --paid 1200
    """
    service = DayBookService(ctx.obj["db"], ctx.obj["sync_queue"])
    log_id = resolve_log_id(ctx, date_str)

    expense_items = parse_expense_items(ctx, expenses)
    qty = parse_amount_or_exit(ctx, quantity, "quantity")
    unit_price = parse_amount_or_exit(ctx, price, "price")

    details = build_trade_details(
        category=TradeCategory(category),
        product_name=product,
        quantity=qty,
        unit=WeightUnit(unit),
        price=unit_price,
        customer_name=customer,
        paid_amount=Decimal("0"),
        expenses=expense_items,
        image=image,
    )
    if paid is not None:
        details = replace(details, paid_amount=parse_amount_or_exit(ctx, paid, "paid amount"))
    else:
        details = replace(details, paid_amount=details.total)

    try:
        outcome = service.add_trade(details, log_id=log_id)
    except (DomainError, InfrastructureError) as e:
        handle_domain_error(ctx, e)
        return
    if not outcome.ok:
        handle_rejection(ctx, outcome)
        return

    log = outcome.value
    txn = log.transactions[-1]
    click.echo(f"Added {details.category.value} trade {txn.id}")
    click.echo(f"  Total: {format_amount(details.total)}")
    click.echo(f"  Paid: {format_amount(details.paid_amount)}")
    click.echo(f"  Remaining: {format_amount(details.remaining)}")
    click.echo(f"  Balance: {format_amount(calculate_balance(log.transactions))}")


def register_commands(cli):
    """Register add commands with main CLI."""
    cli.add_command(add_group)
