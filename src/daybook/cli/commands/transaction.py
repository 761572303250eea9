"""Transaction management commands."""

from dataclasses import replace

import click
from daybook.cli.commands.add import parse_amount_or_exit, parse_expense_items
from daybook.cli.commands.day import resolve_log_id
from daybook.cli.display import echo_transaction, format_amount
from daybook.cli.error_handling import handle_domain_error, handle_rejection
from daybook.domain.daybook import DayBookService
from daybook.domain.entities import TradeCategory, TransactionType, WeightUnit
from daybook.domain.errors import DomainError, InfrastructureError
from daybook.domain.ledger import build_trade_details, calculate_balance


@click.group("transaction")
def transaction_group():
    """Edit, delete and search transactions."""
    pass


@transaction_group.command("edit")
@click.argument("transaction_id")
@click.option("--client", help="Client name or description")
@click.option("--amount", help="Amount (income and expense only)")
@click.option("--type", "txn_type", type=click.Choice(["income", "expense"]), help="Switch between income and expense")
@click.option("--category", type=click.Choice([c.value for c in TradeCategory]), help="Trade category")
@click.option("--product", help="Trade product name")
@click.option("--quantity", help="Trade quantity")
@click.option("--unit", type=click.Choice([u.value for u in WeightUnit]), help="Trade unit")
@click.option("--price", help="Trade unit price")
@click.option("--customer", help="Trade customer name")
@click.option("--expense", "expenses", multiple=True, help="Replace trade deductions, LABEL=VALUE (repeatable)")
@click.option("--paid", help="Trade paid amount")
@click.option("--date", "date_str", help="Day holding the transaction; defaults to the open day")
@click.pass_context
def edit_transaction(
    ctx,
    transaction_id: str,
    client: str | None,
    amount: str | None,
    txn_type: str | None,
    category: str | None,
    product: str | None,
    quantity: str | None,
    unit: str | None,
    price: str | None,
    customer: str | None,
    expenses: tuple[str, ...],
    paid: str | None,
    date_str: str | None,
) -> None:
    """Edit a transaction. Only the given fields change.

    The edit is rejected if the day's balance would turn negative.

    Examples:
        daybook transaction edit a1b2c3d4e5 --amount 750
        daybook transaction edit a1b2c3d4e5 --paid 2500
    """
    service = DayBookService(ctx.obj["db"], ctx.obj["sync_queue"])
    log_id = resolve_log_id(ctx, date_str)

    try:
        log = service.require_log(log_id)
    except (DomainError, InfrastructureError) as e:
        handle_domain_error(ctx, e)
        return

    existing = log.find_transaction(transaction_id)
    if existing is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    trade_details = None
    if existing.type == TransactionType.TRADE:
        if amount is not None or txn_type is not None:
            click.echo("Error: Use trade options (--price, --quantity, --paid, ...) to edit a trade", err=True)
            ctx.exit(1)
        current = existing.trade_details
        trade_details = build_trade_details(
            category=TradeCategory(category) if category else current.category,
            product_name=product if product is not None else current.product_name,
            quantity=parse_amount_or_exit(ctx, quantity, "quantity") if quantity is not None else current.quantity,
            unit=WeightUnit(unit) if unit else current.unit,
            price=parse_amount_or_exit(ctx, price, "price") if price is not None else current.price,
            customer_name=customer if customer is not None else (client or current.customer_name),
            paid_amount=current.paid_amount,
            expenses=parse_expense_items(ctx, expenses) if expenses else current.expenses,
            image=current.image,
        )
        if paid is not None:
            trade_details = replace(trade_details, paid_amount=parse_amount_or_exit(ctx, paid, "paid amount"))

    try:
        outcome = service.update_transaction(
            transaction_id=transaction_id,
            client_name=client,
            amount=parse_amount_or_exit(ctx, amount) if amount is not None else None,
            type=TransactionType(txn_type) if txn_type else None,
            trade_details=trade_details,
            log_id=log.id,
        )
    except (DomainError, InfrastructureError) as e:
        handle_domain_error(ctx, e)
        return
    if not outcome.ok:
        handle_rejection(ctx, outcome)
        return

    click.echo(f"Updated transaction {transaction_id}")
    click.echo(f"  Balance: {format_amount(calculate_balance(outcome.value.transactions))}")


@transaction_group.command("delete")
@click.argument("transaction_id")
@click.option("--date", "date_str", help="Day holding the transaction; defaults to the open day")
@click.pass_context
def delete_transaction(ctx, transaction_id: str, date_str: str | None) -> None:
    """Delete a transaction.

    Refused when later debits depend on the cash it brought in.
    """
    service = DayBookService(ctx.obj["db"], ctx.obj["sync_queue"])
    log_id = resolve_log_id(ctx, date_str)

    try:
        outcome = service.delete_transaction(transaction_id, log_id=log_id)
    except (DomainError, InfrastructureError) as e:
        handle_domain_error(ctx, e)
        return
    if not outcome.ok:
        handle_rejection(ctx, outcome)
        return

    click.echo(f"Deleted transaction {transaction_id}")
    click.echo(f"  Balance: {format_amount(calculate_balance(outcome.value.transactions))}")


@transaction_group.command("search")
@click.argument("query")
@click.option("--date", "date_str", help="Day to search; defaults to the open day")
@click.pass_context
def search_transactions(ctx, query: str, date_str: str | None) -> None:
    """Find transactions by client or product name."""
    service = DayBookService(ctx.obj["db"], ctx.obj["sync_queue"])
    log_id = resolve_log_id(ctx, date_str)

    try:
        matches = service.search(query, log_id=log_id)
    except (DomainError, InfrastructureError) as e:
        handle_domain_error(ctx, e)
        return

    if not matches:
        click.echo("No transactions found.")
        return
    for txn in matches:
        echo_transaction(txn)


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group)
