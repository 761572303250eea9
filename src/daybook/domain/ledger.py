"""Ledger engine: balance computation and mutation validation.

Everything here is a pure function over a sequence of transactions. The
balance is always recomputed from scratch so that a change to any single
entry (including a trade's paid amount) is judged against the whole day.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Sequence

from daybook.domain.entities import (
    ExpenseItem,
    TradeCategory,
    TradeDetails,
    Transaction,
    TransactionType,
    WeightUnit,
)
from daybook.domain.errors import NotFoundError, ValidationError, transaction_not_found
from daybook.domain.outcomes import Accepted, InsufficientFunds, WouldOverdraw

ZERO = Decimal("0")


@dataclass(frozen=True)
class LedgerSummary:
    """Aggregated figures for a list of transactions."""

    total_income: Decimal
    total_expense: Decimal
    sales_received: Decimal
    purchases_paid: Decimal
    receivables: Decimal
    payables: Decimal
    transaction_count: int
    balance: Decimal


def balance_impact(transaction: Transaction) -> Decimal:
    """Return the signed cash effect of a single transaction."""
    if transaction.type == TransactionType.INCOME:
        return transaction.amount
    if transaction.type == TransactionType.EXPENSE:
        return -transaction.amount
    if transaction.type == TransactionType.TRADE:
        details = transaction.trade_details
        if details is None:
            raise ValidationError(f"Trade transaction {transaction.id} has no trade details")
        if details.category == TradeCategory.SALES:
            return details.paid_amount
        if details.category == TradeCategory.PURCHASE:
            return -details.paid_amount
        raise ValidationError(f"Unknown trade category: {details.category}")
    raise ValidationError(f"Unknown transaction type: {transaction.type}")


def calculate_balance(transactions: Iterable[Transaction]) -> Decimal:
    """Fold the transactions into the cash-on-hand balance."""
    return sum((balance_impact(txn) for txn in transactions), ZERO)


def debit_amount(transaction: Transaction) -> Decimal:
    """Return the cash a transaction takes out, or zero for credits."""
    impact = balance_impact(transaction)
    return -impact if impact < ZERO else ZERO


def validate_add(transactions: Sequence[Transaction], candidate: Transaction) -> Accepted | InsufficientFunds:
    """Check that appending ``candidate`` does not spend more than is on hand.

    Income and sales entries are never rejected on balance grounds.
    """
    debit = debit_amount(candidate)
    if debit == ZERO:
        return Accepted()

    available = calculate_balance(transactions)
    if debit > available:
        return InsufficientFunds(available=available, projected_balance=available - debit)
    return Accepted()


def validate_edit(
    transactions: Sequence[Transaction], transaction_id: str, updated: Transaction
) -> Accepted | InsufficientFunds:
    """Check that replacing a transaction keeps the day's balance non-negative.

    Raises:
        NotFoundError: If no transaction has ``transaction_id``
    """
    if not any(txn.id == transaction_id for txn in transactions):
        raise NotFoundError(transaction_not_found(transaction_id))

    remaining = [txn for txn in transactions if txn.id != transaction_id]
    projected = calculate_balance([*remaining, updated])
    if projected < ZERO:
        return InsufficientFunds(
            available=calculate_balance(transactions), projected_balance=projected
        )
    return Accepted()


def validate_delete(transactions: Sequence[Transaction], transaction_id: str) -> Accepted | WouldOverdraw:
    """Check that removing a transaction keeps the day's balance non-negative.

    Raises:
        NotFoundError: If no transaction has ``transaction_id``
    """
    if not any(txn.id == transaction_id for txn in transactions):
        raise NotFoundError(transaction_not_found(transaction_id))

    projected = calculate_balance(txn for txn in transactions if txn.id != transaction_id)
    if projected < ZERO:
        return WouldOverdraw(projected_balance=projected)
    return Accepted()


def compute_trade_total(quantity: Decimal, price: Decimal, expenses: Iterable[ExpenseItem]) -> Decimal:
    """Return ``quantity * price`` less the trade's expenses."""
    return quantity * price - sum((item.value for item in expenses), ZERO)


def build_trade_details(
    category: TradeCategory,
    product_name: str,
    quantity: Decimal,
    unit: WeightUnit,
    price: Decimal,
    customer_name: str,
    paid_amount: Decimal,
    expenses: Sequence[ExpenseItem] = (),
    image: str | None = None,
) -> TradeDetails:
    """Create trade details with the total derived from its parts."""
    expenses = tuple(expenses)
    return TradeDetails(
        category=category,
        product_name=product_name,
        quantity=quantity,
        unit=unit,
        price=price,
        customer_name=customer_name,
        expenses=expenses,
        total=compute_trade_total(quantity, price, expenses),
        paid_amount=paid_amount,
        image=image,
    )


def validate_transaction(transaction: Transaction) -> None:
    """Validate a transaction's own fields, independent of any balance.

    Raises:
        ValidationError: If the transaction is malformed
    """
    if transaction.amount < ZERO:
        raise ValidationError("Amount must not be negative")

    if transaction.type == TransactionType.TRADE:
        details = transaction.trade_details
        if details is None:
            raise ValidationError("Trade transactions require trade details")
        if details.quantity < ZERO or details.price < ZERO:
            raise ValidationError("Trade quantity and price must not be negative")
        if details.paid_amount < ZERO:
            raise ValidationError("Paid amount must not be negative")
        if not details.product_name.strip():
            raise ValidationError("Product name is required for trades")
        for item in details.expenses:
            if item.value < ZERO:
                raise ValidationError(f"Expense '{item.label}' must not be negative")
        return

    if transaction.trade_details is not None:
        raise ValidationError(f"{transaction.type.value.capitalize()} transactions cannot carry trade details")
    if not transaction.client_name.strip():
        raise ValidationError("Client name is required")


def summarize(transactions: Iterable[Transaction]) -> LedgerSummary:
    """Aggregate income, expenses and trade positions for display."""
    total_income = total_expense = ZERO
    sales_received = purchases_paid = ZERO
    receivables = payables = ZERO
    count = 0

    for txn in transactions:
        count += 1
        if txn.type == TransactionType.INCOME:
            total_income += txn.amount
        elif txn.type == TransactionType.EXPENSE:
            total_expense += txn.amount
        elif txn.type == TransactionType.TRADE and txn.trade_details is not None:
            details = txn.trade_details
            if details.category == TradeCategory.SALES:
                sales_received += details.paid_amount
                receivables += max(details.remaining, ZERO)
            else:
                purchases_paid += details.paid_amount
                payables += max(details.remaining, ZERO)

    return LedgerSummary(
        total_income=total_income,
        total_expense=total_expense,
        sales_received=sales_received,
        purchases_paid=purchases_paid,
        receivables=receivables,
        payables=payables,
        transaction_count=count,
        balance=total_income - total_expense + sales_received - purchases_paid,
    )


def search_transactions(transactions: Iterable[Transaction], query: str) -> list[Transaction]:
    """Return transactions whose client or product name contains ``query``."""
    needle = query.strip().lower()
    if not needle:
        return list(transactions)

    matches = []
    for txn in transactions:
        if needle in txn.client_name.lower():
            matches.append(txn)
        elif txn.trade_details is not None and needle in txn.trade_details.product_name.lower():
            matches.append(txn)
    return matches
