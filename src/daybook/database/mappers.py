"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the table layout can change
without touching the ledger or the lifecycle code.
"""

from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional

from daybook.domain import entities as domain
from daybook.database.models import (
    DailyLog as ORMDailyLog,
    Driver as ORMDriver,
    SyncQueueEntry as ORMSyncQueueEntry,
    TradeExpense as ORMTradeExpense,
    Transaction as ORMTransaction,
)


def _decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops the offset; every stored timestamp is UTC
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def driver_to_domain(orm_driver: ORMDriver) -> domain.Driver:
    """Convert SQLAlchemy Driver model to domain Driver entity."""
    return domain.Driver(
        mobile=orm_driver.mobile,
        name=orm_driver.name,
        token=orm_driver.token,
        is_offline_only=orm_driver.is_offline_only,
        preferences=dict(orm_driver.preferences or {}),
    )


def expense_to_domain(orm_expense: ORMTradeExpense) -> domain.ExpenseItem:
    """Convert SQLAlchemy TradeExpense model to domain ExpenseItem."""
    return domain.ExpenseItem(
        id=orm_expense.expense_id,
        label=orm_expense.label,
        value=_decimal(orm_expense.value),
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    trade_details = None
    if orm_transaction.trade_category is not None:
        trade_details = domain.TradeDetails(
            category=domain.TradeCategory(orm_transaction.trade_category),
            product_name=orm_transaction.product_name,
            quantity=_decimal(orm_transaction.quantity),
            unit=domain.WeightUnit(orm_transaction.unit),
            price=_decimal(orm_transaction.price),
            customer_name=orm_transaction.customer_name,
            expenses=tuple(expense_to_domain(exp) for exp in orm_transaction.expenses),
            total=_decimal(orm_transaction.total),
            paid_amount=_decimal(orm_transaction.paid_amount),
            image=orm_transaction.image,
        )

    return domain.Transaction(
        id=orm_transaction.transaction_id,
        client_name=orm_transaction.client_name,
        amount=_decimal(orm_transaction.amount),
        type=domain.TransactionType(orm_transaction.type),
        timestamp=_utc(orm_transaction.timestamp),
        is_synced=orm_transaction.is_synced,
        trade_details=trade_details,
    )


def log_to_domain(orm_log: ORMDailyLog) -> domain.DailyLog:
    """Convert SQLAlchemy DailyLog model to domain DailyLog entity."""
    return domain.DailyLog(
        id=orm_log.log_id,
        driver_id=orm_log.driver_id,
        created_at=_utc(orm_log.created_at),
        status=domain.DayStatus(orm_log.status),
        transactions=tuple(transaction_to_domain(txn) for txn in orm_log.transactions),
        closed_at=_utc(orm_log.closed_at),
        is_synced=orm_log.is_synced,
    )


def sync_item_to_domain(orm_entry: ORMSyncQueueEntry) -> domain.SyncQueueItem:
    """Convert SQLAlchemy SyncQueueEntry model to domain SyncQueueItem."""
    return domain.SyncQueueItem(
        id=orm_entry.id,
        action=domain.SyncAction(orm_entry.action),
        payload=dict(orm_entry.payload),
        timestamp=_utc(orm_entry.timestamp),
    )


def transaction_to_orm(transaction: domain.Transaction, position: int) -> ORMTransaction:
    """Build a SQLAlchemy Transaction row from a domain Transaction."""
    orm_transaction = ORMTransaction(
        position=position,
        transaction_id=transaction.id,
        client_name=transaction.client_name,
        amount=transaction.amount,
        type=transaction.type.value,
        timestamp=transaction.timestamp,
        is_synced=transaction.is_synced,
    )

    details = transaction.trade_details
    if details is not None:
        orm_transaction.trade_category = details.category.value
        orm_transaction.product_name = details.product_name
        orm_transaction.quantity = details.quantity
        orm_transaction.unit = details.unit.value
        orm_transaction.price = details.price
        orm_transaction.customer_name = details.customer_name
        orm_transaction.total = details.total
        orm_transaction.paid_amount = details.paid_amount
        orm_transaction.image = details.image
        orm_transaction.expenses = [
            ORMTradeExpense(position=index, expense_id=item.id, label=item.label, value=item.value)
            for index, item in enumerate(details.expenses)
        ]

    return orm_transaction
