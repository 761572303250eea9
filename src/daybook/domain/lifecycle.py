"""Day lifecycle: the OPEN -> CLOSED state machine for daily logs.

Functions here never mutate their arguments. Successful operations return
``Accepted`` wrapping a new ``DailyLog`` which the caller must persist.
"""

from dataclasses import dataclass, replace
from datetime import datetime, date, UTC
from typing import Iterable, Optional, Union

from daybook.domain import ledger
from daybook.domain.entities import DailyLog, DayStatus, Transaction
from daybook.domain.errors import ValidationError
from daybook.domain.outcomes import Accepted, AlreadyOpen, DayClosed, LifecycleOutcome


@dataclass(frozen=True)
class AddTransaction:
    transaction: Transaction


@dataclass(frozen=True)
class EditTransaction:
    """Replace the transaction sharing ``transaction.id``."""

    transaction: Transaction


@dataclass(frozen=True)
class DeleteTransaction:
    transaction_id: str


TransactionOperation = Union[AddTransaction, EditTransaction, DeleteTransaction]


def log_id_for(day: date) -> str:
    """Return the store key for a calendar day."""
    return day.isoformat()


def find_open_log(logs: Iterable[DailyLog]) -> Optional[DailyLog]:
    """Return the driver's open log, if there is one."""
    for log in logs:
        if log.is_open:
            return log
    return None


def create_log(
    driver_id: str,
    day: date,
    existing_logs: Iterable[DailyLog],
    now: Optional[datetime] = None,
) -> Accepted | AlreadyOpen | DayClosed:
    """Open a new daily log for ``day``.

    Fails with ``AlreadyOpen`` while any of the driver's logs is open, and
    with ``DayClosed`` when the day was already worked and closed.
    """
    log_id = log_id_for(day)
    existing_logs = [log for log in existing_logs if log.driver_id == driver_id]

    open_log = find_open_log(existing_logs)
    if open_log is not None:
        return AlreadyOpen(log_id=open_log.id)

    for log in existing_logs:
        if log.id == log_id:
            return DayClosed(log_id=log_id)

    return Accepted(
        DailyLog(
            id=log_id,
            driver_id=driver_id,
            created_at=now or datetime.now(UTC),
            status=DayStatus.OPEN,
        )
    )


def mutate_transactions(log: DailyLog, operation: TransactionOperation) -> LifecycleOutcome:
    """Apply an add, edit or delete to an open log after ledger validation."""
    if log.is_closed:
        return DayClosed(log_id=log.id)

    transactions = log.transactions

    if isinstance(operation, AddTransaction):
        candidate = operation.transaction
        ledger.validate_transaction(candidate)
        if log.find_transaction(candidate.id) is not None:
            raise ValidationError(f"Transaction {candidate.id} already exists in day {log.id}")
        outcome = ledger.validate_add(transactions, candidate)
        if not outcome.ok:
            return outcome
        return Accepted(replace(log, transactions=(*transactions, candidate)))

    if isinstance(operation, EditTransaction):
        updated = operation.transaction
        ledger.validate_transaction(updated)
        outcome = ledger.validate_edit(transactions, updated.id, updated)
        if not outcome.ok:
            return outcome
        return Accepted(
            replace(
                log,
                transactions=tuple(updated if txn.id == updated.id else txn for txn in transactions),
            )
        )

    if isinstance(operation, DeleteTransaction):
        outcome = ledger.validate_delete(transactions, operation.transaction_id)
        if not outcome.ok:
            return outcome
        return Accepted(
            replace(
                log,
                transactions=tuple(txn for txn in transactions if txn.id != operation.transaction_id),
            )
        )

    raise ValidationError(f"Unsupported transaction operation: {operation!r}")


def close_log(log: DailyLog, now: Optional[datetime] = None) -> Accepted | DayClosed:
    """Close an open log. Closing is irreversible and stamps ``closed_at`` once."""
    if log.is_closed:
        return DayClosed(log_id=log.id)
    return Accepted(replace(log, status=DayStatus.CLOSED, closed_at=now or datetime.now(UTC)))
